"""
Pydantic schemas for administrative reports.
"""

from typing import Optional
from pydantic import BaseModel


class FinancialSummary(BaseModel):
    event_id: Optional[int]
    total_collected: float
    paid: int
    pending: int
    cancelled: int
    expired: int


class AttendanceSummary(BaseModel):
    event_id: int
    registrations: int
    paid: int
    validated: int
    awaiting_check_in: int
