"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator

REQUIRED_EVENT_FIELDS = ("name", "event_date", "total_slots", "occupied_slots", "fee", "status")


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so stored and submitted dates compare."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EventCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    event_date: datetime
    event_end_date: Optional[datetime] = None
    total_slots: int = Field(..., gt=0, le=100000)
    fee: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)

    @model_validator(mode="after")
    def check_dates(self):
        if self.event_end_date and as_utc(self.event_end_date) < as_utc(self.event_date):
            raise ValueError("event_end_date must not precede event_date")
        return self


class EventUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    event_date: Optional[datetime] = None
    event_end_date: Optional[datetime] = None
    total_slots: Optional[int] = Field(None, gt=0, le=100000)
    occupied_slots: Optional[int] = Field(None, ge=0)
    fee: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    status: Optional[Literal["active", "inactive"]] = None

    @model_validator(mode="after")
    def check_required_not_cleared(self):
        cleared = [
            field for field in REQUIRED_EVENT_FIELDS
            if field in self.model_fields_set and getattr(self, field) is None
        ]
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self

    @model_validator(mode="after")
    def check_dates(self):
        if self.event_date and self.event_end_date and as_utc(self.event_end_date) < as_utc(self.event_date):
            raise ValueError("event_end_date must not precede event_date")
        return self


class EventResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    location: Optional[str]
    event_date: datetime
    event_end_date: Optional[datetime]
    total_slots: int
    occupied_slots: int
    fee: float
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    cached: bool = False
