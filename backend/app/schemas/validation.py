"""
Pydantic schemas for attendance validation.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator


class ValidationOutcome(str, Enum):
    VALIDATED = "validated"
    PAYMENT_REQUIRED = "payment_required"
    ALREADY_VALIDATED = "already_validated"
    NOT_FOUND = "not_found"
    ERROR = "error"


class ValidationRequest(BaseModel):
    """Either a typed `code` or the raw text a scanner decoded into `payload`."""

    code: Optional[str] = Field(None, max_length=2000)
    payload: Optional[str] = Field(None, max_length=2000)
    source: Literal["manual", "camera"] = "manual"
    device: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def require_code_or_payload(self):
        if not (self.code or self.payload):
            raise ValueError("Validation code required")
        return self


class ValidationResult(BaseModel):
    outcome: ValidationOutcome
    message: str
    participant_name: Optional[str] = None
    registration_id: Optional[int] = None
    validated_at: Optional[datetime] = None


class AttendanceResponse(BaseModel):
    id: int
    registration_id: int
    validation_code: str
    validated_at: datetime
    validated_by: str
    validating_device: Optional[str]

    model_config = {"from_attributes": True}
