"""
Pydantic schemas for registration intake and administration.

Intake normalises the national ID (CPF) and phone number the same way the
public form masks them, so uniqueness is checked on one canonical spelling.
"""

import re
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

PaymentStatus = Literal["pending", "paid", "cancelled", "expired"]

_NON_DIGITS = re.compile(r"\D")


def format_national_id(value: str) -> str:
    digits = _NON_DIGITS.sub("", value)
    if len(digits) != 11:
        raise ValueError("national ID must have 11 digits")
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def format_phone(value: str) -> str:
    digits = _NON_DIGITS.sub("", value)
    if len(digits) == 11:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    raise ValueError("phone must have 10 or 11 digits including area code")


class RegistrationCreate(BaseModel):
    event_id: int
    full_name: str = Field(..., min_length=1, max_length=255)
    national_id: str
    address: str = Field(..., min_length=1, max_length=500)
    phone: str
    injury_notes: str = Field(..., min_length=1)
    treatment_notes: str = Field(..., min_length=1)

    model_config = {"str_strip_whitespace": True}

    @field_validator("national_id")
    @classmethod
    def normalise_national_id(cls, value: str) -> str:
        return format_national_id(value)

    @field_validator("phone")
    @classmethod
    def normalise_phone(cls, value: str) -> str:
        return format_phone(value)


class RegistrationResponse(BaseModel):
    id: int
    event_id: int
    full_name: str
    national_id: str
    address: str
    phone: str
    injury_notes: Optional[str]
    treatment_notes: Optional[str]
    payment_status: str
    paid_amount: Optional[float]
    registration_date: datetime
    payment_date: Optional[datetime]
    validation_code: str
    qr_payload: Optional[str]

    model_config = {"from_attributes": True}


class RegistrationDetail(RegistrationResponse):
    validated_at: Optional[datetime] = None


class RegistrationConfirmation(BaseModel):
    full_name: str
    event_id: int
    validation_code: str
    qr_payload: Optional[str]
    payment_status: str

    model_config = {"from_attributes": True}


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus


class PaymentResponse(BaseModel):
    id: int
    registration_id: int
    provider_payment_id: Optional[str]
    amount: float
    due_date: Optional[datetime]
    paid_date: Optional[datetime]
    status: str
    method: Optional[str]

    model_config = {"from_attributes": True}
