from app.schemas.user import UserCreate, UserResponse, UserLogin, Token
from app.schemas.event import EventCreate, EventUpdate, EventResponse, EventListResponse
from app.schemas.registration import (
    RegistrationCreate, RegistrationResponse, RegistrationDetail,
    RegistrationConfirmation, PaymentStatusUpdate, PaymentResponse,
)
from app.schemas.validation import (
    ValidationOutcome, ValidationRequest, ValidationResult, AttendanceResponse,
)
from app.schemas.report import FinancialSummary, AttendanceSummary

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "EventCreate", "EventUpdate", "EventResponse", "EventListResponse",
    "RegistrationCreate", "RegistrationResponse", "RegistrationDetail",
    "RegistrationConfirmation", "PaymentStatusUpdate", "PaymentResponse",
    "ValidationOutcome", "ValidationRequest", "ValidationResult", "AttendanceResponse",
    "FinancialSummary", "AttendanceSummary",
]
