"""
Registration intake and administration.

Intake creates a pending registration for an active event. The national ID
is unique per event; the database constraint is the only guard, and its
violation is turned into the "already registered" message here.

Administration covers listing/searching, payment status transitions and
guarded deletion. `occupied_slots` on the event is left alone by intake.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.attendance import Attendance
from app.models.event import Event
from app.models.payment import Payment
from app.models.registration import Registration
from app.schemas.registration import RegistrationCreate
from app.services import record_store
from app.services.codes import build_qr_payload, generate_validation_code
from app.core.config import get_settings
from app.core.exceptions import ConstraintViolation, NotFoundError, StateConflict
from app.core.logging import get_logger
from app.core.metrics import registrations_created, registration_rejections

logger = get_logger(__name__)

MAX_CODE_ATTEMPTS = 3
DUPLICATE_MESSAGE = "This national ID is already registered for this event"


async def create_registration(db: AsyncSession, data: RegistrationCreate) -> Registration:
    """Create a pending registration with a fresh validation code."""
    event = await record_store.get_by_id(db, Event, data.event_id, label="Event")
    if event.status != "active":
        registration_rejections.labels(reason="inactive_event").inc()
        raise StateConflict("Registrations are closed for this event")

    settings = get_settings()
    for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
        registration = Registration(
            **data.model_dump(),
            payment_status="pending",
            validation_code=generate_validation_code(settings.VALIDATION_CODE_LENGTH),
        )
        try:
            registration = await record_store.insert_row(db, registration)
            break
        except ConstraintViolation as e:
            if e.constraint == "uq_registration_event_national_id":
                registration_rejections.labels(reason="duplicate").inc()
                logger.warning(
                    "registration_failed",
                    reason="duplicate_national_id",
                    event_id=data.event_id,
                    national_id=data.national_id,
                )
                raise ConstraintViolation(DUPLICATE_MESSAGE, constraint=e.constraint) from e
            if e.constraint != "ix_registrations_validation_code" or attempt == MAX_CODE_ATTEMPTS:
                raise
            logger.info("validation_code_collision", attempt=attempt)

    registration = await record_store.update_row(
        db,
        registration,
        {
            "qr_payload": build_qr_payload(
                registration.validation_code,
                registration.full_name,
                registration.id,
            )
        },
    )

    registrations_created.inc()
    logger.info(
        "registration_created",
        registration_id=registration.id,
        event_id=registration.event_id,
    )
    return registration


async def get_confirmation(db: AsyncSession, validation_code: str) -> Registration:
    registration = await record_store.fetch_one(db, Registration, validation_code=validation_code)
    if registration is None:
        raise NotFoundError("Registration not found")
    return registration


def _matches(registration: Registration, needle: str) -> bool:
    digits = "".join(ch for ch in needle if ch.isdigit())
    national_id_digits = "".join(ch for ch in registration.national_id if ch.isdigit())
    return (
        needle in registration.full_name.lower()
        or needle in registration.validation_code.lower()
        or (bool(digits) and digits in national_id_digits)
    )


async def list_registrations(
    db: AsyncSession,
    event_id: Optional[int] = None,
    statuses: Optional[Iterable[str]] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[Registration]:
    """
    Registrations newest first. `search` matches name or validation code
    (case-insensitive) or national ID digits.
    """
    equals = {"event_id": event_id} if event_id is not None else {}
    members = {"payment_status": list(statuses)} if statuses else {}

    registrations = await record_store.fetch_rows(
        db,
        Registration,
        equals=equals,
        members=members,
        order_by="registration_date",
        descending=True,
    )

    if search and search.strip():
        needle = search.strip().lower()
        registrations = [r for r in registrations if _matches(r, needle)]

    if limit:
        registrations = registrations[:limit]
    return registrations


async def get_registration(db: AsyncSession, registration_id: int) -> Registration:
    return await record_store.get_by_id(db, Registration, registration_id, label="Registration")


async def get_attendance(db: AsyncSession, registration_id: int) -> Optional[Attendance]:
    return await record_store.fetch_one(db, Attendance, registration_id=registration_id)


async def update_payment_status(
    db: AsyncSession,
    registration_id: int,
    payment_status: str,
) -> Registration:
    """
    Move a registration to another payment status. Entering "paid" stamps the
    payment date and the amount (the recorded amount, or the event fee).
    """
    registration = await get_registration(db, registration_id)
    previous = registration.payment_status
    values = {"payment_status": payment_status}

    if payment_status == "paid" and previous != "paid":
        amount = registration.paid_amount
        if not amount or amount <= 0:
            event = await record_store.get_by_id(db, Event, registration.event_id, label="Event")
            amount = event.fee if event.fee is not None else Decimal("0")
        values["payment_date"] = datetime.now(timezone.utc)
        values["paid_amount"] = amount

    registration = await record_store.update_row(db, registration, values)
    logger.info(
        "payment_status_changed",
        registration_id=registration_id,
        previous=previous,
        current=payment_status,
    )
    return registration


async def delete_registration(db: AsyncSession, registration_id: int) -> None:
    """Delete a registration and its payments unless it has been checked in."""
    await get_registration(db, registration_id)

    if await get_attendance(db, registration_id) is not None:
        logger.warning("registration_delete_blocked", registration_id=registration_id, reason="attended")
        raise StateConflict("Registration has a recorded check-in and cannot be deleted")

    payments_deleted = await record_store.delete_where(db, Payment, registration_id=registration_id)
    await record_store.delete_row(db, Registration, registration_id)
    logger.info(
        "registration_deleted",
        registration_id=registration_id,
        payments_deleted=payments_deleted,
    )


async def list_payments(db: AsyncSession, registration_id: int) -> list[Payment]:
    await get_registration(db, registration_id)
    return await record_store.fetch_rows(
        db,
        Payment,
        equals={"registration_id": registration_id},
        order_by="created_at",
        descending=True,
    )
