"""
Attendance validation: decide whether a presented code may check in, and
record the check-in exactly once.

DECISION ORDER
==============

  1. Registration by validation code     -> none:         NOT_FOUND
  2. Payment status                      -> not "paid":   PAYMENT_REQUIRED
  3. Existing attendance for the row     -> present:      ALREADY_VALIDATED
  4. Insert attendance                   -> ok:           VALIDATED
                                         -> failed:       ERROR

Steps 1-3 are reads with no side effects; step 4 is the only write. The same
path serves camera scans and typed codes; callers decode scanner payloads
with `decode_scan_payload` before calling in.

Concurrency:
  Steps 3 and 4 are not atomic. Two scans of the same code can both pass the
  read in step 3. The unique constraint on attendances.registration_id makes
  the second insert fail, and that attempt reports ERROR, so at most one
  attendance row exists per registration. A retry of the losing scan then
  reports ALREADY_VALIDATED.

Transport failures at any step report ERROR. Nothing is retried here beyond
the record store's own read retries; the operator re-submits the code.
"""

import time
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.attendance import Attendance
from app.models.registration import Registration
from app.schemas.validation import ValidationOutcome, ValidationResult
from app.services import record_store
from app.core.exceptions import ConstraintViolation, TransportError
from app.core.logging import get_logger
from app.core.metrics import record_validation, validation_latency

logger = get_logger(__name__)

MESSAGES = {
    ValidationOutcome.VALIDATED: "Check-in recorded.",
    ValidationOutcome.PAYMENT_REQUIRED: "Participant has no confirmed payment.",
    ValidationOutcome.ALREADY_VALIDATED: "This code has already been validated.",
    ValidationOutcome.NOT_FOUND: "Validation code not found.",
    ValidationOutcome.ERROR: "Could not validate the code. Please try again.",
}


def _result(outcome: ValidationOutcome, **fields) -> ValidationResult:
    record_validation(outcome.value)
    return ValidationResult(outcome=outcome, message=MESSAGES[outcome], **fields)


async def validate_code(
    db: AsyncSession,
    code: str,
    validated_by: str,
    device: str,
) -> ValidationResult:
    """Run one validation attempt for `code` and report its outcome."""
    code = code.strip()
    start = time.perf_counter()
    try:
        return await _decide(db, code, validated_by, device)
    except TransportError as e:
        logger.error("validation_failed", code=code, reason="transport", error=e.detail)
        return _result(ValidationOutcome.ERROR)
    finally:
        validation_latency.observe(time.perf_counter() - start)


async def _decide(
    db: AsyncSession,
    code: str,
    validated_by: str,
    device: str,
) -> ValidationResult:
    registration = await record_store.fetch_one(db, Registration, validation_code=code)
    if registration is None:
        logger.info("validation_rejected", code=code, reason="not_found")
        return _result(ValidationOutcome.NOT_FOUND)

    # Copied out before the insert: a failed insert rolls back and expires the row
    registration_id = registration.id
    participant_name = registration.full_name

    if registration.payment_status != "paid":
        logger.info(
            "validation_rejected",
            registration_id=registration_id,
            reason="payment_required",
            payment_status=registration.payment_status,
        )
        return _result(
            ValidationOutcome.PAYMENT_REQUIRED,
            participant_name=participant_name,
            registration_id=registration_id,
        )

    existing = await record_store.fetch_one(db, Attendance, registration_id=registration_id)
    if existing is not None:
        logger.info(
            "validation_rejected",
            registration_id=registration_id,
            reason="already_validated",
            validated_at=str(existing.validated_at),
        )
        return _result(
            ValidationOutcome.ALREADY_VALIDATED,
            participant_name=participant_name,
            registration_id=registration_id,
            validated_at=existing.validated_at,
        )

    try:
        attendance = await record_store.insert_row(
            db,
            Attendance(
                registration_id=registration_id,
                validation_code=code,
                validated_by=validated_by,
                validating_device=device,
            ),
        )
    except ConstraintViolation as e:
        logger.warning(
            "validation_insert_conflict",
            registration_id=registration_id,
            constraint=e.constraint,
        )
        return _result(
            ValidationOutcome.ERROR,
            participant_name=participant_name,
            registration_id=registration_id,
        )

    logger.info(
        "validation_recorded",
        registration_id=registration_id,
        attendance_id=attendance.id,
        validated_by=validated_by,
        device=device,
    )
    return _result(
        ValidationOutcome.VALIDATED,
        participant_name=participant_name,
        registration_id=registration_id,
        validated_at=attendance.validated_at,
    )


async def list_attendances(db: AsyncSession, event_id: Optional[int] = None) -> list[Attendance]:
    """Attendance rows, newest first, optionally limited to one event."""
    if event_id is None:
        return await record_store.fetch_rows(db, Attendance, order_by="validated_at", descending=True)

    registrations = await record_store.fetch_rows(db, Registration, equals={"event_id": event_id})
    if not registrations:
        return []
    return await record_store.fetch_rows(
        db,
        Attendance,
        members={"registration_id": [r.id for r in registrations]},
        order_by="validated_at",
        descending=True,
    )
