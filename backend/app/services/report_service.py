"""
Administrative reports: CSV export, financial summary and attendance summary.

Every figure is recomputed from the record store on each call; nothing is
kept as a running counter.
"""

import csv
import io
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.attendance import Attendance
from app.models.event import Event
from app.models.registration import Registration
from app.schemas.report import AttendanceSummary, FinancialSummary
from app.services import record_store
from app.services.registration_service import list_registrations
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger

logger = get_logger(__name__)

EXPORT_COLUMNS = [
    ("Full Name", lambda r, e: r.full_name),
    ("National ID", lambda r, e: r.national_id),
    ("Phone", lambda r, e: r.phone),
    ("Address", lambda r, e: r.address),
    ("Event", lambda r, e: e.get(r.event_id, "")),
    ("Payment Status", lambda r, e: r.payment_status),
    ("Paid Amount", lambda r, e: _money(r.paid_amount) if r.paid_amount is not None else ""),
    ("Registration Date", lambda r, e: _timestamp(r.registration_date)),
    ("Payment Date", lambda r, e: _timestamp(r.payment_date)),
    ("Validation Code", lambda r, e: r.validation_code),
    ("Injury Notes", lambda r, e: r.injury_notes or ""),
    ("Treatment Notes", lambda r, e: r.treatment_notes or ""),
]


def _money(value) -> str:
    return f"{Decimal(value):.2f}"


def _timestamp(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else ""


def render_csv(registrations: list[Registration], event_names: dict[int, str]) -> str:
    """Header row of labels, then one row per registration; csv quotes as needed."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([label for label, _ in EXPORT_COLUMNS])
    for registration in registrations:
        writer.writerow([extract(registration, event_names) for _, extract in EXPORT_COLUMNS])
    return buffer.getvalue()


async def export_registrations_csv(
    db: AsyncSession,
    event_id: Optional[int] = None,
    statuses: Optional[Iterable[str]] = None,
    search: Optional[str] = None,
) -> str:
    registrations = await list_registrations(db, event_id=event_id, statuses=statuses, search=search)
    if not registrations:
        logger.info("export_skipped", event_id=event_id, reason="no_data")
        raise NotFoundError("No registrations to export")

    events = await record_store.fetch_rows(
        db, Event, members={"id": {r.event_id for r in registrations}}
    )
    content = render_csv(registrations, {e.id: e.name for e in events})
    logger.info("registrations_exported", event_id=event_id, rows=len(registrations))
    return content


async def financial_summary(db: AsyncSession, event_id: Optional[int] = None) -> FinancialSummary:
    registrations = await list_registrations(db, event_id=event_id)
    by_status = {status: 0 for status in ("pending", "paid", "cancelled", "expired")}
    collected = Decimal("0")
    for registration in registrations:
        by_status[registration.payment_status] = by_status.get(registration.payment_status, 0) + 1
        if registration.payment_status == "paid":
            collected += Decimal(registration.paid_amount or 0)

    return FinancialSummary(
        event_id=event_id,
        total_collected=float(collected),
        paid=by_status["paid"],
        pending=by_status["pending"],
        cancelled=by_status["cancelled"],
        expired=by_status["expired"],
    )


async def attendance_summary(db: AsyncSession, event_id: int) -> AttendanceSummary:
    await record_store.get_by_id(db, Event, event_id, label="Event")
    registrations = await list_registrations(db, event_id=event_id)
    paid_ids = [r.id for r in registrations if r.payment_status == "paid"]

    validated = 0
    if registrations:
        attendances = await record_store.fetch_rows(
            db, Attendance, members={"registration_id": [r.id for r in registrations]}
        )
        validated = len(attendances)

    return AttendanceSummary(
        event_id=event_id,
        registrations=len(registrations),
        paid=len(paid_ids),
        validated=validated,
        awaiting_check_in=max(len(paid_ids) - validated, 0),
    )
