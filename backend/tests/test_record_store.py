"""
Tests for the record store helpers: read retries and constraint signalling.
"""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from app.core.exceptions import ConstraintViolation, TransportError
from app.models.event import Event
from app.models.registration import Registration
from app.services import record_store


class FlakySession:
    """Stands in for AsyncSession; fails `failures` times before delegating."""

    def __init__(self, session, failures, error=None):
        self.session = session
        self.failures = failures
        self.error = error or OperationalError("SELECT", {}, Exception("server closed the connection"))
        self.calls = 0
        self.rollbacks = 0

    async def execute(self, statement):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return await self.session.execute(statement)

    async def rollback(self):
        self.rollbacks += 1


@pytest.mark.asyncio
async def test_read_retries_transient_failures(db_session, active_event):
    flaky = FlakySession(db_session, failures=2)
    event = await record_store.fetch_one(flaky, Event, id=active_event.id)
    assert event.id == active_event.id
    assert flaky.calls == 3
    assert flaky.rollbacks == 2


@pytest.mark.asyncio
async def test_read_gives_up_after_retry_budget(db_session, active_event):
    flaky = FlakySession(db_session, failures=10)
    with pytest.raises(TransportError) as exc_info:
        await record_store.fetch_one(flaky, Event, id=active_event.id)
    assert exc_info.value.status_code == 503
    assert flaky.calls == 3


@pytest.mark.asyncio
async def test_non_transient_read_error_is_not_retried(db_session):
    flaky = FlakySession(db_session, failures=1, error=ProgrammingError("SELECT", {}, Exception("syntax")))
    with pytest.raises(TransportError):
        await record_store.fetch_rows(flaky, Event)
    assert flaky.calls == 1


@pytest.mark.asyncio
async def test_fetch_rows_filters_and_orders(db_session, active_event, registration_factory):
    await registration_factory(active_event, full_name="B", validation_code="CODE0002", national_id="1")
    await registration_factory(
        active_event, full_name="A", validation_code="CODE0001", national_id="2", payment_status="paid"
    )
    await registration_factory(
        active_event, full_name="C", validation_code="CODE0003", national_id="3", payment_status="expired"
    )

    rows = await record_store.fetch_rows(
        db_session,
        Registration,
        equals={"event_id": active_event.id},
        members={"payment_status": ["pending", "paid"]},
        order_by="full_name",
    )
    assert [r.full_name for r in rows] == ["A", "B"]

    rows = await record_store.fetch_rows(db_session, Registration, order_by="full_name", descending=True, limit=1)
    assert [r.full_name for r in rows] == ["C"]


@pytest.mark.asyncio
async def test_insert_signals_unique_constraint(db_session, active_event, pending_registration):
    duplicate = Registration(
        event_id=active_event.id,
        full_name="Copy",
        national_id=pending_registration.national_id,
        address="Somewhere",
        phone="(11) 3333-4444",
        payment_status="pending",
        validation_code="OTHER999",
    )
    with pytest.raises(ConstraintViolation) as exc_info:
        await record_store.insert_row(db_session, duplicate)
    assert exc_info.value.constraint == "uq_registration_event_national_id"


@pytest.mark.asyncio
async def test_update_signals_constraint_instead_of_transport_error(db_session, active_event):
    with pytest.raises(ConstraintViolation) as exc_info:
        await record_store.update_row(db_session, active_event, {"name": None})
    assert exc_info.value.status_code == 409
    assert exc_info.value.constraint is None


def test_violated_constraint_reads_postgres_messages():
    error = IntegrityError(
        "INSERT",
        {},
        Exception('duplicate key value violates unique constraint "uq_attendance_registration"'),
    )
    assert record_store.violated_constraint(error) == "uq_attendance_registration"


def test_violated_constraint_ignores_other_integrity_errors():
    error = IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))
    assert record_store.violated_constraint(error) is None
