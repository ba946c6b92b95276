"""
Tests for attendance validation: the decision order, the single write, and
the guard against duplicate check-ins.
"""

import json
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.models.attendance import Attendance
from app.models.payment import Payment
from app.schemas.validation import ValidationOutcome
from app.services import record_store
from app.services.validation_service import validate_code


async def _attendance_count(db_session) -> int:
    return (await db_session.execute(select(func.count(Attendance.id)))).scalar()


@pytest.mark.asyncio
async def test_unknown_code_is_not_found(db_session, paid_registration):
    result = await validate_code(db_session, "UNKNOWN1", validated_by="frontdesk", device="Web Admin")
    assert result.outcome == ValidationOutcome.NOT_FOUND
    assert result.participant_name is None
    assert await _attendance_count(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["pending", "cancelled", "expired"])
async def test_unpaid_registration_requires_payment(
    db_session, active_event, registration_factory, status
):
    registration = await registration_factory(active_event, payment_status=status)
    result = await validate_code(
        db_session, registration.validation_code, validated_by="frontdesk", device="Web Admin"
    )
    assert result.outcome == ValidationOutcome.PAYMENT_REQUIRED
    assert result.participant_name == "Maria Souza"
    assert await _attendance_count(db_session) == 0


@pytest.mark.asyncio
async def test_paid_registration_is_validated_once(db_session, paid_registration):
    code = paid_registration.validation_code
    registration_id = paid_registration.id

    first = await validate_code(db_session, code, validated_by="frontdesk", device="Web Admin")
    await db_session.commit()
    assert first.outcome == ValidationOutcome.VALIDATED
    assert first.participant_name == "João Pereira"
    assert first.validated_at is not None

    attendance = (await db_session.execute(select(Attendance))).scalar_one()
    assert attendance.registration_id == registration_id
    assert attendance.validation_code == code
    assert attendance.validated_by == "frontdesk"
    assert attendance.validating_device == "Web Admin"

    second = await validate_code(db_session, code, validated_by="frontdesk", device="Web Admin")
    assert second.outcome == ValidationOutcome.ALREADY_VALIDATED
    assert second.validated_at == attendance.validated_at
    assert await _attendance_count(db_session) == 1


@pytest.mark.asyncio
async def test_code_is_trimmed(db_session, paid_registration):
    result = await validate_code(
        db_session, f"  {paid_registration.validation_code}\n", validated_by="frontdesk", device="Web Admin"
    )
    assert result.outcome == ValidationOutcome.VALIDATED


@pytest.mark.asyncio
async def test_racing_insert_reports_error_without_second_row(db_session, paid_registration, monkeypatch):
    """A scan that misses the other scan's row in the pre-check loses on the constraint."""
    code = paid_registration.validation_code

    first = await validate_code(db_session, code, validated_by="desk-1", device="Web Admin")
    await db_session.commit()
    assert first.outcome == ValidationOutcome.VALIDATED

    original_fetch_one = record_store.fetch_one

    async def stale_fetch_one(db, model, **equals):
        if model is Attendance:
            return None
        return await original_fetch_one(db, model, **equals)

    monkeypatch.setattr(record_store, "fetch_one", stale_fetch_one)

    second = await validate_code(db_session, code, validated_by="desk-2", device="QR Code Scanner")
    assert second.outcome == ValidationOutcome.ERROR
    assert second.participant_name == "João Pereira"
    assert await _attendance_count(db_session) == 1


@pytest.mark.asyncio
async def test_transport_failure_reports_error(db_session, paid_registration, monkeypatch):
    code = paid_registration.validation_code

    async def broken_execute(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr(db_session, "execute", broken_execute)
    result = await validate_code(db_session, code, validated_by="frontdesk", device="Web Admin")
    monkeypatch.undo()

    assert result.outcome == ValidationOutcome.ERROR
    assert await _attendance_count(db_session) == 0


# API


@pytest.mark.asyncio
async def test_validate_requires_operator(client: AsyncClient, paid_registration):
    response = await client.post("/api/v1/validations/", json={"code": "PAID0001"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_validate_endpoint_records_operator_and_device(
    client: AsyncClient, auth_headers, db_session, paid_registration
):
    response = await client.post(
        "/api/v1/validations/", json={"code": "PAID0001"}, headers=auth_headers
    )
    assert response.status_code == 201
    data = response.json()
    assert data["outcome"] == "validated"
    assert data["participant_name"] == "João Pereira"
    assert data["registration_id"] == paid_registration.id

    attendance = (await db_session.execute(select(Attendance))).scalar_one()
    assert attendance.validated_by == "frontdesk"
    assert attendance.validating_device == "Web Admin"


@pytest.mark.asyncio
async def test_validate_endpoint_sequential_retry(client: AsyncClient, auth_headers, db_session, paid_registration):
    first = await client.post("/api/v1/validations/", json={"code": "PAID0001"}, headers=auth_headers)
    second = await client.post("/api/v1/validations/", json={"code": "PAID0001"}, headers=auth_headers)

    assert first.json()["outcome"] == "validated"
    assert second.status_code == 409
    assert second.json()["outcome"] == "already_validated"
    assert second.json()["validated_at"] is not None
    assert await _attendance_count(db_session) == 1


@pytest.mark.asyncio
async def test_validate_structured_scan_payload(client: AsyncClient, auth_headers, db_session, paid_registration):
    payload = json.dumps({
        "code": "PAID0001",
        "name": "João Pereira",
        "registration_id": paid_registration.id,
        "generated_at": "2026-10-01T10:00:00+00:00",
    })
    response = await client.post(
        "/api/v1/validations/",
        json={"payload": payload, "source": "camera"},
        headers=auth_headers,
    )
    assert response.status_code == 201

    attendance = (await db_session.execute(select(Attendance))).scalar_one()
    assert attendance.validation_code == "PAID0001"
    assert attendance.validating_device == "QR Code Scanner"


@pytest.mark.asyncio
async def test_validate_endpoint_not_found(client: AsyncClient, auth_headers):
    response = await client.post("/api/v1/validations/", json={"code": "NOPE0000"}, headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["outcome"] == "not_found"
    assert response.json()["message"] == "Validation code not found."


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"code": ""}, {"payload": "   "}])
async def test_validate_endpoint_requires_code(client: AsyncClient, auth_headers, body):
    response = await client.post("/api/v1/validations/", json=body, headers=auth_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_validations_by_event(
    client: AsyncClient, auth_headers, paid_registration, event_factory, registration_factory
):
    other_event = await event_factory(name="Other Day")
    other = await registration_factory(
        other_event, validation_code="OTHER001", payment_status="paid"
    )
    await client.post("/api/v1/validations/", json={"code": "PAID0001"}, headers=auth_headers)
    await client.post("/api/v1/validations/", json={"code": "OTHER001"}, headers=auth_headers)

    response = await client.get(
        "/api/v1/validations/", params={"event_id": other_event.id}, headers=auth_headers
    )
    assert response.status_code == 200
    assert [a["registration_id"] for a in response.json()] == [other.id]

    response = await client.get("/api/v1/validations/", headers=auth_headers)
    assert len(response.json()) == 2


@pytest.mark.asyncio
async def test_checked_in_registration_cannot_be_deleted(
    client: AsyncClient, auth_headers, db_session, paid_registration
):
    registration_id = paid_registration.id
    db_session.add(Payment(registration_id=registration_id, amount=Decimal("50.00"), status="paid"))
    await db_session.commit()
    await client.post("/api/v1/validations/", json={"code": "PAID0001"}, headers=auth_headers)

    response = await client.delete(f"/api/v1/registrations/{registration_id}", headers=auth_headers)
    assert response.status_code == 409

    response = await client.get(f"/api/v1/registrations/{registration_id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["validated_at"] is not None

    payments = (await db_session.execute(
        select(func.count(Payment.id)).where(Payment.registration_id == registration_id)
    )).scalar()
    assert payments == 1


@pytest.mark.asyncio
async def test_blank_payload_falls_back_to_typed_code(
    client: AsyncClient, auth_headers, paid_registration
):
    response = await client.post(
        "/api/v1/validations/",
        json={"code": "PAID0001", "payload": "   "},
        headers=auth_headers,
    )
    assert response.status_code == 201
    assert response.json()["outcome"] == "validated"
