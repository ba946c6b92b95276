"""
Tests for CSV export and recomputed summaries.
"""

import csv
import io

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_export_empty_event_returns_no_data(client: AsyncClient, auth_headers, active_event):
    response = await client.get(
        "/api/v1/reports/registrations.csv",
        params={"event_id": active_event.id},
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "No registrations to export"
    assert "content-disposition" not in response.headers


@pytest.mark.asyncio
async def test_export_csv(
    client: AsyncClient, auth_headers, active_event, registration_factory, paid_registration
):
    await registration_factory(
        active_event,
        full_name='Carlos "Cacá" Dias',
        national_id="111.444.777-35",
        address="Rua A, 10, Apto 2",
        validation_code="QUOTE001",
    )

    response = await client.get(
        "/api/v1/reports/registrations.csv",
        params={"event_id": active_event.id},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]

    text = response.content.decode("utf-8")
    assert '"Rua A, 10, Apto 2"' in text
    assert '"Carlos ""Cacá"" Dias"' in text

    rows = list(csv.reader(io.StringIO(text)))
    assert rows[0][:3] == ["Full Name", "National ID", "Phone"]
    assert len(rows) == 3
    by_code = {row[9]: row for row in rows[1:]}
    assert by_code["PAID0001"][4] == "Physio Outreach Day"
    assert by_code["PAID0001"][6] == "50.00"
    assert by_code["QUOTE001"][0] == 'Carlos "Cacá" Dias'


@pytest.mark.asyncio
async def test_export_respects_status_filter(
    client: AsyncClient, auth_headers, pending_registration, paid_registration
):
    response = await client.get(
        "/api/v1/reports/registrations.csv",
        params={"payment_status": "pending"},
        headers=auth_headers,
    )
    rows = list(csv.reader(io.StringIO(response.content.decode("utf-8"))))
    assert len(rows) == 2
    assert rows[1][0] == "Maria Souza"


@pytest.mark.asyncio
async def test_financial_summary(
    client: AsyncClient, auth_headers, active_event, registration_factory, paid_registration
):
    await registration_factory(active_event)
    await registration_factory(
        active_event, national_id="111.444.777-35", validation_code="CANC0001", payment_status="cancelled"
    )

    response = await client.get(
        "/api/v1/reports/financial", params={"event_id": active_event.id}, headers=auth_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total_collected"] == 50.0
    assert data["paid"] == 1
    assert data["pending"] == 1
    assert data["cancelled"] == 1
    assert data["expired"] == 0


@pytest.mark.asyncio
async def test_attendance_summary_is_recomputed(
    client: AsyncClient, auth_headers, active_event, pending_registration, paid_registration
):
    params = {"event_id": active_event.id}
    before = await client.get("/api/v1/reports/attendance", params=params, headers=auth_headers)
    assert before.json() == {
        "event_id": active_event.id,
        "registrations": 2,
        "paid": 1,
        "validated": 0,
        "awaiting_check_in": 1,
    }

    await client.post("/api/v1/validations/", json={"code": "PAID0001"}, headers=auth_headers)

    after = await client.get("/api/v1/reports/attendance", params=params, headers=auth_headers)
    assert after.json()["validated"] == 1
    assert after.json()["awaiting_check_in"] == 0


@pytest.mark.asyncio
async def test_reports_require_operator(client: AsyncClient, active_event):
    response = await client.get("/api/v1/reports/financial")
    assert response.status_code == 401
