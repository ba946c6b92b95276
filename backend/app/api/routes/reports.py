"""
Report endpoints: CSV export and recomputed summaries.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.registration import PaymentStatus
from app.schemas.report import AttendanceSummary, FinancialSummary
from app.services import report_service
from app.core.security import get_current_user

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/registrations.csv")
async def export_registrations_endpoint(
    event_id: Optional[int] = Query(None),
    payment_status: Optional[list[PaymentStatus]] = Query(None),
    search: Optional[str] = Query(None, max_length=255),
    db: AsyncSession = Depends(get_db),
):
    """
    Download the filtered registrations as CSV.
    404 with "No registrations to export" when the filter matches nothing.
    """
    content = await report_service.export_registrations_csv(
        db, event_id=event_id, statuses=payment_status, search=search
    )
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d")
    scope = f"event-{event_id}" if event_id is not None else "all"
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="registrations-{scope}-{stamp}.csv"'},
    )


@router.get("/financial", response_model=FinancialSummary)
async def financial_endpoint(
    event_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await report_service.financial_summary(db, event_id)


@router.get("/attendance", response_model=AttendanceSummary)
async def attendance_endpoint(event_id: int = Query(...), db: AsyncSession = Depends(get_db)):
    return await report_service.attendance_summary(db, event_id)
