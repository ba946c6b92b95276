"""
Registration endpoints: public intake and confirmation, operator administration.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.registration import (
    PaymentResponse,
    PaymentStatus,
    PaymentStatusUpdate,
    RegistrationConfirmation,
    RegistrationCreate,
    RegistrationDetail,
    RegistrationResponse,
)
from app.services import registration_service
from app.core.security import get_current_user

router = APIRouter(prefix="/registrations", tags=["Registrations"])


@router.post("/", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
async def create_registration_endpoint(
    registration_data: RegistrationCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Public intake. Creates a pending registration and returns its validation
    code; 409 if this national ID is already registered for the event.
    """
    return await registration_service.create_registration(db, registration_data)


@router.get("/confirmation/{validation_code}", response_model=RegistrationConfirmation)
async def confirmation_endpoint(validation_code: str, db: AsyncSession = Depends(get_db)):
    return await registration_service.get_confirmation(db, validation_code)


@router.get(
    "/",
    response_model=list[RegistrationResponse],
    dependencies=[Depends(get_current_user)],
)
async def list_registrations_endpoint(
    event_id: Optional[int] = Query(None),
    payment_status: Optional[list[PaymentStatus]] = Query(None),
    search: Optional[str] = Query(None, max_length=255),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    return await registration_service.list_registrations(
        db,
        event_id=event_id,
        statuses=payment_status,
        search=search,
        limit=limit,
    )


@router.get(
    "/{registration_id}",
    response_model=RegistrationDetail,
    dependencies=[Depends(get_current_user)],
)
async def get_registration_endpoint(registration_id: int, db: AsyncSession = Depends(get_db)):
    registration = await registration_service.get_registration(db, registration_id)
    attendance = await registration_service.get_attendance(db, registration_id)
    detail = RegistrationDetail.model_validate(registration)
    detail.validated_at = attendance.validated_at if attendance else None
    return detail


@router.patch(
    "/{registration_id}/status",
    response_model=RegistrationResponse,
    dependencies=[Depends(get_current_user)],
)
async def update_status_endpoint(
    registration_id: int,
    update: PaymentStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await registration_service.update_payment_status(
        db, registration_id, update.payment_status
    )


@router.delete(
    "/{registration_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_current_user)],
)
async def delete_registration_endpoint(registration_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a registration and its payments. 409 once it has been checked in."""
    await registration_service.delete_registration(db, registration_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{registration_id}/payments",
    response_model=list[PaymentResponse],
    dependencies=[Depends(get_current_user)],
)
async def list_payments_endpoint(registration_id: int, db: AsyncSession = Depends(get_db)):
    return await registration_service.list_payments(db, registration_id)
