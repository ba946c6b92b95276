"""
Check-in endpoints. One POST per scan or typed code.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.user import User
from app.schemas.validation import (
    AttendanceResponse,
    ValidationOutcome,
    ValidationRequest,
    ValidationResult,
)
from app.services.codes import decode_scan_payload
from app.services.validation_service import list_attendances, validate_code
from app.core.config import get_settings
from app.core.security import get_current_user

router = APIRouter(prefix="/validations", tags=["Validations"])

OUTCOME_STATUS = {
    ValidationOutcome.VALIDATED: status.HTTP_201_CREATED,
    ValidationOutcome.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ValidationOutcome.PAYMENT_REQUIRED: status.HTTP_409_CONFLICT,
    ValidationOutcome.ALREADY_VALIDATED: status.HTTP_409_CONFLICT,
    ValidationOutcome.ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@router.post("/", response_model=ValidationResult)
async def validate_endpoint(
    request: ValidationRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Validate a participant's code and record the check-in.

    The body always carries the outcome; the status code mirrors it:
    201 validated, 404 unknown code, 409 payment missing or already checked
    in, 503 when the record store failed.
    """
    settings = get_settings()
    code = decode_scan_payload(request.payload or "") or decode_scan_payload(request.code or "")
    if not code:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Validation code required",
        )

    device = request.device or (
        settings.SCANNER_VALIDATING_DEVICE
        if request.source == "camera"
        else settings.DEFAULT_VALIDATING_DEVICE
    )
    result = await validate_code(db, code, validated_by=user.username, device=device)
    return JSONResponse(
        status_code=OUTCOME_STATUS[result.outcome],
        content=result.model_dump(mode="json"),
    )


@router.get("/", response_model=list[AttendanceResponse], dependencies=[Depends(get_current_user)])
async def list_validations_endpoint(
    event_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await list_attendances(db, event_id)
