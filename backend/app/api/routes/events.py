"""
Event endpoints. The public listing is cached in Redis; every mutation
invalidates it.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.event import EventCreate, EventUpdate, EventResponse, EventListResponse
from app.services import event_service
from app.services.cache_service import (
    get_cached_active_events,
    set_cached_active_events,
    invalidate_event_cache,
)
from app.core.security import get_current_user
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.get("/", response_model=EventListResponse)
async def list_active_events_endpoint(db: AsyncSession = Depends(get_db)):
    """Active events open for registration, soonest first."""
    cached = await get_cached_active_events()
    if cached:
        cached["cached"] = True
        return EventListResponse(**cached)

    events = await event_service.list_active_events(db)
    response_data = {
        "events": [EventResponse.model_validate(e).model_dump() for e in events],
        "total": len(events),
        "cached": False,
    }
    await set_cached_active_events(response_data)
    return EventListResponse(**response_data)


@router.get("/all", response_model=EventListResponse, dependencies=[Depends(get_current_user)])
async def list_all_events_endpoint(db: AsyncSession = Depends(get_db)):
    """Every event including inactive ones, newest first."""
    events = await event_service.list_all_events(db)
    return EventListResponse(
        events=[EventResponse.model_validate(e) for e in events],
        total=len(events),
    )


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    return await event_service.get_event(db, event_id)


@router.post(
    "/",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_user)],
)
async def create_event_endpoint(event_data: EventCreate, db: AsyncSession = Depends(get_db)):
    event = await event_service.create_event(db, event_data)
    await invalidate_event_cache()
    return event


@router.patch("/{event_id}", response_model=EventResponse, dependencies=[Depends(get_current_user)])
async def update_event_endpoint(
    event_id: int,
    event_data: EventUpdate,
    db: AsyncSession = Depends(get_db),
):
    event = await event_service.update_event(db, event_id, event_data)
    await invalidate_event_cache()
    return event


@router.post("/{event_id}/toggle", response_model=EventResponse, dependencies=[Depends(get_current_user)])
async def toggle_event_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    """Activate an inactive event or deactivate an active one."""
    event = await event_service.toggle_event_status(db, event_id)
    await invalidate_event_cache()
    return event


@router.delete(
    "/{event_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_current_user)],
)
async def delete_event_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    """Delete an event. 409 while slots are occupied or registrations exist."""
    await event_service.delete_event(db, event_id)
    await invalidate_event_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
