"""
Event service handling CRUD operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.event import Event
from app.models.registration import Registration
from app.schemas.event import EventCreate, EventUpdate, as_utc
from app.services import record_store
from app.core.exceptions import InvalidInput, StateConflict
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_event(db: AsyncSession, event_data: EventCreate) -> Event:
    """Create a new active event with no occupied slots."""
    event = await record_store.insert_row(
        db,
        Event(
            **event_data.model_dump(),
            occupied_slots=0,
            status="active",
        ),
    )
    logger.info("event_created", event_id=event.id, name=event.name, slots=event.total_slots)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID."""
    return await record_store.get_by_id(db, Event, event_id, label="Event")


async def list_active_events(db: AsyncSession) -> list[Event]:
    """Events open for registration, soonest first."""
    return await record_store.fetch_rows(
        db, Event, equals={"status": "active"}, order_by="event_date"
    )


async def list_all_events(db: AsyncSession) -> list[Event]:
    return await record_store.fetch_rows(db, Event, order_by="created_at", descending=True)


async def update_event(db: AsyncSession, event_id: int, event_data: EventUpdate) -> Event:
    event = await get_event(db, event_id)
    values = event_data.model_dump(exclude_unset=True)

    start = values.get("event_date", event.event_date)
    end = values.get("event_end_date", event.event_end_date)
    if end is not None and as_utc(end) < as_utc(start):
        logger.warning("event_update_rejected", event_id=event_id, reason="end_before_start")
        raise InvalidInput("event_end_date must not precede event_date")

    event = await record_store.update_row(db, event, values)
    logger.info("event_updated", event_id=event_id, fields=sorted(values))
    return event


async def toggle_event_status(db: AsyncSession, event_id: int) -> Event:
    event = await get_event(db, event_id)
    new_status = "inactive" if event.status == "active" else "active"
    event = await record_store.update_row(db, event, {"status": new_status})
    logger.info("event_status_changed", event_id=event_id, status=new_status)
    return event


async def delete_event(db: AsyncSession, event_id: int) -> None:
    """
    Delete an event. Rejected while any slot is occupied or any registration
    still points at it.
    """
    event = await get_event(db, event_id)

    if event.occupied_slots > 0:
        logger.warning("event_delete_blocked", event_id=event_id, reason="occupied_slots")
        raise StateConflict(
            f"Event has {event.occupied_slots} occupied slots and cannot be deleted"
        )

    if await record_store.fetch_one(db, Registration, event_id=event_id) is not None:
        logger.warning("event_delete_blocked", event_id=event_id, reason="registrations")
        raise StateConflict("Event has registrations and cannot be deleted")

    await record_store.delete_row(db, Event, event_id)
    logger.info("event_deleted", event_id=event_id)
