"""
Record store access shared by every service.

The contract is small: filtered reads, insert, update-by-id and
delete-by-id. Services never build their own sessions or transactions; the
request-scoped session from `get_db` owns the transaction.

RETRY POLICY
============

Reads are retried up to DB_READ_RETRY_ATTEMPTS times when the driver reports
a transport-level failure (dropped connection, server restart). Writes are
never retried: a write that fails halfway may or may not have landed, and the
caller has to decide what to do about that.

Insert failures caused by a unique constraint surface as ConstraintViolation
carrying the constraint name, so callers can turn specific conflicts into
specific messages. Everything else surfaces as TransportError.
"""

from typing import Any, Iterable, Optional, Type, TypeVar

from sqlalchemy import select, delete
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import ConstraintViolation, NotFoundError, TransportError
from app.core.logging import get_logger
from app.core.metrics import db_retries, record_db_operation

logger = get_logger(__name__)

T = TypeVar("T")

# Postgres reports the constraint name; SQLite reports the column list.
UNIQUE_SIGNATURES = {
    "uq_registration_event_national_id": (
        "uq_registration_event_national_id",
        "registrations.event_id, registrations.national_id",
    ),
    "uq_attendance_registration": (
        "uq_attendance_registration",
        "attendances.registration_id",
    ),
    "ix_registrations_validation_code": (
        "ix_registrations_validation_code",
        "registrations.validation_code",
    ),
    "ix_users_email": ("ix_users_email", "users.email"),
    "ix_users_username": ("ix_users_username", "users.username"),
}


def violated_constraint(exc: IntegrityError) -> Optional[str]:
    """Name of the unique constraint behind an IntegrityError, if any."""
    message = str(exc.orig)
    lowered = message.lower()
    if "unique" not in lowered and "duplicate key" not in lowered:
        return None
    for name, signatures in UNIQUE_SIGNATURES.items():
        if any(signature in message for signature in signatures):
            return name
    return "unique"


def _is_transient(exc: DBAPIError) -> bool:
    return isinstance(exc, OperationalError) or exc.connection_invalidated


async def _run_read(db: AsyncSession, statement, model_name: str):
    attempts = get_settings().DB_READ_RETRY_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            record_db_operation("read")
            return await db.execute(statement)
        except DBAPIError as e:
            if not _is_transient(e):
                logger.error("record_store_read_failed", model=model_name, error=str(e))
                raise TransportError() from e
            logger.warning(
                "record_store_read_retry",
                model=model_name,
                attempt=attempt,
                error=str(e),
            )
            db_retries.inc()
            await db.rollback()
            if attempt == attempts:
                raise TransportError() from e


async def fetch_rows(
    db: AsyncSession,
    model: Type[T],
    *,
    equals: Optional[dict[str, Any]] = None,
    members: Optional[dict[str, Iterable[Any]]] = None,
    order_by: Optional[str] = None,
    descending: bool = False,
    limit: Optional[int] = None,
) -> list[T]:
    """
    Filtered read: equality predicates, set-membership predicates,
    one ordering column and an optional row limit.
    """
    query = select(model)
    for column, value in (equals or {}).items():
        query = query.where(getattr(model, column) == value)
    for column, values in (members or {}).items():
        query = query.where(getattr(model, column).in_(list(values)))
    if order_by:
        column = getattr(model, order_by)
        query = query.order_by(column.desc() if descending else column.asc())
    if limit:
        query = query.limit(limit)

    result = await _run_read(db, query, model.__name__)
    return list(result.scalars().all())


async def fetch_one(db: AsyncSession, model: Type[T], **equals: Any) -> Optional[T]:
    """Single-row read by equality predicates; None when nothing matches."""
    rows = await fetch_rows(db, model, equals=equals, limit=1)
    return rows[0] if rows else None


async def get_by_id(db: AsyncSession, model: Type[T], row_id: int, label: Optional[str] = None) -> T:
    row = await fetch_one(db, model, id=row_id)
    if row is None:
        raise NotFoundError(f"{label or model.__name__} {row_id} not found")
    return row


async def insert_row(db: AsyncSession, row: T) -> T:
    """Insert and return the stored row with server defaults populated."""
    db.add(row)
    try:
        record_db_operation("insert")
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        constraint = violated_constraint(e)
        logger.warning(
            "record_store_insert_conflict",
            model=type(row).__name__,
            constraint=constraint,
        )
        raise ConstraintViolation("Record conflicts with an existing one", constraint=constraint) from e
    except DBAPIError as e:
        await db.rollback()
        logger.error("record_store_insert_failed", model=type(row).__name__, error=str(e))
        raise TransportError() from e

    await db.refresh(row)
    return row


async def update_row(db: AsyncSession, row: T, values: dict[str, Any]) -> T:
    """Apply `values` to a loaded row and write them back."""
    for column, value in values.items():
        setattr(row, column, value)
    try:
        record_db_operation("update")
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        constraint = violated_constraint(e)
        logger.warning(
            "record_store_update_conflict",
            model=type(row).__name__,
            constraint=constraint,
        )
        raise ConstraintViolation("Update conflicts with a stored constraint", constraint=constraint) from e
    except DBAPIError as e:
        await db.rollback()
        logger.error("record_store_update_failed", model=type(row).__name__, error=str(e))
        raise TransportError() from e

    await db.refresh(row)
    return row


async def delete_where(db: AsyncSession, model: Type[T], **equals: Any) -> int:
    """Delete every row matching the equality predicates; returns the count."""
    statement = delete(model)
    for column, value in equals.items():
        statement = statement.where(getattr(model, column) == value)
    try:
        record_db_operation("delete")
        result = await db.execute(statement)
    except DBAPIError as e:
        await db.rollback()
        logger.error("record_store_delete_failed", model=model.__name__, error=str(e))
        raise TransportError() from e
    return result.rowcount


async def delete_row(db: AsyncSession, model: Type[T], row_id: int) -> None:
    await delete_where(db, model, id=row_id)
