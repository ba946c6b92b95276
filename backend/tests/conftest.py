"""
Pytest fixtures for test database, client, and authentication.

Tests run against an in-memory SQLite database by default; set
TEST_DATABASE_URL to a PostgreSQL URL to run them against the real dialect.
Tables are created and dropped around every test.
"""

import os

# Configure the app before it is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["REDIS_ENABLED"] = "false"
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.core.security import create_access_token, hash_password
from app.models.user import User
from app.models.event import Event
from app.models.registration import Registration

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")


def _make_engine():
    if TEST_DATABASE_URL.startswith("sqlite"):
        return create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    engine = _make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client sharing the test session; commits per request like get_db."""

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """An operator account."""
    user = User(
        email="staff@example.com",
        username="frontdesk",
        hashed_password=hash_password("testpassword123"),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def auth_token(test_user: User) -> str:
    return create_access_token(data={"sub": str(test_user.id)})


@pytest_asyncio.fixture
async def auth_headers(auth_token: str) -> dict:
    return {"Authorization": f"Bearer {auth_token}"}


async def make_event(db: AsyncSession, **overrides) -> Event:
    fields = dict(
        name="Physio Outreach Day",
        description="Free assessments and treatment",
        location="Community Health Center",
        event_date=datetime.now(timezone.utc) + timedelta(days=30),
        total_slots=10,
        occupied_slots=0,
        fee=Decimal("50.00"),
        status="active",
    )
    fields.update(overrides)
    event = Event(**fields)
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


async def make_registration(db: AsyncSession, event: Event, **overrides) -> Registration:
    fields = dict(
        event_id=event.id,
        full_name="Maria Souza",
        national_id="123.456.789-09",
        address="Rua das Flores, 100",
        phone="(11) 98765-4321",
        injury_notes="Lower back pain",
        treatment_notes="None so far",
        payment_status="pending",
        validation_code="ABC12345",
    )
    fields.update(overrides)
    registration = Registration(**fields)
    db.add(registration)
    await db.commit()
    await db.refresh(registration)
    return registration


@pytest_asyncio.fixture
async def active_event(db_session: AsyncSession) -> Event:
    return await make_event(db_session)


@pytest_asyncio.fixture
async def inactive_event(db_session: AsyncSession) -> Event:
    return await make_event(db_session, name="Closed Clinic", status="inactive")


@pytest_asyncio.fixture
async def pending_registration(db_session: AsyncSession, active_event: Event) -> Registration:
    return await make_registration(db_session, active_event)


@pytest_asyncio.fixture
async def paid_registration(db_session: AsyncSession, active_event: Event) -> Registration:
    return await make_registration(
        db_session,
        active_event,
        full_name="João Pereira",
        national_id="987.654.321-00",
        validation_code="PAID0001",
        payment_status="paid",
        paid_amount=Decimal("50.00"),
        payment_date=datetime.now(timezone.utc),
    )


@pytest_asyncio.fixture
async def event_factory(db_session: AsyncSession):
    async def factory(**overrides) -> Event:
        return await make_event(db_session, **overrides)
    return factory


@pytest_asyncio.fixture
async def registration_factory(db_session: AsyncSession):
    async def factory(event: Event, **overrides) -> Registration:
        return await make_registration(db_session, event, **overrides)
    return factory
