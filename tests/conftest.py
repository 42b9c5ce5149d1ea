"""Shared test fixtures for the ESG tracker test suite."""

import os

# Settings are read at import time; point them at SQLite before anything loads.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-esg-tracker-suite")

import uuid  # noqa: E402
from collections.abc import AsyncGenerator  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

import esg_tracker.models  # noqa: E402,F401
from esg_tracker.auth.dependencies import get_current_user  # noqa: E402
from esg_tracker.core.database import Base, get_db, get_readonly_db  # noqa: E402
from esg_tracker.main import app  # noqa: E402
from esg_tracker.modules.responses.service import ResponseStore  # noqa: E402
from esg_tracker.schemas.auth import CurrentUser  # noqa: E402

SAMPLE_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
OTHER_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")

FULL_SUBMISSION = {
    "total_revenue": 1000,
    "carbon_emissions": 50,
    "total_electricity": 200,
    "renewable_electricity": 50,
    "total_employees": 10,
    "female_employees": 4,
    "community_investment": 20,
    "total_fuel": 75.5,
    "training_hours": 320,
    "independent_board": 40,
    "data_privacy_policy": True,
}


class FakeClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 4, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Fresh in-memory SQLite database per test, schema built from the models."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Let SQLAlchemy own BEGIN so SAVEPOINTs behave (pysqlite/aiosqlite quirk)
    @event.listens_for(test_engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(test_engine.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def current_user() -> CurrentUser:
    return CurrentUser(user_id=SAMPLE_USER_ID, email="owner@example.com")


@pytest.fixture
def other_user() -> CurrentUser:
    return CurrentUser(user_id=OTHER_USER_ID, email="other@example.com")


@pytest.fixture
def store(db: AsyncSession, current_user: CurrentUser, clock: FakeClock) -> ResponseStore:
    return ResponseStore(db, current_user, clock=clock)


@pytest.fixture
def other_store(db: AsyncSession, other_user: CurrentUser, clock: FakeClock) -> ResponseStore:
    return ResponseStore(db, other_user, clock=clock)


@pytest.fixture
async def client(db: AsyncSession, current_user: CurrentUser) -> AsyncGenerator[AsyncClient]:
    """API client authenticated as SAMPLE_USER_ID, sharing the test session."""
    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_readonly_db] = lambda: db
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.pop(get_current_user, None)
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_readonly_db, None)


@pytest.fixture
async def anonymous_client(db: AsyncSession) -> AsyncGenerator[AsyncClient]:
    """API client with real bearer-token verification."""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_readonly_db] = lambda: db
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_readonly_db, None)


@pytest.fixture
def full_submission() -> dict:
    return dict(FULL_SUBMISSION)
