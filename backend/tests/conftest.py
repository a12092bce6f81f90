from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from incentives.db import get_session
from incentives.main import app
from incentives.models import SQLModel
from incentives.services.hours import InMemoryHoursLedger
from incentives.services.lifecycle import ReportLifecycleManager
from incentives.services.outcomes import RecordingOutcomeSink
from incentives.services.period import FixedClock
from incentives.services.repository import InMemoryReportRepository
from incentives.services.roster import InMemoryRosterService

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

# Falls back to an in-process SQLite database when no server is configured.
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Create an async engine and ensure tables exist."""
    kwargs = {"poolclass": StaticPool} if TEST_DATABASE_URL.startswith("sqlite") else {}
    _engine = create_async_engine(TEST_DATABASE_URL, **kwargs)
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a database session wrapped in a transaction that rolls back after each test."""
    async with engine.connect() as conn:
        txn = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)
        yield session
        await session.close()
        await txn.rollback()


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# In-memory engine collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def roster() -> InMemoryRosterService:
    return InMemoryRosterService()


@pytest.fixture
def ledger() -> InMemoryHoursLedger:
    return InMemoryHoursLedger()


@pytest.fixture
def repository() -> InMemoryReportRepository:
    return InMemoryReportRepository()


@pytest.fixture
def outcomes() -> RecordingOutcomeSink:
    return RecordingOutcomeSink()


@pytest.fixture
def lifecycle(
    repository: InMemoryReportRepository,
    roster: InMemoryRosterService,
    ledger: InMemoryHoursLedger,
    clock: FixedClock,
    outcomes: RecordingOutcomeSink,
) -> ReportLifecycleManager:
    return ReportLifecycleManager(repository, roster, ledger, clock, outcomes)
