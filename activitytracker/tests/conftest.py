"""
Test configuration and shared fixtures.
Uses a per-test in-memory SQLite database for fast, isolated tests.
"""
from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tracker.core.config import DEFAULT_ENTITY_SECTIONS_FILE, Settings
from tracker.core.dependencies import get_settings
from tracker.core.sections import SectionMap
from tracker.db.base import Base
from tracker.db.session import get_db, get_session_factory
from tracker.main import app
from tracker.models.activity_log import ActivityLog
from tracker.models.entity_snapshot import EntitySnapshot
from tracker.schemas.events import Actor
from tracker.services.dedup import DedupContext
from tracker.services.tracker_service import ChangeTracker

# ── Test database ─────────────────────────────────────────────────────────────
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """A fresh schema per test; StaticPool keeps the in-memory DB on one connection."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
def test_settings() -> Settings:
    return Settings(TRACKER_ENABLED=True, EXCLUDED_SECTIONS=[], DATA_RETENTION_MONTHS=3)


@pytest.fixture
def section_map() -> SectionMap:
    return SectionMap.load(DEFAULT_ENTITY_SECTIONS_FILE)


@pytest.fixture
def tracker(
    session_factory: async_sessionmaker[AsyncSession],
    test_settings: Settings,
    section_map: SectionMap,
) -> ChangeTracker:
    return ChangeTracker(session_factory, test_settings, section_map)


@pytest.fixture
def dedup() -> DedupContext:
    return DedupContext()


@pytest.fixture
def actor() -> Actor:
    return Actor(id=1, username="admin")


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    test_settings: Settings,
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP test client wired to the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.state.dedup = DedupContext()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Helper fixtures ───────────────────────────────────────────────────────────

@pytest.fixture
def fetch_logs(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], Awaitable[list[ActivityLog]]]:
    """Return a coroutine function listing every activity record, oldest first."""

    async def _fetch() -> list[ActivityLog]:
        async with session_factory() as db:
            result = await db.execute(select(ActivityLog).order_by(ActivityLog.created_at))
            return list(result.scalars().all())

    return _fetch


@pytest.fixture
def fetch_snapshots(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], Awaitable[list[EntitySnapshot]]]:

    async def _fetch() -> list[EntitySnapshot]:
        async with session_factory() as db:
            result = await db.execute(select(EntitySnapshot).order_by(EntitySnapshot.id))
            return list(result.scalars().all())

    return _fetch
