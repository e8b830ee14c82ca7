"""
Async SQLAlchemy engine and session factory.
Tracker services open one short session per operation from the factory, so an
audit write never shares a transaction with the operation that triggered it.
"""
from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tracker.core.config import Settings, settings


def engine_options(app_settings: Settings) -> dict[str, Any]:
    """Pool sizing only applies to server databases; SQLite keeps its default pool."""
    options: dict[str, Any] = {"echo": app_settings.DEBUG, "pool_pre_ping": True}
    if make_url(app_settings.DATABASE_URL).get_backend_name() != "sqlite":
        options.update(
            pool_size=app_settings.DB_POOL_SIZE,
            max_overflow=app_settings.DB_MAX_OVERFLOW,
            pool_recycle=app_settings.DB_POOL_RECYCLE_SECONDS,
        )
    return options


# ── Engine ────────────────────────────────────────────────────────────────────
engine = create_async_engine(settings.DATABASE_URL, **engine_options(settings))

# ── Session factory ───────────────────────────────────────────────────────────
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """FastAPI dependency returning the factory tracker services write through."""
    return AsyncSessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Read-only session for the listing routes; nothing is committed."""
    async with AsyncSessionLocal() as session:
        yield session
