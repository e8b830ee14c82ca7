"""
FastAPI dependency injection functions.
Provides the DB session, settings, section map, change tracker and dedup context.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tracker.core.config import Settings, settings
from tracker.core.sections import SectionMap
from tracker.db.session import get_db, get_session_factory
from tracker.services.dedup import DedupContext
from tracker.services.tracker_service import ChangeTracker

# Re-export get_db so routes can import from one place
__all__ = [
    "get_db",
    "get_settings",
    "get_section_map",
    "get_change_tracker",
    "get_dedup_context",
    "DBSession",
    "Tracker",
    "Dedup",
    "AppSettings",
]


def get_settings() -> Settings:
    return settings


@lru_cache
def load_section_map(path: str) -> SectionMap:
    return SectionMap.load(path)


def get_section_map(
    app_settings: Annotated[Settings, Depends(get_settings)],
) -> SectionMap:
    return load_section_map(app_settings.ENTITY_SECTIONS_FILE)


def get_change_tracker(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    app_settings: Annotated[Settings, Depends(get_settings)],
    section_map: Annotated[SectionMap, Depends(get_section_map)],
) -> ChangeTracker:
    return ChangeTracker(session_factory, app_settings, section_map)


def get_dedup_context(request: Request) -> DedupContext:
    """The process-wide dedup context held on the application state."""
    return request.app.state.dedup


# Convenience type aliases for route signatures
DBSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]
Tracker = Annotated[ChangeTracker, Depends(get_change_tracker)]
Dedup = Annotated[DedupContext, Depends(get_dedup_context)]
