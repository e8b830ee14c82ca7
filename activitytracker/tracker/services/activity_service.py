"""
Activity record writer.
Writes immutable audit records to the activity_logs table, each in its own
short session. Never raises: failures come back as an error Result.
"""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tracker.core.exceptions import ContextResolutionError, PersistenceError, Result
from tracker.crud.activity_log import crud_activity_log
from tracker.models.activity_log import ActivityLog
from tracker.schemas.activity_log import ActivityLogCreate
from tracker.schemas.events import Actor
from tracker.services.context import ClientInfo, ContextResolver, StaticContext

logger = logging.getLogger(__name__)


class ActivityService:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    def _resolve_context(
        self, context: ContextResolver
    ) -> tuple[int | None, int | None, ClientInfo]:
        """Resolve scope and client details; whatever fails is recorded as absent."""
        store_id = website_id = None
        client = ClientInfo()
        try:
            store_id, website_id = context.resolve_scope()
        except Exception as exc:
            logger.debug("%s", ContextResolutionError("Store scope unavailable", cause=exc))
        try:
            client = context.resolve_client()
        except Exception as exc:
            logger.debug("%s", ContextResolutionError("Client details unavailable", cause=exc))
        return store_id, website_id, client

    async def record(
        self,
        *,
        actor: Actor,
        action: str,
        entity_type: str | None = None,
        entity_id: Any = None,
        changes: Any = None,
        context: ContextResolver | None = None,
    ) -> Result[ActivityLog]:
        """
        Create an activity log entry.
        Each call is an independent insert; concurrent calls never conflict.
        """
        store_id, website_id, client = self._resolve_context(context or StaticContext())
        try:
            entry_in = ActivityLogCreate(
                actor_id=actor.id,
                actor_name=actor.username,
                action=action,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id is not None else None,
                store_id=store_id,
                website_id=website_id,
                changes=changes,
                client_ip=client.client_ip,
                user_agent=client.user_agent,
            )
            async with self._session_factory() as db:
                entry = await crud_activity_log.create(db, obj_in=entry_in)
                await db.commit()
            return Result.success(entry)
        except Exception as exc:
            return Result.failure(
                PersistenceError(
                    f"Failed to write activity log: actor_id={actor.id} "
                    f"action={action} entity_type={entity_type}",
                    cause=exc,
                )
            )
