"""
Snapshot store.
Keeps the last observed data of every tracked entity per snapshot kind as the
baseline for the next diff. Last write wins; no history is kept.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tracker.core.exceptions import PersistenceError, Result, SnapshotDecodeError
from tracker.crud.snapshot import crud_snapshot
from tracker.diff.tree import Value, strip_keys, to_tree
from tracker.models.entity_snapshot import SNAPSHOT_KINDS

logger = logging.getLogger(__name__)

DEFAULT_IGNORED_KEYS: frozenset[str] = frozenset({"_cache_instance_product_set_attributes"})


class SnapshotStore:

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        ignored_keys: Iterable[str] = DEFAULT_IGNORED_KEYS,
    ) -> None:
        self._session_factory = session_factory
        self.ignored_keys = frozenset(ignored_keys)

    def prepare(self, data: Any) -> Value:
        """Convert data to a tree and drop internal cache keys at every depth."""
        return strip_keys(to_tree(data), self.ignored_keys)

    async def save(
        self,
        entity_type: str,
        entity_id: Any,
        data: Any,
        kind: str = "model",
    ) -> Result[None]:
        try:
            if kind not in SNAPSHOT_KINDS:
                raise ValueError(f"Unknown snapshot kind {kind!r}")
            blob = json.dumps(self.prepare(data), ensure_ascii=False)
            async with self._session_factory() as db:
                await crud_snapshot.upsert(
                    db,
                    entity_type=entity_type,
                    entity_id=str(entity_id),
                    snapshot_kind=kind,
                    data_blob=blob,
                )
                await db.commit()
            return Result.success()
        except Exception as exc:
            return Result.failure(
                PersistenceError(
                    f"Failed to save {kind} snapshot for {entity_type}#{entity_id}",
                    cause=exc,
                )
            )

    async def get(
        self,
        entity_type: str,
        entity_id: Any,
        kind: str = "model",
    ) -> Result[dict[str, Value]]:
        """
        Most recent snapshot for the key. A missing, empty or undecodable
        snapshot is reported as a successful result with no value.
        """
        try:
            async with self._session_factory() as db:
                blob = await crud_snapshot.get_blob(
                    db,
                    entity_type=entity_type,
                    entity_id=str(entity_id),
                    snapshot_kind=kind,
                )
        except Exception as exc:
            return Result.failure(
                PersistenceError(
                    f"Failed to read {kind} snapshot for {entity_type}#{entity_id}",
                    cause=exc,
                )
            )

        if blob is None:
            return Result.success(None)
        try:
            data = json.loads(blob)
        except (json.JSONDecodeError, TypeError) as exc:
            logger.warning(
                "%s",
                SnapshotDecodeError(
                    f"Ignoring malformed {kind} snapshot for {entity_type}#{entity_id}",
                    cause=exc,
                ),
            )
            return Result.success(None)
        if not isinstance(data, dict) or not data:
            return Result.success(None)
        return Result.success(data)
