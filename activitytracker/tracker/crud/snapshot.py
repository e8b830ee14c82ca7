"""
EntitySnapshot CRUD operations.
Upsert keyed by (entity_type, entity_id, snapshot_kind) and raw blob lookup.
"""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.crud.base import CRUDBase
from tracker.db.base import utcnow
from tracker.models.entity_snapshot import EntitySnapshot

_KEY_COLUMNS = ["entity_type", "entity_id", "snapshot_kind"]


class CRUDSnapshot(CRUDBase[EntitySnapshot]):

    async def upsert(
        self,
        db: AsyncSession,
        *,
        entity_type: str,
        entity_id: str,
        snapshot_kind: str,
        data_blob: str,
    ) -> None:
        """Insert the snapshot or overwrite the existing row for the same key."""
        dialect = db.get_bind().dialect.name
        if dialect == "postgresql":
            insert = postgresql.insert
        elif dialect == "sqlite":
            insert = sqlite.insert
        else:
            raise NotImplementedError(f"Snapshot upsert is not supported on {dialect}")

        values = {
            "entity_type": entity_type,
            "entity_id": entity_id,
            "snapshot_kind": snapshot_kind,
            "data_blob": data_blob,
            "created_at": utcnow(),
        }
        stmt = insert(EntitySnapshot).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=_KEY_COLUMNS,
            set_={
                "data_blob": stmt.excluded.data_blob,
                "created_at": stmt.excluded.created_at,
            },
        )
        await db.execute(stmt)

    async def get_blob(
        self,
        db: AsyncSession,
        *,
        entity_type: str,
        entity_id: str,
        snapshot_kind: str,
    ) -> str | None:
        result = await db.execute(
            select(EntitySnapshot.data_blob)
            .where(
                EntitySnapshot.entity_type == entity_type,
                EntitySnapshot.entity_id == entity_id,
                EntitySnapshot.snapshot_kind == snapshot_kind,
            )
            .order_by(EntitySnapshot.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()


crud_snapshot = CRUDSnapshot(EntitySnapshot)
