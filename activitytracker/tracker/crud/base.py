"""
Generic async CRUD base class for the tracker tables.
Both tables are append/upsert-only and expire by age, so the shared
operations are lookup and time-based deletion.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    """
    Shared operations for SQLAlchemy async ORM models with a ``created_at`` column.

    Type parameters:
        ModelType: The SQLAlchemy ORM model class.
    """

    def __init__(self, model: type[ModelType]) -> None:
        self.model = model

    async def get(self, db: AsyncSession, id: Any) -> ModelType | None:
        """Fetch a single record by primary key."""
        return await db.get(self.model, id)

    async def delete_created_before(self, db: AsyncSession, *, cutoff: datetime) -> int:
        """Delete every record with ``created_at`` strictly before ``cutoff``."""
        result = await db.execute(
            delete(self.model).where(self.model.created_at < cutoff)  # type: ignore[attr-defined]
        )
        return result.rowcount or 0
