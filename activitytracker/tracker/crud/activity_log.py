"""
ActivityLog CRUD operations.
Insert and filtered listing for the activity grid; rows are never updated.
"""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.crud.base import CRUDBase
from tracker.models.activity_log import ActivityLog
from tracker.schemas.activity_log import ActivityLogCreate, ActivityLogFilter


class CRUDActivityLog(CRUDBase[ActivityLog]):

    async def create(self, db: AsyncSession, *, obj_in: ActivityLogCreate) -> ActivityLog:
        entry = ActivityLog(**obj_in.model_dump())
        db.add(entry)
        await db.flush()
        return entry

    async def list_with_filters(
        self,
        db: AsyncSession,
        *,
        filters: ActivityLogFilter,
    ) -> tuple[list[ActivityLog], int]:
        """Return (records, total) newest first, applying every filter that is set."""
        query = select(ActivityLog)
        count_query = select(func.count()).select_from(ActivityLog)

        conditions = []
        if filters.action:
            conditions.append(ActivityLog.action == filters.action)
        if filters.entity_type:
            conditions.append(ActivityLog.entity_type == filters.entity_type)
        if filters.store_id is not None:
            conditions.append(ActivityLog.store_id == filters.store_id)
        if filters.date_from is not None:
            conditions.append(ActivityLog.created_at >= filters.date_from)
        if filters.date_to is not None:
            conditions.append(ActivityLog.created_at <= filters.date_to)

        if conditions:
            query = query.where(*conditions)
            count_query = count_query.where(*conditions)

        total = (await db.execute(count_query)).scalar_one()

        skip = (filters.page - 1) * filters.size
        result = await db.execute(
            query.order_by(ActivityLog.created_at.desc())
            .offset(skip)
            .limit(filters.size)
        )
        return list(result.scalars().all()), total


crud_activity_log = CRUDActivityLog(ActivityLog)
