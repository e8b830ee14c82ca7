"""
Retention sweeper.
Deletes activity records and snapshots older than the configured number of
months. The delete predicate is purely time-based, so sweeps are idempotent
and safe to run alongside writers.
"""
from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tracker.core.config import Settings
from tracker.core.exceptions import Result, SweepError
from tracker.crud.activity_log import crud_activity_log
from tracker.crud.snapshot import crud_snapshot
from tracker.db.base import utcnow

logger = logging.getLogger(__name__)


def subtract_months(moment: datetime, months: int) -> datetime:
    """Same wall-clock time ``months`` calendar months earlier, clamped to month end."""
    total = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


@dataclass(frozen=True)
class SweepReport:
    cutoff: datetime
    deleted_activity: int
    deleted_snapshots: int


class RetentionService:

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings,
    ) -> None:
        self._session_factory = session_factory
        self.settings = settings

    async def sweep(
        self,
        retention_months: int,
        *,
        now: datetime | None = None,
    ) -> Result[SweepReport]:
        """Delete rows with ``created_at`` strictly before ``now - retention_months``."""
        cutoff = subtract_months(now or utcnow(), retention_months)
        try:
            async with self._session_factory() as db:
                deleted_activity = await crud_activity_log.delete_created_before(
                    db, cutoff=cutoff
                )
                deleted_snapshots = await crud_snapshot.delete_created_before(
                    db, cutoff=cutoff
                )
                await db.commit()
        except Exception as exc:
            return Result.failure(SweepError(f"Cleanup older than {cutoff} failed", cause=exc))
        return Result.success(
            SweepReport(
                cutoff=cutoff,
                deleted_activity=deleted_activity,
                deleted_snapshots=deleted_snapshots,
            )
        )

    async def run(self) -> SweepReport | None:
        """Scheduled entry point. Skipped when tracking is disabled; never raises."""
        if not self.settings.TRACKER_ENABLED:
            return None

        result = await self.sweep(self.settings.DATA_RETENTION_MONTHS)
        if not result.ok:
            logger.error("Activity tracker cleanup failed: %s", result.error)
            return None

        report = result.value
        logger.info(
            "Activity tracker cleanup completed. Deleted %d activity records and "
            "%d snapshot records older than %s",
            report.deleted_activity,
            report.deleted_snapshots,
            report.cutoff.isoformat(),
        )
        return report
