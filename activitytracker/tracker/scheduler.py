"""
Background scheduler for the retention sweep.
Uses APScheduler's asyncio scheduler so the sweep runs on the application loop.
"""
from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from tracker.services.retention_service import RetentionService

logger = logging.getLogger(__name__)

CLEANUP_JOB_ID = "activity_tracker_cleanup"


def build_scheduler(retention: RetentionService) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        retention.run,
        trigger=CronTrigger.from_crontab(retention.settings.CLEANUP_CRON, timezone="UTC"),
        id=CLEANUP_JOB_ID,
        name="Activity tracker data cleanup",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    return scheduler


def start_scheduler(retention: RetentionService) -> AsyncIOScheduler | None:
    """Start the cleanup schedule. Not started at all when tracking is disabled."""
    if not retention.settings.TRACKER_ENABLED:
        logger.info("Activity tracking disabled; cleanup schedule not started")
        return None

    scheduler = build_scheduler(retention)
    scheduler.start()
    logger.info(
        "Cleanup scheduled with cron %r (retention %d months)",
        retention.settings.CLEANUP_CRON,
        retention.settings.DATA_RETENTION_MONTHS,
    )
    return scheduler


def stop_scheduler(scheduler: AsyncIOScheduler | None) -> None:
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Cleanup scheduler stopped")
