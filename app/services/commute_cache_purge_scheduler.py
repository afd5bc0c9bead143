from __future__ import annotations

import asyncio

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.core.logging import logger
from app.services.commute_service import CommuteService
from core.settings import Settings

_scheduler: AsyncIOScheduler | None = None
_job_lock = asyncio.Lock()


async def run_commute_cache_purge_job(service: CommuteService) -> int:
    """Drop expired commute cache entries from both tiers.

    The job is guarded by a lock to prevent overlapping runs if a previous
    execution has not completed yet.

    Returns:
        Number of purged entries, or 0 when the run was skipped.
    """

    if _job_lock.locked():
        logger.warning(
            "Commute cache purge skipped: previous run still in progress."
        )
        return 0

    async with _job_lock:
        logger.info("Commute cache purge started.")
        try:
            count = await service.purge_expired_cache()
        except Exception:
            logger.warning("Commute cache purge failed to complete.", exc_info=True)
            raise
        logger.info("Commute cache purge completed. Purged %d entries.", count)
        return count


def start_commute_cache_purge_scheduler(
    service: CommuteService, settings: Settings
) -> None:
    """Start the daily commute cache purge if enabled.

    Returns:
        None.
    """

    global _scheduler
    if _scheduler is not None:
        return

    if not settings.commute_cache_purge_enabled:
        logger.info("Commute cache purge scheduler disabled by settings.")
        return

    trigger = CronTrigger.from_crontab(
        settings.commute_cache_purge_cron,
        timezone=settings.commute_cache_purge_timezone,
    )
    _scheduler = AsyncIOScheduler(timezone=settings.commute_cache_purge_timezone)
    _scheduler.add_job(
        run_commute_cache_purge_job,
        trigger=trigger,
        args=[service],
        id="commute_cache_purge_daily",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    _scheduler.start()
    logger.info(
        "Commute cache purge scheduler started (cron=%s, timezone=%s).",
        settings.commute_cache_purge_cron,
        settings.commute_cache_purge_timezone,
    )


def shutdown_commute_cache_purge_scheduler() -> None:
    """Shutdown the commute cache purge scheduler if it is running.

    Returns:
        None.
    """

    global _scheduler
    if _scheduler is None:
        return

    _scheduler.shutdown(wait=False)
    _scheduler = None
    logger.info("Commute cache purge scheduler stopped.")
