"""
Daily sync scheduler.

APScheduler drives the timer on the application's event loop: an optional
one-shot run at startup, then a cron job every day at SYNC_HOUR:SYNC_MINUTE
local time. Runs never overlap: a trigger that arrives while a run is in
progress (timer or API) is skipped.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from core.config import SYNC_HOUR, SYNC_MINUTE, SYNC_ON_STARTUP
from core.payroll import LOCAL_TZ
from services.reports import format_sync_summary
from services.sync import SyncResult, run_sync

logger = logging.getLogger(__name__)

SyncRunner = Callable[[str], Awaitable[SyncResult]]

DAILY_JOB_ID = "daily-sync"
STARTUP_JOB_ID = "startup-sync"

# A run delayed by a busy loop or a suspended host still fires within this window
MISFIRE_GRACE_SECONDS = 3600


class SyncScheduler:
    """Cron-driven sync timer with a run-in-progress guard."""

    def __init__(
        self,
        runner: SyncRunner = run_sync,
        hour: int = SYNC_HOUR,
        minute: int = SYNC_MINUTE,
        run_on_startup: bool = SYNC_ON_STARTUP,
    ):
        self.runner = runner
        self.hour = hour
        self.minute = minute
        self.run_on_startup = run_on_startup
        self._lock = asyncio.Lock()
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def is_running(self) -> bool:
        """True while a sync run is in progress."""
        return self._lock.locked()

    @property
    def started(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def daily_trigger(self) -> CronTrigger:
        """Cron trigger for the daily run, in local time."""
        return CronTrigger(hour=self.hour, minute=self.minute, timezone=LOCAL_TZ)

    async def run_once(self, trigger: str) -> SyncResult | None:
        """
        Run one sync unless another is already in progress.

        Returns:
            The sync result, or None if skipped because a run was in progress
        """
        if self._lock.locked():
            logger.warning("Sync (%s) skipped: a run is already in progress", trigger)
            return None

        async with self._lock:
            logger.info("Sync (%s) started", trigger)
            result = await self.runner(trigger)
            if result.success:
                logger.info("Sync (%s) finished: %s", trigger, format_sync_summary(result))
            else:
                logger.error("Sync (%s) failed: %s", trigger, result.error)
            return result

    async def _run_logged(self, trigger: str) -> None:
        # A crashed run must not surface as a job error; the next day retries.
        try:
            await self.run_once(trigger)
        except Exception:
            logger.exception("Sync (%s) raised unexpectedly", trigger)

    def start(self) -> None:
        """
        Register the jobs and start the timer (no-op if already started).

        Must be called from a running event loop.
        """
        if self.started:
            return

        scheduler = AsyncIOScheduler(timezone=LOCAL_TZ)
        scheduler.add_job(
            self._run_logged,
            self.daily_trigger(),
            args=["scheduled"],
            id=DAILY_JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=MISFIRE_GRACE_SECONDS,
        )
        if self.run_on_startup:
            scheduler.add_job(
                self._run_logged,
                "date",
                args=["startup"],
                id=STARTUP_JOB_ID,
                misfire_grace_time=None,
            )

        scheduler.start()
        self._scheduler = scheduler
        logger.info("Scheduled daily calendar sync at %02d:%02d", self.hour, self.minute)

    def get_job(self, job_id: str):
        if self._scheduler is None:
            return None
        return self._scheduler.get_job(job_id)

    async def stop(self) -> None:
        """Shut the timer down without waiting for an in-flight run."""
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
