"""Periodic sync scheduling for offlined.

Fires the engine's periodic-sync signal on an interval using APScheduler.

Architecture:
- Uses APScheduler AsyncIOScheduler with an IntervalTrigger
- One job; overlapping runs are coalesced by APScheduler and, past that,
  by the sync engine itself
- Lifecycle: start with daemon, stop on shutdown
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from offline_library.engine import OfflineEngine

logger = logging.getLogger(__name__)

JOB_ID = "periodic-sync"


class SyncScheduler:
    """Triggers queue drains on a fixed interval."""

    def __init__(self, engine: OfflineEngine, interval_seconds: int) -> None:
        """Initialize sync scheduler.

        Args:
            engine: Engine whose queue is drained
            interval_seconds: Seconds between periodic sync signals
        """
        self.engine = engine
        self.interval_seconds = interval_seconds
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start scheduler. Idempotent - safe to call multiple times."""
        if self._running:
            logger.warning("Sync scheduler already running")
            return

        self.scheduler.add_job(
            func=self._run_sync,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            name="Periodic queue drain",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self.scheduler.start()
        self._running = True
        logger.info(f"Sync scheduler started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop scheduler gracefully."""
        if not self._running:
            logger.warning("Sync scheduler not running")
            return

        self.scheduler.shutdown(wait=False)
        self._running = False
        logger.info("Sync scheduler stopped")

    def next_run_time(self):
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None

    async def _run_sync(self) -> None:
        try:
            report = await self.engine.handle_sync("periodic-sync")
            if report is not None and not report.coalesced:
                logger.debug(f"Periodic sync replayed {len(report.succeeded)} writes")
        except Exception as e:
            logger.error(f"Periodic sync failed: {e}", exc_info=True)
