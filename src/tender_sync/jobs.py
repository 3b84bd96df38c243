"""Scheduled sync job with an in-process running flag."""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Optional

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from tender_sync.models.sync import SyncResult
from tender_sync.sync import SyncService

logger = logging.getLogger(__name__)

JOB_ID = "tender_sync"


class SyncJob:
    """
    Runs SyncService.run_sync on a cron schedule. A run requested while
    another is in flight is skipped, not queued.
    """

    def __init__(self, service: SyncService, cron_schedule: str = "0 */6 * * *", run_on_start: bool = False):
        self.service = service
        self.cron_schedule = cron_schedule
        self.run_on_start = run_on_start
        self.last_execution: Optional[datetime] = None
        self.scheduler: Optional[BlockingScheduler] = None
        self._running = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._running.locked()

    def execute(self, sync_type: str = "scheduled") -> Optional[SyncResult]:
        """Run one sync unless one is already running. Run-level errors are logged, not raised."""
        if not self._running.acquire(blocking=False):
            logger.warning("Sync already running, skipping this execution")
            return None
        try:
            self.last_execution = datetime.now(timezone.utc)
            result = self.service.run_sync(sync_type)
            logger.info(
                "Sync job finished: %d new, %d updated, %d matches",
                result.new,
                result.updated,
                result.matches,
            )
            return result
        except Exception:
            logger.exception("Sync job failed")
            return None
        finally:
            self._running.release()

    def run_now(self) -> Optional[SyncResult]:
        """Manual trigger."""
        logger.info("Manual sync triggered")
        return self.execute(sync_type="manual")

    def start(self) -> None:
        """Schedule the job and block until stopped."""
        self.scheduler = BlockingScheduler(timezone="UTC")
        self.scheduler.add_job(
            func=self.execute,
            trigger=CronTrigger.from_crontab(self.cron_schedule, timezone="UTC"),
            id=JOB_ID,
            name="Sync procurement feed",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info("Sync job scheduled: %s", self.cron_schedule)
        if self.run_on_start:
            self.execute(sync_type="startup")
        self.scheduler.start()

    def stop(self) -> None:
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Sync job stopped")

    def next_execution(self) -> Optional[datetime]:
        if self.scheduler is not None:
            job = self.scheduler.get_job(JOB_ID)
            if job is not None and getattr(job, "next_run_time", None):
                return job.next_run_time
        trigger = CronTrigger.from_crontab(self.cron_schedule, timezone="UTC")
        return trigger.get_next_fire_time(None, datetime.now(timezone.utc))

    def status(self) -> dict[str, Any]:
        next_run = self.next_execution()
        return {
            "schedule": self.cron_schedule,
            "is_running": self.is_running,
            "last_execution": self.last_execution.isoformat() if self.last_execution else None,
            "next_execution": next_run.isoformat() if next_run else None,
            "is_active": bool(self.scheduler is not None and self.scheduler.running),
        }
