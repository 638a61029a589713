"""Periodic tracker refresh scheduling on APScheduler."""

from typing import AsyncContextManager, Callable, Optional, Sequence

import structlog
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from trackerhub.core.config import get_global_settings
from trackerhub.features.trackers.batch_processor import TrackerBatchProcessor
from trackerhub.features.trackers.schemas import BatchProcessingResult

logger = structlog.get_logger(__name__)

ProcessorScope = Callable[[], AsyncContextManager[TrackerBatchProcessor]]

REFRESH_JOB_ID = "tracker-refresh"
PENDING_JOB_ID = "tracker-pending"


def create_scheduler() -> AsyncIOScheduler:
    """Create an in-memory AsyncIOScheduler with single-instance job defaults."""
    return AsyncIOScheduler(
        executors={"default": AsyncIOExecutor()},
        job_defaults={
            "coalesce": True,  # Combine multiple missed runs into one
            "max_instances": 1,
            "misfire_grace_time": 60,
        },
        timezone="UTC",
    )


class TrackerRefreshScheduler:
    """Registers the stale-tracker refresh and pending-tracker runs.

    Each run opens its own batch processor through ``processor_scope`` so
    database sessions never outlive a run.
    """

    def __init__(
        self,
        processor_scope: ProcessorScope,
        scheduler: Optional[AsyncIOScheduler] = None,
        cron_expression: Optional[str] = None,
        pending_interval_seconds: Optional[int] = None,
    ):
        """
        Initialize the refresh scheduler.

        Args:
            processor_scope: Factory returning an async context manager that yields a batch processor
            scheduler: APScheduler instance (a new one if None)
            cron_expression: Crontab for the stale refresh (uses config if None)
            pending_interval_seconds: Interval of the pending run (uses config if None)
        """
        settings = get_global_settings()
        self.processor_scope = processor_scope
        self.scheduler = scheduler or create_scheduler()
        self.cron_expression = cron_expression or settings.tracker_refresh_cron
        self.pending_interval_seconds = (
            pending_interval_seconds or settings.tracker_pending_interval_seconds
        )

    def start(self) -> None:
        """Register both jobs and start the scheduler. Must run inside an event loop."""
        self.scheduler.add_job(
            self.scheduled_refresh,
            trigger=CronTrigger.from_crontab(self.cron_expression, timezone="UTC"),
            id=REFRESH_JOB_ID,
            name="Refresh stale trackers",
            replace_existing=True,
        )
        self.scheduler.add_job(
            self.scheduled_pending,
            trigger=IntervalTrigger(seconds=self.pending_interval_seconds),
            id=PENDING_JOB_ID,
            name="Process pending trackers",
            replace_existing=True,
        )

        if not self.scheduler.running:
            self.scheduler.start()

        logger.info(
            "Tracker refresh scheduler started",
            cron_expression=self.cron_expression,
            pending_interval_seconds=self.pending_interval_seconds,
        )

    def shutdown(self, wait: bool = False) -> None:
        """Remove the jobs and stop the scheduler."""
        for job_id in (REFRESH_JOB_ID, PENDING_JOB_ID):
            if self.scheduler.get_job(job_id) is not None:
                self.scheduler.remove_job(job_id)

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        logger.info("Tracker refresh scheduler stopped")

    async def scheduled_refresh(self) -> Optional[BatchProcessingResult]:
        """Cron entry point; errors are logged and not propagated."""
        logger.info("Starting scheduled tracker refresh")
        try:
            return await self.trigger_manual_refresh()
        except Exception as e:
            logger.error(
                "Unhandled error in scheduled tracker refresh",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return None

    async def scheduled_pending(self) -> Optional[BatchProcessingResult]:
        """Interval entry point; errors are logged and not propagated."""
        try:
            async with self.processor_scope() as processor:
                return await processor.process_pending_trackers()
        except Exception as e:
            logger.error(
                "Unhandled error in scheduled pending tracker processing",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return None

    async def trigger_manual_refresh(
        self, tracker_ids: Optional[Sequence[str]] = None
    ) -> BatchProcessingResult:
        """
        Refresh the named trackers, or every pending and stale tracker.

        Named trackers bypass the processing guard; the full refresh applies it.

        Raises:
            Exception: Whatever the batch processor raised
        """
        async with self.processor_scope() as processor:
            if tracker_ids:
                return await processor.refresh_trackers(tracker_ids)

            result = await processor.refresh_stale_trackers()
            if result.processed_count == 0:
                logger.info("No trackers need refresh at this time")
            return result
