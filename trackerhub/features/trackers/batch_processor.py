"""Batch selection of trackers and enqueueing of scrape jobs."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

import structlog

from trackerhub.core.config import get_global_settings
from trackerhub.protocols import JobQueue, TrackerRepository

from .guard import TrackerProcessingGuard
from .schemas import BatchProcessingResult

logger = structlog.get_logger(__name__)


class TrackerBatchProcessor:
    """Selects trackers that need scraping and hands them to the job queue."""

    def __init__(
        self,
        trackers: TrackerRepository,
        guard: TrackerProcessingGuard,
        queue: JobQueue,
        refresh_interval_hours: Optional[int] = None,
        batch_size: Optional[int] = None,
    ):
        """
        Initialize the batch processor.

        :param trackers: Tracker repository used for selection
        :param guard: Processing guard applied to automatic runs
        :param queue: Job queue receiving scrape jobs
        :param refresh_interval_hours: Age after which a scrape is stale (uses config if None)
        :param batch_size: Enqueue chunk size for refresh runs (uses config if None)
        """
        settings = get_global_settings()
        self.trackers = trackers
        self.guard = guard
        self.queue = queue
        self.refresh_interval = timedelta(
            hours=refresh_interval_hours or settings.tracker_refresh_interval_hours
        )
        self.batch_size = batch_size or settings.tracker_batch_size

    async def process_pending_trackers(self) -> BatchProcessingResult:
        """
        Enqueue every pending tracker allowed by the processing guard.

        :returns: Count and ids of enqueued trackers (empty when nothing qualifies)
        """
        tracker_ids = await self.trackers.find_pending_ids()
        if not tracker_ids:
            logger.info("No pending trackers to process")
            return BatchProcessingResult()

        processable = await self.guard.filter_processable_trackers(tracker_ids)
        if not processable:
            logger.info(
                "Pending trackers found, but none can be processed due to guild settings",
                pending=len(tracker_ids),
            )
            return BatchProcessingResult()

        await self.queue.enqueue_batch(processable)

        logger.info(
            "Enqueued pending trackers for processing",
            enqueued=len(processable),
            skipped=len(tracker_ids) - len(processable),
        )
        return BatchProcessingResult(
            processed_count=len(processable), tracker_ids=processable
        )

    async def process_pending_trackers_for_guild(
        self, guild_id: str
    ) -> BatchProcessingResult:
        """
        Enqueue pending and stale trackers of one guild's members.

        Manual admin action: the guild's automatic-processing toggle does not
        apply, so the processing guard is not consulted.

        :param guild_id: Guild whose members' trackers are processed
        :returns: Count and ids of enqueued trackers
        """
        tracker_ids = await self.trackers.find_pending_and_stale_ids_for_guild(
            guild_id, self._stale_before()
        )
        if not tracker_ids:
            logger.info(
                "No pending or stale trackers to process for guild", guild_id=guild_id
            )
            return BatchProcessingResult()

        await self.queue.enqueue_batch(tracker_ids)

        logger.info(
            "Enqueued pending and stale trackers for guild",
            guild_id=guild_id,
            enqueued=len(tracker_ids),
        )
        return BatchProcessingResult(
            processed_count=len(tracker_ids), tracker_ids=tracker_ids
        )

    async def refresh_stale_trackers(self) -> BatchProcessingResult:
        """Enqueue pending and stale trackers allowed by the guard, in chunks."""
        tracker_ids = await self.trackers.find_pending_and_stale_ids(
            self._stale_before()
        )
        logger.info("Found trackers needing refresh", count=len(tracker_ids))
        if not tracker_ids:
            return BatchProcessingResult()

        processable = await self.guard.filter_processable_trackers(tracker_ids)
        if not processable:
            logger.info("No trackers need refresh after guild settings filter")
            return BatchProcessingResult()

        await self._enqueue_in_batches(processable)
        return BatchProcessingResult(
            processed_count=len(processable), tracker_ids=processable
        )

    async def refresh_trackers(self, tracker_ids: Sequence[str]) -> BatchProcessingResult:
        """Enqueue explicitly named trackers (manual refresh, guard not applied)."""
        unique_ids = list(dict.fromkeys(tracker_ids))
        if not unique_ids:
            return BatchProcessingResult()

        logger.info("Manually refreshing trackers", count=len(unique_ids))
        await self._enqueue_in_batches(unique_ids)
        return BatchProcessingResult(
            processed_count=len(unique_ids), tracker_ids=unique_ids
        )

    async def _enqueue_in_batches(self, tracker_ids: List[str]) -> None:
        total_batches = (len(tracker_ids) + self.batch_size - 1) // self.batch_size
        for batch_number, start in enumerate(
            range(0, len(tracker_ids), self.batch_size), start=1
        ):
            batch = tracker_ids[start : start + self.batch_size]
            await self.queue.enqueue_batch(batch)
            logger.debug(
                "Enqueued refresh batch",
                batch=batch_number,
                total_batches=total_batches,
                size=len(batch),
            )

    def _stale_before(self) -> datetime:
        return datetime.now(timezone.utc) - self.refresh_interval
