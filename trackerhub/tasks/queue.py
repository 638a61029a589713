"""
In-process scraping job queue.

Provides a priority-based queue of per-tracker scrape jobs with bounded
attempts, exponential backoff between attempts and graceful shutdown.
"""

import asyncio
import itertools
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set

import structlog

from trackerhub.core.config import get_global_settings

logger = structlog.get_logger(__name__)

JobHandler = Callable[[str], Awaitable[Any]]


class JobStatus(Enum):
    """Scrape job execution status."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    RETRYING = "retrying"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_job_id(tracker_id: str) -> str:
    """Job id of the form ``scraping-{tracker_id}-{epoch milliseconds}``."""
    return f"scraping-{tracker_id}-{int(time.time() * 1000)}"


@dataclass
class ScrapingJob:
    """One scrape job for one tracker."""

    tracker_id: str
    job_id: str
    priority: int = 0
    max_attempts: int = 3
    attempts_made: int = 0
    status: JobStatus = JobStatus.PENDING
    created_at: datetime = field(default_factory=_utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    result: Any = None


class ScrapingQueue:
    """Priority queue of scrape jobs processed by a fixed pool of workers.

    Lower ``priority`` values run first. A tracker that already has a pending
    or running job is not enqueued twice; the existing job id is returned.
    """

    def __init__(
        self,
        handler: JobHandler,
        concurrency: Optional[int] = None,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
    ):
        """
        Initialize scraping queue.

        Args:
            handler: Coroutine function called with a tracker id for each job
            concurrency: Number of worker coroutines (uses config if None)
            max_attempts: Attempts per job before it is marked failed (uses config if None)
            backoff_seconds: Base delay before a retry, doubled per attempt (uses config if None)
        """
        settings = get_global_settings()
        self.handler = handler
        self.concurrency = concurrency or settings.scraping_queue_concurrency
        self.max_attempts = max_attempts or settings.scraping_job_attempts
        self.backoff_seconds = (
            backoff_seconds
            if backoff_seconds is not None
            else settings.scraping_job_backoff_seconds
        )

        self.queue: asyncio.PriorityQueue = asyncio.PriorityQueue()
        self.jobs: Dict[str, ScrapingJob] = {}
        self.running = False
        self.stats: Dict[str, int] = defaultdict(int)

        self._sequence = itertools.count()
        self._open_jobs_by_tracker: Dict[str, str] = {}
        self._worker_tasks: List[asyncio.Task] = []
        self._retry_tasks: Set[asyncio.Task] = set()

    async def enqueue(self, tracker_id: str, priority: int = 0) -> str:
        """
        Add a scrape job for one tracker.

        Args:
            tracker_id: Tracker to scrape
            priority: Lower runs first

        Returns:
            Job id (the existing one if the tracker is already queued)
        """
        existing = self._open_jobs_by_tracker.get(tracker_id)
        if existing is not None:
            logger.debug(
                "Tracker already queued, skipping duplicate job",
                tracker_id=tracker_id,
                job_id=existing,
            )
            self.stats["jobs_deduplicated"] += 1
            return existing

        job = ScrapingJob(
            tracker_id=tracker_id,
            job_id=make_job_id(tracker_id),
            priority=priority,
            max_attempts=self.max_attempts,
        )
        self.jobs[job.job_id] = job
        self._open_jobs_by_tracker[tracker_id] = job.job_id
        await self._put(job)

        logger.info("Scraping job added to queue", job_id=job.job_id, tracker_id=tracker_id)
        self.stats["jobs_added"] += 1
        return job.job_id

    async def enqueue_batch(self, tracker_ids: Sequence[str]) -> List[str]:
        """Add one job per tracker id; an empty batch enqueues nothing."""
        if not tracker_ids:
            return []

        job_ids = [await self.enqueue(tracker_id) for tracker_id in tracker_ids]
        logger.info("Scraping job batch added to queue", count=len(job_ids))
        return job_ids

    async def start(self) -> None:
        """Start the worker coroutines."""
        if self.running:
            logger.warning("Scraping queue is already running")
            return

        self.running = True
        self._worker_tasks = [
            asyncio.create_task(self._worker(f"worker-{i}"))
            for i in range(self.concurrency)
        ]
        logger.info("Scraping queue started", concurrency=self.concurrency)

    async def stop(self) -> None:
        """Stop the workers; running jobs are cancelled."""
        if not self.running:
            return

        self.running = False
        for task in [*self._worker_tasks, *self._retry_tasks]:
            task.cancel()
        await asyncio.gather(
            *self._worker_tasks, *self._retry_tasks, return_exceptions=True
        )
        self._worker_tasks = []
        self._retry_tasks.clear()
        logger.info("Scraping queue stopped")

    async def join(self) -> None:
        """Wait until every queued job, including scheduled retries, has finished."""
        while True:
            await self.queue.join()
            if not self._retry_tasks:
                return
            await asyncio.gather(*list(self._retry_tasks), return_exceptions=True)

    def get_job(self, job_id: str) -> Optional[ScrapingJob]:
        return self.jobs.get(job_id)

    def get_stats(self) -> Dict[str, Any]:
        """Get scraping queue statistics."""
        return {
            "running": self.running,
            "queue_size": self.queue.qsize(),
            "open_jobs": len(self._open_jobs_by_tracker),
            "pending_retries": len(self._retry_tasks),
            "stats": dict(self.stats),
        }

    async def _put(self, job: ScrapingJob) -> None:
        await self.queue.put((job.priority, next(self._sequence), job))

    async def _worker(self, worker_name: str) -> None:
        logger.debug("Worker started", worker=worker_name)
        while self.running:
            _, _, job = await self.queue.get()
            try:
                await self._process_job(job, worker_name)
            finally:
                self.queue.task_done()

    async def _process_job(self, job: ScrapingJob, worker_name: str) -> None:
        job.status = JobStatus.RUNNING
        job.started_at = _utcnow()
        job.attempts_made += 1

        log = logger.bind(job_id=job.job_id, tracker_id=job.tracker_id, worker=worker_name)
        log.info("Processing scraping job", attempt=job.attempts_made)

        try:
            job.result = await self.handler(job.tracker_id)
        except Exception as e:
            job.error_message = str(e)
            job.completed_at = _utcnow()

            if job.attempts_made < job.max_attempts:
                delay = self.backoff_seconds * 2 ** (job.attempts_made - 1)
                job.status = JobStatus.RETRYING
                self.stats["jobs_retried"] += 1
                log.warning(
                    "Scraping job failed, retrying",
                    attempt=job.attempts_made,
                    max_attempts=job.max_attempts,
                    delay_seconds=delay,
                    error=str(e),
                )
                self._schedule_retry(job, delay)
                return

            job.status = JobStatus.FAILED
            self.stats["jobs_failed"] += 1
            self._open_jobs_by_tracker.pop(job.tracker_id, None)
            log.error(
                "Scraping job failed permanently",
                attempts=job.attempts_made,
                error=str(e),
                error_type=type(e).__name__,
            )
            return

        job.status = JobStatus.COMPLETED
        job.completed_at = _utcnow()
        job.error_message = None
        self.stats["jobs_completed"] += 1
        self._open_jobs_by_tracker.pop(job.tracker_id, None)
        log.info("Scraping job completed")

    def _schedule_retry(self, job: ScrapingJob, delay: float) -> None:
        task = asyncio.create_task(self._requeue_after(job, delay))
        self._retry_tasks.add(task)
        task.add_done_callback(self._retry_tasks.discard)

    async def _requeue_after(self, job: ScrapingJob, delay: float) -> None:
        await asyncio.sleep(delay)
        job.status = JobStatus.PENDING
        await self._put(job)
