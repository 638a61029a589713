"""Background scraping queue and refresh scheduling."""

from .queue import JobStatus, ScrapingJob, ScrapingQueue, make_job_id
from .scheduler import TrackerRefreshScheduler, create_scheduler

__all__ = [
    "JobStatus",
    "ScrapingJob",
    "ScrapingQueue",
    "make_job_id",
    "TrackerRefreshScheduler",
    "create_scheduler",
]
