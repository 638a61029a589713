"""Wiring of the tracker pipeline onto database sessions."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from trackerhub.core.database import DatabaseManager
from trackerhub.features.guilds.repository import (
    SQLAlchemyCommunitySettingsProvider,
    SQLAlchemyMembershipProvider,
)
from trackerhub.protocols import JobQueue

from .batch_processor import TrackerBatchProcessor
from .guard import TrackerProcessingGuard
from .repository import SQLAlchemySeasonStore, SQLAlchemyTrackerRepository
from .schemas import ScrapingJobResult
from .scraper import TrackerScraperService
from .worker import TrackerScrapingWorker


def batch_processor_scope(db_manager: DatabaseManager, queue: JobQueue):
    """Factory of session-scoped batch processors for the refresh scheduler."""

    @asynccontextmanager
    async def scope() -> AsyncIterator[TrackerBatchProcessor]:
        async with db_manager.get_session() as session:
            trackers = SQLAlchemyTrackerRepository(session)
            guard = TrackerProcessingGuard(
                trackers,
                SQLAlchemyMembershipProvider(session),
                SQLAlchemyCommunitySettingsProvider(session),
            )
            yield TrackerBatchProcessor(trackers, guard, queue)

    return scope


def scraping_job_handler(
    db_manager: DatabaseManager, scraper: TrackerScraperService
) -> Callable[[str], Awaitable[ScrapingJobResult]]:
    """Queue handler running one scraping job in its own session."""

    async def handle(tracker_id: str) -> ScrapingJobResult:
        async with db_manager.get_session() as session:
            worker = TrackerScrapingWorker(
                scraper,
                SQLAlchemyTrackerRepository(session),
                SQLAlchemySeasonStore(session),
            )
            return await worker.process(tracker_id)

    return handle
