"""Service entry point: scraping queue plus periodic tracker refresh."""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog

from trackerhub.core import get_db_manager, get_global_settings, setup_logging
from trackerhub.core.flaresolverr import FlareSolverrClient
from trackerhub.features.trackers.dependencies import (
    batch_processor_scope,
    scraping_job_handler,
)
from trackerhub.features.trackers.scraper import TrackerScraperService
from trackerhub.tasks import ScrapingQueue, TrackerRefreshScheduler

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan() -> AsyncIterator[TrackerRefreshScheduler]:
    """Start the queue and scheduler, and tear everything down on exit."""
    db_manager = get_db_manager()
    client = FlareSolverrClient()
    await client.start_session()

    queue = ScrapingQueue(
        scraping_job_handler(db_manager, TrackerScraperService(client))
    )
    refresh_scheduler = TrackerRefreshScheduler(batch_processor_scope(db_manager, queue))

    logger.info("Starting tracker ingestion service")
    await queue.start()
    refresh_scheduler.start()
    try:
        yield refresh_scheduler
    finally:
        logger.info("Shutting down tracker ingestion service")
        refresh_scheduler.shutdown()
        await queue.stop()
        await client.close()
        await db_manager.close()


async def run() -> None:
    """Run until SIGINT or SIGTERM."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    async with lifespan():
        await stop.wait()


def main() -> None:
    settings = get_global_settings()
    setup_logging(settings.log_level, json_logs=not settings.debug)
    asyncio.run(run())


if __name__ == "__main__":
    main()
