"""Scraping job handler: scrape one tracker and persist its seasons."""

from datetime import datetime, timezone
from typing import Sequence, Tuple

import structlog

from trackerhub.core.exceptions import DatabaseError, TrackerNotFoundError
from trackerhub.protocols import SeasonStore, TrackerRepository

from .schemas import ScrapingJobResult, SeasonRecord
from .scraper import TrackerScraperService

logger = structlog.get_logger(__name__)


class TrackerScrapingWorker:
    """Runs the scrape pipeline for a single tracker id."""

    def __init__(
        self,
        scraper: TrackerScraperService,
        trackers: TrackerRepository,
        seasons: SeasonStore,
    ):
        self.scraper = scraper
        self.trackers = trackers
        self.seasons = seasons

    async def process(self, tracker_id: str) -> ScrapingJobResult:
        """
        Scrape every season of a tracker and store the results.

        The tracker is marked IN_PROGRESS, then SUCCEEDED with ``last_scraped_at``.
        On failure it is marked FAILED with the error, its attempt counter is
        incremented, and the error is re-raised so the queue can retry the job.

        :param tracker_id: Tracker to scrape
        :returns: Number of seasons stored and seasons that failed to store
        :raises TrackerNotFoundError: If the tracker does not exist or was deleted
        """
        tracker = await self.trackers.get_by_id(tracker_id)
        if tracker is None:
            raise TrackerNotFoundError(tracker_id)

        if not tracker.is_selectable():
            logger.info("Skipping inactive tracker", tracker_id=tracker_id)
            return ScrapingJobResult(success=False, error="Tracker is not active")

        log = logger.bind(tracker_id=tracker_id)
        log.info("Processing scraping job")

        await self.trackers.mark_in_progress(tracker_id)

        try:
            records = await self.scraper.scrape_all_seasons(tracker.url)
            if not records:
                log.warning("No seasons found for tracker")
            seasons_scraped, seasons_failed = await self._store_seasons(
                tracker_id, records
            )
        except Exception as e:
            log.error(
                "Scraping job failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            await self.trackers.mark_failed(tracker_id, str(e))
            raise

        await self.trackers.mark_succeeded(tracker_id, datetime.now(timezone.utc))

        log.info(
            "Scraping job finished",
            seasons_scraped=seasons_scraped,
            seasons_failed=seasons_failed,
        )
        return ScrapingJobResult(
            success=True,
            seasons_scraped=seasons_scraped,
            seasons_failed=seasons_failed,
        )

    async def _store_seasons(
        self, tracker_id: str, records: Sequence[SeasonRecord]
    ) -> Tuple[int, int]:
        """Bulk upsert, falling back to one upsert per season."""
        if not records:
            return 0, 0

        try:
            await self.seasons.bulk_upsert(tracker_id, records)
            return len(records), 0
        except Exception as e:
            logger.warning(
                "Bulk season upsert failed, falling back to individual upserts",
                tracker_id=tracker_id,
                error=str(e),
            )

        stored = failed = 0
        for record in records:
            try:
                await self.seasons.upsert(tracker_id, record)
                stored += 1
            except Exception as e:
                logger.error(
                    "Failed to store season",
                    tracker_id=tracker_id,
                    season=record.season_number,
                    error=str(e),
                )
                failed += 1

        if stored == 0:
            raise DatabaseError(
                "Failed to store any scraped season",
                {"tracker_id": tracker_id, "seasons": len(records)},
            )
        return stored, failed
