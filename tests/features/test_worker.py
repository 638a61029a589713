"""
Tests for the scraping job handler.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from trackerhub.core.enums import TrackerPlatform
from trackerhub.core.exceptions import DatabaseError, TrackerNotFoundError
from trackerhub.core.flaresolverr import ServiceUnavailableError
from trackerhub.features.trackers.orm_models import TrackerORM
from trackerhub.features.trackers.schemas import SeasonRecord
from trackerhub.features.trackers.worker import TrackerScrapingWorker

URL = "https://rocketleague.tracker.network/rocket-league/profile/steam/76561198051701160/overview"


@pytest.fixture
def tracker():
    return TrackerORM(
        id="tracker-1",
        url=URL,
        platform=TrackerPlatform.STEAM,
        user_id="user-1",
        is_active=True,
        is_deleted=False,
    )


@pytest.fixture
def mock_trackers(tracker):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=tracker)
    repo.mark_in_progress = AsyncMock()
    repo.mark_succeeded = AsyncMock()
    repo.mark_failed = AsyncMock()
    return repo


@pytest.fixture
def mock_seasons():
    store = MagicMock()
    store.bulk_upsert = AsyncMock()
    store.upsert = AsyncMock()
    return store


@pytest.fixture
def mock_scraper():
    scraper = MagicMock()
    scraper.scrape_all_seasons = AsyncMock(
        return_value=[SeasonRecord(season_number=34), SeasonRecord(season_number=33)]
    )
    return scraper


@pytest.fixture
def worker(mock_scraper, mock_trackers, mock_seasons):
    return TrackerScrapingWorker(mock_scraper, mock_trackers, mock_seasons)


class TestTrackerScrapingWorker:
    """Test cases for TrackerScrapingWorker."""

    @pytest.mark.asyncio
    async def test_success(self, worker, mock_scraper, mock_trackers, mock_seasons):
        result = await worker.process("tracker-1")

        assert result.success is True
        assert result.seasons_scraped == 2
        assert result.seasons_failed == 0
        mock_trackers.mark_in_progress.assert_awaited_once_with("tracker-1")
        mock_scraper.scrape_all_seasons.assert_awaited_once_with(URL)
        mock_seasons.bulk_upsert.assert_awaited_once()
        mock_trackers.mark_succeeded.assert_awaited_once()
        mock_trackers.mark_failed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_scrape_failure_marks_failed_and_reraises(
        self, worker, mock_scraper, mock_trackers
    ):
        mock_scraper.scrape_all_seasons.side_effect = ServiceUnavailableError(
            "proxy down", attempts=3
        )

        with pytest.raises(ServiceUnavailableError):
            await worker.process("tracker-1")

        mock_trackers.mark_failed.assert_awaited_once()
        tracker_id, error = mock_trackers.mark_failed.await_args.args
        assert tracker_id == "tracker-1"
        assert "proxy down" in error
        mock_trackers.mark_succeeded.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bulk_failure_falls_back_to_single_upserts(
        self, worker, mock_seasons
    ):
        mock_seasons.bulk_upsert.side_effect = DatabaseError("deadlock")
        mock_seasons.upsert.side_effect = [None, DatabaseError("constraint")]

        result = await worker.process("tracker-1")

        assert result.success is True
        assert result.seasons_scraped == 1
        assert result.seasons_failed == 1
        assert mock_seasons.upsert.await_count == 2

    @pytest.mark.asyncio
    async def test_nothing_stored_marks_failed(self, worker, mock_trackers, mock_seasons):
        mock_seasons.bulk_upsert.side_effect = DatabaseError("down")
        mock_seasons.upsert.side_effect = DatabaseError("down")

        with pytest.raises(DatabaseError):
            await worker.process("tracker-1")

        mock_trackers.mark_failed.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_seasons_still_succeeds(self, worker, mock_scraper, mock_seasons, mock_trackers):
        mock_scraper.scrape_all_seasons.return_value = []

        result = await worker.process("tracker-1")

        assert result.success is True
        assert result.seasons_scraped == 0
        mock_seasons.bulk_upsert.assert_not_awaited()
        mock_trackers.mark_succeeded.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_tracker(self, worker, mock_trackers):
        mock_trackers.get_by_id.return_value = None

        with pytest.raises(TrackerNotFoundError):
            await worker.process("gone")

        mock_trackers.mark_in_progress.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_inactive_tracker_skipped(self, worker, tracker, mock_scraper, mock_trackers):
        tracker.is_active = False

        result = await worker.process("tracker-1")

        assert result.success is False
        mock_scraper.scrape_all_seasons.assert_not_awaited()
        mock_trackers.mark_in_progress.assert_not_awaited()
