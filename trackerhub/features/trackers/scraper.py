"""Scrape orchestrator: current season plus sequential historical season crawl."""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import structlog

from trackerhub.core.flaresolverr import (
    AvailableSegment,
    FlareSolverrClient,
    MalformedResponseError,
    ScrapedProfile,
)
from trackerhub.jobs.error_handling import handle_scraper_errors

from .parser import PLAYLIST_SEGMENT_TYPE, parse_segments
from .schemas import SeasonRecord

logger = structlog.get_logger(__name__)


def infer_current_season(profile: ScrapedProfile) -> Optional[int]:
    """Reported current season, else the newest season present in the segments."""
    if profile.current_season > 0:
        return profile.current_season

    seasons = [
        segment.season
        for segment in profile.segments
        if segment.type == PLAYLIST_SEGMENT_TYPE and segment.season
    ]
    return max(seasons) if seasons else None


def discover_seasons(available_segments: Sequence[AvailableSegment]) -> List[int]:
    """Distinct playlist seasons advertised by the profile, newest first."""
    seasons = {
        available.season
        for available in available_segments
        if available.type == PLAYLIST_SEGMENT_TYPE
        and available.season is not None
        and available.season > 0
    }
    return sorted(seasons, reverse=True)


class TrackerScraperService:
    """Fetches tracker profiles and turns them into season records."""

    def __init__(self, client: FlareSolverrClient):
        """
        Initialize the scraper.

        :param client: Proxy client used for every profile request
        """
        self.client = client

    async def scrape_current_season(self, url: str) -> SeasonRecord:
        """
        Scrape the season the profile reports as current.

        :param url: Tracker profile URL
        :returns: Parsed season record
        :raises ScraperProxyError: If the profile cannot be fetched or decoded
        """
        profile = await self.client.fetch_profile(url)
        current_season = infer_current_season(profile)
        if current_season is None:
            raise MalformedResponseError("Profile does not report a current season")

        return self._parse(profile, current_season, profile.available_segments)

    async def scrape_season(
        self,
        url: str,
        season_number: int,
        available_segments: Optional[Sequence[AvailableSegment]] = None,
    ) -> SeasonRecord:
        """Scrape one historical season by appending the season parameter."""
        profile = await self.client.fetch_profile(url, season_number=season_number)
        return self._parse(
            profile,
            season_number,
            available_segments
            if available_segments is not None
            else profile.available_segments,
        )

    async def scrape_all_seasons(self, url: str) -> List[SeasonRecord]:
        """
        Scrape the current season and every advertised historical season.

        Historical seasons are requested one at a time. A season whose scrape
        fails is logged and left out; only a failed base request raises.

        :param url: Tracker profile URL
        :returns: Season records sorted by season number, newest first
        """
        profile = await self.client.fetch_profile(url)
        current_season = infer_current_season(profile)
        available_seasons = discover_seasons(profile.available_segments)

        if not available_seasons:
            logger.warning(
                "No seasons available for scraping, using base response only",
                url=url,
                current_season=current_season,
            )
            if current_season is None:
                return []
            return [self._parse(profile, current_season, profile.available_segments)]

        records: Dict[int, SeasonRecord] = {}
        if current_season is not None:
            records[current_season] = self._parse(
                profile, current_season, profile.available_segments
            )

        seasons_to_scrape = [s for s in available_seasons if s != current_season]
        failed = 0
        for season_number in seasons_to_scrape:
            record = await self._scrape_season_isolated(
                url, season_number, profile.available_segments
            )
            if record is None:
                failed += 1
                continue
            records[season_number] = record

        logger.info(
            "Scraped tracker seasons",
            url=url,
            current_season=current_season,
            seasons_scraped=len(records),
            seasons_failed=failed,
            seasons_available=len(available_seasons),
        )

        return sorted(records.values(), key=lambda r: r.season_number, reverse=True)

    @handle_scraper_errors(
        operation="scrape season",
        critical=False,
        log_context=lambda self, url, season_number, available_segments: {
            "url": url,
            "season": season_number,
        },
    )
    async def _scrape_season_isolated(
        self,
        url: str,
        season_number: int,
        available_segments: Sequence[AvailableSegment],
    ) -> Optional[SeasonRecord]:
        return await self.scrape_season(url, season_number, available_segments)

    @staticmethod
    def _parse(
        profile: ScrapedProfile,
        season_number: int,
        available_segments: Sequence[AvailableSegment],
    ) -> SeasonRecord:
        record = parse_segments(profile.segments, season_number, available_segments)
        return record.model_copy(update={"scraped_at": datetime.now(timezone.utc)})
