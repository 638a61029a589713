"""Pydantic schemas for normalized tracker season data."""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from trackerhub.core.enums import PlaylistSlot

# Whole-number stats stay ints; fractional values from the source are kept as-is
Count = Union[int, float]


class PlaylistData(BaseModel):
    """Normalized stats of one ranked mode for one season.

    Every field may be None when the source segment lacked it.
    """

    rank: Optional[str] = Field(None, description="Rank name, e.g. 'Grand Champion II'")
    rank_value: Optional[Count] = Field(
        None, alias="rankValue", description="Rank ordinal"
    )
    division: Optional[str] = Field(None, description="Division name, e.g. 'Division III'")
    division_value: Optional[Count] = Field(
        None, alias="divisionValue", description="Division ordinal"
    )
    rating: Optional[float] = Field(None, description="Matchmaking rating")
    matches_played: Optional[Count] = Field(
        None, alias="matchesPlayed", description="Matches played in the season"
    )
    win_streak: Optional[Count] = Field(
        None, alias="winStreak", description="Current win streak"
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class SeasonRecord(BaseModel):
    """One season of normalized stats for a tracker.

    Unique per (tracker, season_number). A None playlist slot means the mode had
    no matching segment or its stat block was malformed.
    """

    season_number: int = Field(..., alias="seasonNumber")
    season_name: Optional[str] = Field(None, alias="seasonName")
    playlist_1v1: Optional[PlaylistData] = Field(None, alias="playlist1v1")
    playlist_2v2: Optional[PlaylistData] = Field(None, alias="playlist2v2")
    playlist_3v3: Optional[PlaylistData] = Field(None, alias="playlist3v3")
    playlist_4v4: Optional[PlaylistData] = Field(None, alias="playlist4v4")
    scraped_at: Optional[datetime] = Field(None, alias="scrapedAt")

    model_config = ConfigDict(populate_by_name=True)

    def get_playlist(self, slot: PlaylistSlot) -> Optional[PlaylistData]:
        return getattr(self, slot.value)

    def has_any_playlist(self) -> bool:
        return any(self.get_playlist(slot) is not None for slot in PlaylistSlot)


class BatchProcessingResult(BaseModel):
    """Outcome of selecting and enqueueing trackers."""

    processed_count: int = Field(0, alias="processedCount")
    tracker_ids: List[str] = Field(default_factory=list, alias="trackerIds")

    model_config = ConfigDict(populate_by_name=True)


class ScrapingJobResult(BaseModel):
    """Outcome of one scraping job for one tracker."""

    success: bool
    seasons_scraped: int = Field(0, alias="seasonsScraped")
    seasons_failed: int = Field(0, alias="seasonsFailed")
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)
