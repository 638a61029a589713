"""Tracker ingestion feature: parsing, scraping, eligibility and batching."""

from .batch_processor import TrackerBatchProcessor
from .guard import TrackerProcessingGuard
from .orm_models import TrackerORM, TrackerSeasonORM
from .parser import (
    ALTERNATIVE_PLAYLIST_IDS,
    PRIMARY_PLAYLIST_IDS,
    extract_playlist_data,
    parse_segments,
    resolve_season_name,
)
from .repository import SQLAlchemySeasonStore, SQLAlchemyTrackerRepository
from .schemas import BatchProcessingResult, PlaylistData, ScrapingJobResult, SeasonRecord
from .scraper import TrackerScraperService
from .worker import TrackerScrapingWorker

__all__ = [
    "TrackerBatchProcessor",
    "TrackerProcessingGuard",
    "TrackerORM",
    "TrackerSeasonORM",
    "ALTERNATIVE_PLAYLIST_IDS",
    "PRIMARY_PLAYLIST_IDS",
    "extract_playlist_data",
    "parse_segments",
    "resolve_season_name",
    "SQLAlchemySeasonStore",
    "SQLAlchemyTrackerRepository",
    "BatchProcessingResult",
    "PlaylistData",
    "ScrapingJobResult",
    "SeasonRecord",
    "TrackerScraperService",
    "TrackerScrapingWorker",
]
