"""Shared enums used across features.

This module provides a single source of truth for enums used in both models and schemas.
"""

from enum import Enum


class TrackerScrapingStatus(str, Enum):
    """Lifecycle of a tracker inside the scrape pipeline."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class TrackerPlatform(str, Enum):
    """Platforms accepted by the tracker profile API."""

    STEAM = "steam"
    EPIC = "epic"
    XBL = "xbl"
    PSN = "psn"
    SWITCH = "switch"


class Game(str, Enum):
    """Games a tracker can point at."""

    ROCKET_LEAGUE = "rocket-league"


class PlaylistSlot(str, Enum):
    """Canonical ranked modes stored on a season record."""

    PLAYLIST_1V1 = "playlist_1v1"
    PLAYLIST_2V2 = "playlist_2v2"
    PLAYLIST_3V3 = "playlist_3v3"
    PLAYLIST_4V4 = "playlist_4v4"
