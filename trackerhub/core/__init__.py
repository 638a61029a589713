"""Core infrastructure module.

This module exports core utilities used across features.
Never imports from features - only from external libraries.
"""

from .config import Settings, get_settings, get_global_settings
from .database import DatabaseManager, get_db_manager
from .enums import Game, PlaylistSlot, TrackerPlatform, TrackerScrapingStatus
from .exceptions import DatabaseError, ServiceException, TrackerNotFoundError
from .logging import setup_logging
from .models import Base

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "get_global_settings",
    # Database
    "DatabaseManager",
    "get_db_manager",
    # Enums
    "Game",
    "PlaylistSlot",
    "TrackerPlatform",
    "TrackerScrapingStatus",
    # Exceptions
    "ServiceException",
    "TrackerNotFoundError",
    "DatabaseError",
    # Logging
    "setup_logging",
    # Models
    "Base",
]
