"""Pydantic models for the tracker profile payload returned through the proxy.

The upstream payload is only partially typed: optional top-level objects are
replaced with zero-valued defaults, while ``segments`` and ``availableSegments``
are required. Odd fields inside a single segment never fail the profile; the
playlist parser decides per mode whether a segment is usable.
"""

from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = structlog.get_logger(__name__)


def _none_to_empty(value: Any) -> Any:
    return {} if value is None else value


def _object_or_empty(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _str_or_empty(value: Any) -> str:
    return value if isinstance(value, str) else ""


class PlatformInfo(BaseModel):
    """Platform identity of the profile."""

    platform_slug: str = Field(default="", alias="platformSlug")
    platform_user_id: str = Field(default="", alias="platformUserId")
    platform_user_handle: str = Field(default="", alias="platformUserHandle")

    @field_validator("*", mode="before")
    @classmethod
    def coerce_to_str(cls, v: Any) -> str:
        """Identifiers arrive as numbers for some platforms."""
        return "" if v is None else str(v)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UserInfo(BaseModel):
    """Tracker-side account metadata."""

    user_id: int = Field(default=0, alias="userId")
    is_premium: bool = Field(default=False, alias="isPremium")

    @field_validator("user_id", mode="before")
    @classmethod
    def default_user_id(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("is_premium", mode="before")
    @classmethod
    def default_is_premium(cls, v: Any) -> Any:
        return False if v is None else v

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ProfileMetadata(BaseModel):
    """Freshness metadata of the profile."""

    last_updated: str = Field(default="", alias="lastUpdated")
    player_id: int = Field(default=0, alias="playerId")
    current_season: int = Field(default=0, alias="currentSeason")

    @field_validator("last_updated", mode="before")
    @classmethod
    def unwrap_last_updated(cls, v: Any) -> str:
        """``lastUpdated`` is either a plain string or a ``{value: ...}`` stat."""
        if isinstance(v, dict):
            v = v.get("value")
        return "" if v is None else str(v)

    @field_validator("player_id", "current_season", mode="before")
    @classmethod
    def default_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TrackerSegment(BaseModel):
    """One raw stat block tagged by playlist id and season.

    ``stats`` is kept untyped; the playlist parser validates each stat field.
    """

    type: str = ""
    attributes: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    stats: Any = None

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> str:
        return _str_or_empty(v)

    @field_validator("attributes", "metadata", mode="before")
    @classmethod
    def coerce_object(cls, v: Any) -> Dict[str, Any]:
        return _object_or_empty(v)

    @property
    def season(self) -> Optional[int]:
        """Season number the segment belongs to."""
        season = self.attributes.get("season")
        return season if _is_int(season) else None

    @property
    def playlist_id(self) -> Optional[int]:
        """Numeric playlist variant id."""
        playlist_id = self.attributes.get("playlistId")
        return playlist_id if _is_int(playlist_id) else None

    @property
    def name(self) -> Optional[str]:
        name = self.metadata.get("name")
        return name if isinstance(name, str) and name else None

    model_config = ConfigDict(extra="ignore")


class AvailableSegment(BaseModel):
    """Descriptor of a historical season that can be requested."""

    type: str = ""
    attributes: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> str:
        return _str_or_empty(v)

    @field_validator("attributes", "metadata", mode="before")
    @classmethod
    def coerce_object(cls, v: Any) -> Dict[str, Any]:
        return _object_or_empty(v)

    @property
    def season(self) -> Optional[int]:
        season = self.attributes.get("season")
        return season if _is_int(season) else None

    @property
    def name(self) -> Optional[str]:
        name = self.metadata.get("name")
        return name if isinstance(name, str) and name else None

    model_config = ConfigDict(extra="ignore")


class ScrapedProfile(BaseModel):
    """Complete profile payload decoded from the proxy response."""

    platform_info: PlatformInfo = Field(
        default_factory=PlatformInfo, alias="platformInfo"
    )
    user_info: UserInfo = Field(default_factory=UserInfo, alias="userInfo")
    metadata: ProfileMetadata = Field(default_factory=ProfileMetadata)
    segments: List[TrackerSegment]
    available_segments: List[AvailableSegment] = Field(..., alias="availableSegments")

    @field_validator("platform_info", "user_info", "metadata", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return _none_to_empty(v)

    @field_validator("segments", "available_segments", mode="before")
    @classmethod
    def drop_non_objects(cls, v: Any) -> Any:
        """Entries that are not objects carry nothing usable; skip them."""
        if not isinstance(v, list):
            return v
        kept = [item for item in v if isinstance(item, dict)]
        if len(kept) != len(v):
            logger.warning(
                "Skipping non-object entries in profile payload",
                dropped=len(v) - len(kept),
            )
        return kept

    @property
    def current_season(self) -> int:
        return self.metadata.current_season

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
