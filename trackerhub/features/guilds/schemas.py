"""Pydantic schemas for guild membership and guild settings."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Membership(BaseModel):
    """Active (not deleted, not banned) membership of a user in a community."""

    guild_id: str = Field(..., alias="guildId")
    user_id: str = Field(..., alias="userId")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class GuildSettings(BaseModel):
    """Settings the tracker pipeline reads from a community."""

    guild_id: str = Field(..., alias="guildId")
    processing_enabled: bool = Field(
        True,
        alias="processingEnabled",
        description="Whether automatic tracker processing is opted in",
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @classmethod
    def from_document(
        cls, guild_id: str, document: Optional[Dict[str, Any]]
    ) -> "GuildSettings":
        """Read ``trackerProcessing.enabled`` from a stored settings document.

        Anything other than an explicit boolean counts as unset (enabled).
        """
        tracker_processing = (document or {}).get("trackerProcessing")
        enabled = True
        if isinstance(tracker_processing, dict) and isinstance(
            tracker_processing.get("enabled"), bool
        ):
            enabled = tracker_processing["enabled"]
        return cls(guild_id=guild_id, processing_enabled=enabled)
