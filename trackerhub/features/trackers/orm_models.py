"""SQLAlchemy 2.0 ORM models for the trackers feature."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    Boolean,
    DateTime as SQLDateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ENUM, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from trackerhub.core.enums import Game, TrackerPlatform, TrackerScrapingStatus
from trackerhub.core.models import Base


def generate_id() -> str:
    return str(uuid.uuid4())


class TrackerORM(Base):
    """A linked external profile (game, platform, handle) owned by one user."""

    __tablename__ = "trackers"
    __table_args__ = (
        Index("idx_trackers_status_active", "scraping_status", "is_active", "is_deleted"),
        {"schema": "core"},
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_id,
        comment="Stable tracker identifier",
    )

    url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        comment="Public tracker profile URL",
    )

    game: Mapped[Game] = mapped_column(
        ENUM(Game, name="tracker_game_enum", schema="core"),
        nullable=False,
        default=Game.ROCKET_LEAGUE,
        comment="Game the profile belongs to",
    )

    platform: Mapped[TrackerPlatform] = mapped_column(
        ENUM(TrackerPlatform, name="tracker_platform_enum", schema="core"),
        nullable=False,
        index=True,
        comment="Platform of the profile (steam, epic, xbl, psn, switch)",
    )

    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        comment="Owning user",
    )

    display_name: Mapped[Optional[str]] = mapped_column(
        String(128),
        nullable=True,
        comment="Handle shown on the tracker site",
    )

    # Scrape pipeline state
    scraping_status: Mapped[TrackerScrapingStatus] = mapped_column(
        ENUM(TrackerScrapingStatus, name="tracker_scraping_status_enum", schema="core"),
        nullable=False,
        default=TrackerScrapingStatus.PENDING,
        index=True,
        comment="Position of the tracker in the scrape pipeline",
    )

    scraping_error: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Error message of the last failed scrape",
    )

    scraping_attempts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Failed scrape count, only ever increases",
    )

    last_scraped_at: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=True,
        index=True,
        comment="When the last successful scrape finished",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
        comment="Whether the tracker takes part in scraping",
    )

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        comment="Soft-delete flag, season history is preserved",
    )

    created_at: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    seasons: Mapped[list["TrackerSeasonORM"]] = relationship(
        back_populates="tracker",
        cascade="all, delete-orphan",
        order_by="TrackerSeasonORM.season_number.desc()",
    )

    def is_selectable(self) -> bool:
        """Whether batch selection may pick this tracker up at all."""
        return self.is_active and not self.is_deleted

    def is_stale(self, refresh_interval: timedelta, now: Optional[datetime] = None) -> bool:
        """Never scraped, or last scraped longer ago than ``refresh_interval``."""
        if self.last_scraped_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        return self.last_scraped_at < now - refresh_interval

    def __repr__(self) -> str:
        return f"<TrackerORM(id={self.id}, platform={self.platform}, status={self.scraping_status})>"


class TrackerSeasonORM(Base):
    """Normalized stats of one tracker for one season."""

    __tablename__ = "tracker_seasons"
    __table_args__ = (
        UniqueConstraint(
            "tracker_id", "season_number", name="uq_tracker_seasons_tracker_season"
        ),
        {"schema": "core"},
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_id,
    )

    tracker_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("core.trackers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Tracker the season belongs to",
    )

    season_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        comment="Competitive season number",
    )

    season_name: Mapped[Optional[str]] = mapped_column(
        String(128),
        nullable=True,
        comment="Display name of the season",
    )

    playlist_1v1: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSONB(none_as_null=True), nullable=True, comment="Ranked Duel stats"
    )
    playlist_2v2: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSONB(none_as_null=True), nullable=True, comment="Ranked Doubles stats"
    )
    playlist_3v3: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSONB(none_as_null=True), nullable=True, comment="Ranked Standard stats"
    )
    playlist_4v4: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSONB(none_as_null=True), nullable=True, comment="Ranked Quads stats"
    )

    scraped_at: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="When these stats were scraped",
    )

    created_at: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    tracker: Mapped["TrackerORM"] = relationship(back_populates="seasons")

    def __repr__(self) -> str:
        return f"<TrackerSeasonORM(tracker_id={self.tracker_id}, season={self.season_number})>"
