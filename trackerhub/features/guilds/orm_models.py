"""SQLAlchemy 2.0 ORM models for guild memberships and guild settings."""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import (
    Boolean,
    DateTime as SQLDateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from trackerhub.core.models import Base


class GuildMemberORM(Base):
    """Membership of one user in one community (Discord guild)."""

    __tablename__ = "guild_members"
    __table_args__ = (
        UniqueConstraint("guild_id", "user_id", name="uq_guild_members_guild_user"),
        Index("idx_guild_members_user_flags", "user_id", "is_deleted", "is_banned"),
        {"schema": "core"},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    guild_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        comment="Discord guild snowflake",
    )

    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        comment="Member user",
    )

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Membership removed (user left the guild)",
    )

    is_banned: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="User banned from the guild",
    )

    joined_at: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class GuildSettingsORM(Base):
    """Free-form settings document of one community."""

    __tablename__ = "guild_settings"
    __table_args__ = {"schema": "core"}

    guild_id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Discord guild snowflake",
    )

    settings: Mapped[Dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        comment="Settings document, e.g. {'trackerProcessing': {'enabled': true}}",
    )

    updated_at: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
