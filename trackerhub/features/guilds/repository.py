"""Membership and community-settings providers backed by the relational store."""

from typing import List

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .orm_models import GuildMemberORM, GuildSettingsORM
from .schemas import GuildSettings, Membership

logger = structlog.get_logger(__name__)


class SQLAlchemyMembershipProvider:
    """Lists a user's active community memberships."""

    def __init__(self, db: AsyncSession):
        """Initialize provider with database session.

        :param db: Async database session
        """
        self.db = db

    async def list_active_memberships(self, user_id: str) -> List[Membership]:
        """Memberships of ``user_id`` that are neither deleted nor banned."""
        stmt = (
            select(GuildMemberORM.guild_id)
            .where(
                GuildMemberORM.user_id == user_id,
                GuildMemberORM.is_deleted == False,  # noqa: E712
                GuildMemberORM.is_banned == False,  # noqa: E712
            )
            .order_by(GuildMemberORM.guild_id)
        )

        result = await self.db.execute(stmt)
        memberships = [
            Membership(guild_id=guild_id, user_id=user_id)
            for guild_id in result.scalars().all()
        ]

        logger.debug(
            "active_memberships_retrieved", user_id=user_id, count=len(memberships)
        )

        return memberships


class SQLAlchemyCommunitySettingsProvider:
    """Reads the tracker-processing opt-in of a community."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_settings(self, guild_id: str) -> GuildSettings:
        """Settings of ``guild_id``; a guild without stored settings is opted in."""
        stmt = select(GuildSettingsORM.settings).where(
            GuildSettingsORM.guild_id == guild_id
        )
        result = await self.db.execute(stmt)
        document = result.scalar_one_or_none()

        settings = GuildSettings.from_document(guild_id, document)
        logger.debug(
            "guild_settings_retrieved",
            guild_id=guild_id,
            stored=document is not None,
            processing_enabled=settings.processing_enabled,
        )
        return settings
