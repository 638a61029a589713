"""Guild membership and settings feature."""

from .orm_models import GuildMemberORM, GuildSettingsORM
from .repository import SQLAlchemyCommunitySettingsProvider, SQLAlchemyMembershipProvider
from .schemas import GuildSettings, Membership

__all__ = [
    "GuildMemberORM",
    "GuildSettingsORM",
    "GuildSettings",
    "Membership",
    "SQLAlchemyCommunitySettingsProvider",
    "SQLAlchemyMembershipProvider",
]
