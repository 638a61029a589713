"""Repository pattern implementation for the trackers feature.

Provides collection-like access to trackers and the season store, isolating
SQLAlchemy queries from the scrape pipeline.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import structlog
from sqlalchemy import func, or_, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trackerhub.core.enums import PlaylistSlot, TrackerScrapingStatus
from trackerhub.core.exceptions import DatabaseError, TrackerNotFoundError
from trackerhub.features.guilds.orm_models import GuildMemberORM

from .orm_models import TrackerORM, TrackerSeasonORM, generate_id
from .schemas import SeasonRecord

logger = structlog.get_logger(__name__)


class TrackerRepositoryInterface(ABC):
    """Interface for tracker repository.

    Defines contract for data access operations.
    Enables mocking and potential swap of implementations.
    """

    @abstractmethod
    async def get_by_id(self, tracker_id: str) -> Optional[TrackerORM]:
        """Get a non-deleted tracker by id.

        :param tracker_id: Tracker identifier
        :returns: TrackerORM if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_user_id_by_id(self, tracker_id: str) -> Optional[str]:
        """Owning user of a non-deleted tracker.

        :param tracker_id: Tracker identifier
        :returns: User id, or None if the tracker does not exist
        """
        pass

    @abstractmethod
    async def find_user_ids_by_ids(self, tracker_ids: Sequence[str]) -> Dict[str, str]:
        """Owning users of several trackers in one query.

        :param tracker_ids: Tracker identifiers
        :returns: Mapping of tracker id to user id (missing trackers are absent)
        """
        pass

    @abstractmethod
    async def find_pending_ids(self) -> List[str]:
        """Active, non-deleted trackers with status PENDING, oldest first."""
        pass

    @abstractmethod
    async def find_pending_and_stale_ids(self, stale_before: datetime) -> List[str]:
        """Active, non-deleted trackers that are PENDING or not scraped since ``stale_before``."""
        pass

    @abstractmethod
    async def find_pending_and_stale_ids_for_guild(
        self, guild_id: str, stale_before: datetime
    ) -> List[str]:
        """Same as ``find_pending_and_stale_ids``, restricted to active members of a guild."""
        pass

    @abstractmethod
    async def mark_in_progress(self, tracker_id: str) -> None:
        pass

    @abstractmethod
    async def mark_succeeded(self, tracker_id: str, scraped_at: datetime) -> None:
        pass

    @abstractmethod
    async def mark_failed(self, tracker_id: str, error: str) -> None:
        pass


def _selectable():
    return (
        TrackerORM.is_active == True,  # noqa: E712
        TrackerORM.is_deleted == False,  # noqa: E712
    )


def _pending_or_stale(stale_before: datetime):
    return or_(
        TrackerORM.scraping_status == TrackerScrapingStatus.PENDING,
        TrackerORM.last_scraped_at.is_(None),
        TrackerORM.last_scraped_at < stale_before,
    )


class SQLAlchemyTrackerRepository(TrackerRepositoryInterface):
    """SQLAlchemy implementation of tracker repository."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session.

        :param db: Async database session
        """
        self.db = db

    async def get_by_id(self, tracker_id: str) -> Optional[TrackerORM]:
        stmt = select(TrackerORM).where(
            TrackerORM.id == tracker_id,
            TrackerORM.is_deleted == False,  # noqa: E712
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_user_id_by_id(self, tracker_id: str) -> Optional[str]:
        stmt = select(TrackerORM.user_id).where(
            TrackerORM.id == tracker_id,
            TrackerORM.is_deleted == False,  # noqa: E712
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_user_ids_by_ids(self, tracker_ids: Sequence[str]) -> Dict[str, str]:
        if not tracker_ids:
            return {}

        stmt = select(TrackerORM.id, TrackerORM.user_id).where(
            TrackerORM.id.in_(list(tracker_ids)),
            TrackerORM.is_deleted == False,  # noqa: E712
        )
        result = await self.db.execute(stmt)
        return {tracker_id: user_id for tracker_id, user_id in result.all()}

    async def find_pending_ids(self) -> List[str]:
        stmt = (
            select(TrackerORM.id)
            .where(
                *_selectable(),
                TrackerORM.scraping_status == TrackerScrapingStatus.PENDING,
            )
            .order_by(TrackerORM.created_at.asc())
        )
        result = await self.db.execute(stmt)
        tracker_ids = list(result.scalars().all())

        logger.debug("pending_trackers_retrieved", count=len(tracker_ids))
        return tracker_ids

    async def find_pending_and_stale_ids(self, stale_before: datetime) -> List[str]:
        stmt = (
            select(TrackerORM.id)
            .where(*_selectable(), _pending_or_stale(stale_before))
            .order_by(TrackerORM.last_scraped_at.asc().nulls_first())
        )
        result = await self.db.execute(stmt)
        tracker_ids = list(result.scalars().all())

        logger.debug(
            "pending_and_stale_trackers_retrieved",
            stale_before=stale_before.isoformat(),
            count=len(tracker_ids),
        )
        return tracker_ids

    async def find_pending_and_stale_ids_for_guild(
        self, guild_id: str, stale_before: datetime
    ) -> List[str]:
        members = select(GuildMemberORM.user_id).where(
            GuildMemberORM.guild_id == guild_id,
            GuildMemberORM.is_deleted == False,  # noqa: E712
            GuildMemberORM.is_banned == False,  # noqa: E712
        )
        stmt = (
            select(TrackerORM.id)
            .where(
                *_selectable(),
                _pending_or_stale(stale_before),
                TrackerORM.user_id.in_(members),
            )
            .order_by(TrackerORM.last_scraped_at.asc().nulls_first())
        )
        result = await self.db.execute(stmt)
        tracker_ids = list(result.scalars().all())

        logger.debug(
            "guild_pending_and_stale_trackers_retrieved",
            guild_id=guild_id,
            count=len(tracker_ids),
        )
        return tracker_ids

    async def mark_in_progress(self, tracker_id: str) -> None:
        await self._update_status(
            tracker_id,
            scraping_status=TrackerScrapingStatus.IN_PROGRESS,
        )

    async def mark_succeeded(self, tracker_id: str, scraped_at: datetime) -> None:
        await self._update_status(
            tracker_id,
            scraping_status=TrackerScrapingStatus.SUCCEEDED,
            scraping_error=None,
            last_scraped_at=scraped_at,
        )

    async def mark_failed(self, tracker_id: str, error: str) -> None:
        await self._update_status(
            tracker_id,
            scraping_status=TrackerScrapingStatus.FAILED,
            scraping_error=error,
            scraping_attempts=TrackerORM.scraping_attempts + 1,
        )

    async def _update_status(self, tracker_id: str, **values: Any) -> None:
        stmt = update(TrackerORM).where(TrackerORM.id == tracker_id).values(**values)
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(
                "Failed to update tracker scraping status",
                {"tracker_id": tracker_id, "error": str(e)},
            ) from e

        if result.rowcount == 0:
            raise TrackerNotFoundError(tracker_id)

        logger.debug(
            "tracker_status_updated",
            tracker_id=tracker_id,
            status=values["scraping_status"].value,
        )


def _season_row(tracker_id: str, record: SeasonRecord) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "id": generate_id(),
        "tracker_id": tracker_id,
        "season_number": record.season_number,
        "season_name": record.season_name,
        "scraped_at": record.scraped_at or datetime.now(timezone.utc),
    }
    for slot in PlaylistSlot:
        playlist = record.get_playlist(slot)
        row[slot.value] = (
            playlist.model_dump(by_alias=True) if playlist is not None else None
        )
    return row


class SQLAlchemySeasonStore:
    """Season store upserting on (tracker_id, season_number).

    On conflict only non-null values of the new record overwrite the stored row,
    so a later scrape missing a mode never erases earlier stats for it.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert(self, tracker_id: str, record: SeasonRecord) -> None:
        await self._execute_upsert(tracker_id, [record])

    async def bulk_upsert(
        self, tracker_id: str, records: Sequence[SeasonRecord]
    ) -> None:
        if not records:
            return
        await self._execute_upsert(tracker_id, records)

    async def _execute_upsert(
        self, tracker_id: str, records: Sequence[SeasonRecord]
    ) -> None:
        # One row per season; the last record for a season wins
        rows = {
            record.season_number: _season_row(tracker_id, record) for record in records
        }

        stmt = insert(TrackerSeasonORM).values(list(rows.values()))
        merged = {
            column: func.coalesce(
                getattr(stmt.excluded, column), getattr(TrackerSeasonORM, column)
            )
            for column in ["season_name"] + [slot.value for slot in PlaylistSlot]
        }
        stmt = stmt.on_conflict_do_update(
            constraint="uq_tracker_seasons_tracker_season",
            set_={
                **merged,
                "scraped_at": stmt.excluded.scraped_at,
                "updated_at": func.now(),
            },
        )

        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(
                "Failed to upsert tracker seasons",
                {"tracker_id": tracker_id, "seasons": sorted(rows)},
            ) from e

        logger.debug(
            "tracker_seasons_upserted",
            tracker_id=tracker_id,
            seasons=sorted(rows, reverse=True),
        )
