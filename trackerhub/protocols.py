"""Protocol definitions for the collaborators of the tracker ingestion pipeline."""

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Dict, List, Optional, Protocol, Sequence

if TYPE_CHECKING:
    from trackerhub.features.guilds.schemas import GuildSettings, Membership
    from trackerhub.features.trackers.orm_models import TrackerORM
    from trackerhub.features.trackers.schemas import SeasonRecord


class JobQueue(Protocol):
    """At-least-once dispatch of scrape jobs to a worker."""

    @abstractmethod
    async def enqueue(self, tracker_id: str, priority: int = 0) -> str:
        """Enqueue one tracker; returns the job id."""
        ...

    @abstractmethod
    async def enqueue_batch(self, tracker_ids: Sequence[str]) -> List[str]:
        """Enqueue several trackers; returns the job ids."""
        ...


class CommunitySettingsProvider(Protocol):
    """Per-community processing opt-in."""

    @abstractmethod
    async def get_settings(self, guild_id: str) -> "GuildSettings":
        """Settings of one community; unset opt-in defaults to enabled."""
        ...


class MembershipProvider(Protocol):
    """Community memberships of a user."""

    @abstractmethod
    async def list_active_memberships(self, user_id: str) -> List["Membership"]:
        """Memberships excluding deleted and banned ones."""
        ...


class SeasonStore(Protocol):
    """Idempotent persistence of season records keyed by (tracker, season)."""

    @abstractmethod
    async def upsert(self, tracker_id: str, record: "SeasonRecord") -> None:
        """Insert or merge one season."""
        ...

    @abstractmethod
    async def bulk_upsert(
        self, tracker_id: str, records: Sequence["SeasonRecord"]
    ) -> None:
        """Insert or merge every season of a scrape result."""
        ...


class TrackerRepository(Protocol):
    """Tracker lookups and scrape-state transitions."""

    @abstractmethod
    async def get_by_id(self, tracker_id: str) -> Optional["TrackerORM"]:
        ...

    @abstractmethod
    async def find_user_id_by_id(self, tracker_id: str) -> Optional[str]:
        ...

    @abstractmethod
    async def find_user_ids_by_ids(self, tracker_ids: Sequence[str]) -> Dict[str, str]:
        """Map tracker id to owning user id for the trackers that exist."""
        ...

    @abstractmethod
    async def find_pending_ids(self) -> List[str]:
        ...

    @abstractmethod
    async def find_pending_and_stale_ids(self, stale_before: datetime) -> List[str]:
        ...

    @abstractmethod
    async def find_pending_and_stale_ids_for_guild(
        self, guild_id: str, stale_before: datetime
    ) -> List[str]:
        ...

    @abstractmethod
    async def mark_in_progress(self, tracker_id: str) -> None:
        ...

    @abstractmethod
    async def mark_succeeded(self, tracker_id: str, scraped_at: datetime) -> None:
        ...

    @abstractmethod
    async def mark_failed(self, tracker_id: str, error: str) -> None:
        """Record the failure and increment the attempt counter."""
        ...
