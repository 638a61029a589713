"""Processing guard: which trackers may join automated scraping runs.

A user is eligible when they belong to no community, or when any community
they belong to has tracker processing enabled. Lookup failures permit
processing and are logged.
"""

from typing import Dict, List, Optional, Sequence

import structlog

from trackerhub.protocols import (
    CommunitySettingsProvider,
    MembershipProvider,
    TrackerRepository,
)

logger = structlog.get_logger(__name__)


class TrackerProcessingGuard:
    """Eligibility checks for automated (non-manual) tracker processing."""

    def __init__(
        self,
        trackers: TrackerRepository,
        memberships: MembershipProvider,
        settings: CommunitySettingsProvider,
    ):
        self.trackers = trackers
        self.memberships = memberships
        self.settings = settings

    async def can_process_tracker(self, tracker_id: str) -> bool:
        """
        Check whether one tracker may be processed automatically.

        :param tracker_id: Tracker to check
        :returns: True when allowed, also when the tracker cannot be resolved
        """
        try:
            user_id = await self.trackers.find_user_id_by_id(tracker_id)
        except Exception as e:
            logger.error(
                "Error resolving tracker owner, allowing processing",
                tracker_id=tracker_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return True

        if user_id is None:
            logger.error(
                "Tracker not found, allowing processing", tracker_id=tracker_id
            )
            return True

        return await self.can_process_tracker_for_user(user_id)

    async def can_process_tracker_for_user(self, user_id: str) -> bool:
        """
        Check whether a user's trackers may be processed automatically.

        :param user_id: Owning user
        :returns: True if the user has no communities or any community opted in
        """
        try:
            return await self._is_user_allowed(user_id, settings_cache={})
        except Exception as e:
            logger.error(
                "Error checking user processing settings, allowing processing",
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return True

    async def filter_processable_trackers(
        self, tracker_ids: Sequence[str]
    ) -> List[str]:
        """
        Keep the trackers whose owners are eligible, in input order.

        Trackers are grouped by owner so each user, and each community, is
        resolved once. Trackers that no longer exist are dropped. A failed
        lookup for one user allows only that user's trackers; if resolving
        the owners fails, every input id is returned.

        :param tracker_ids: Candidate tracker ids
        :returns: Processable tracker ids
        """
        if not tracker_ids:
            return []

        try:
            owners = await self.trackers.find_user_ids_by_ids(tracker_ids)
        except Exception as e:
            logger.error(
                "Error filtering processable trackers, allowing all",
                tracker_count=len(tracker_ids),
                error=str(e),
                error_type=type(e).__name__,
            )
            return list(tracker_ids)

        settings_cache: Dict[str, bool] = {}
        user_allowed: Dict[str, bool] = {}
        for user_id in dict.fromkeys(owners.values()):
            try:
                user_allowed[user_id] = await self._is_user_allowed(
                    user_id, settings_cache
                )
            except Exception as e:
                logger.error(
                    "Error checking user processing settings, allowing processing",
                    user_id=user_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                user_allowed[user_id] = True

        processable = [
            tracker_id
            for tracker_id in tracker_ids
            if tracker_id in owners and user_allowed[owners[tracker_id]]
        ]

        skipped = len(tracker_ids) - len(processable)
        if skipped:
            logger.info(
                "Trackers skipped by guild processing settings",
                processable=len(processable),
                skipped=skipped,
                unresolved=len(tracker_ids) - len(owners),
            )

        return processable

    async def _is_user_allowed(
        self, user_id: str, settings_cache: Dict[str, bool]
    ) -> bool:
        memberships = await self.memberships.list_active_memberships(user_id)
        if not memberships:
            logger.debug(
                "User has no guild memberships, defaulting to enabled", user_id=user_id
            )
            return True

        for membership in memberships:
            enabled: Optional[bool] = settings_cache.get(membership.guild_id)
            if enabled is None:
                settings = await self.settings.get_settings(membership.guild_id)
                enabled = settings.processing_enabled
                settings_cache[membership.guild_id] = enabled
            if enabled:
                return True

        logger.debug(
            "All guilds of user disabled tracker processing",
            user_id=user_id,
            guild_count=len(memberships),
        )
        return False
