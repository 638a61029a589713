"""Playlist parser: raw tracker segments to normalized season records.

Pure and synchronous; the same input always yields the same record.
"""

import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

import structlog

from trackerhub.core.enums import PlaylistSlot
from trackerhub.core.flaresolverr.models import AvailableSegment, TrackerSegment

from .schemas import Count, PlaylistData, SeasonRecord

logger = structlog.get_logger(__name__)

# The tracker API has exposed two numbering schemes for ranked playlists.
# Primary ids are tried first; the alternative id only applies when no
# segment carries the primary id for that mode.
PRIMARY_PLAYLIST_IDS: Mapping[int, PlaylistSlot] = {
    1: PlaylistSlot.PLAYLIST_1V1,  # Ranked Duel
    2: PlaylistSlot.PLAYLIST_2V2,  # Ranked Doubles
    3: PlaylistSlot.PLAYLIST_3V3,  # Ranked Standard
    8: PlaylistSlot.PLAYLIST_4V4,  # Ranked Quads
}

ALTERNATIVE_PLAYLIST_IDS: Mapping[int, PlaylistSlot] = {
    10: PlaylistSlot.PLAYLIST_1V1,
    11: PlaylistSlot.PLAYLIST_2V2,
    13: PlaylistSlot.PLAYLIST_3V3,
    61: PlaylistSlot.PLAYLIST_4V4,
}

PLAYLIST_SEGMENT_TYPE = "playlist"
OVERVIEW_SEGMENT_TYPE = "overview"

# Stat fields read from a playlist segment
STAT_FIELDS = ("tier", "division", "rating", "matchesPlayed", "winStreak")


def _playlist_ids_for(slot: PlaylistSlot, table: Mapping[int, PlaylistSlot]) -> List[int]:
    return [playlist_id for playlist_id, mapped in table.items() if mapped is slot]


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def validate_stats(stats: Any) -> List[str]:
    """Return structural problems of a segment's stat block (empty if valid).

    Each known stat must be absent, None, or an object whose ``value`` is a
    number or None and whose ``metadata.name`` is a string or None.
    """
    if not isinstance(stats, dict):
        return [f"stats is {type(stats).__name__}, expected object"]

    problems = []
    for field in STAT_FIELDS:
        stat = stats.get(field)
        if stat is None:
            continue
        if not isinstance(stat, dict):
            problems.append(f"{field} is not an object")
            continue

        value = stat.get("value")
        if value is not None and not _is_number(value):
            problems.append(f"{field}.value is not numeric")

        metadata = stat.get("metadata")
        if metadata is None:
            continue
        if not isinstance(metadata, dict):
            problems.append(f"{field}.metadata is not an object")
        elif metadata.get("name") is not None and not isinstance(
            metadata.get("name"), str
        ):
            problems.append(f"{field}.metadata.name is not a string")

    return problems


def _stat_value(stats: Dict[str, Any], field: str) -> Optional[float]:
    stat = stats.get(field) or {}
    value = stat.get("value")
    return value if _is_number(value) else None


def _stat_count(stats: Dict[str, Any], field: str) -> Optional[Count]:
    value = _stat_value(stats, field)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _stat_name(stats: Dict[str, Any], field: str) -> Optional[str]:
    stat = stats.get(field) or {}
    metadata = stat.get("metadata") or {}
    return metadata.get("name") or None


def extract_playlist_data(segment: TrackerSegment) -> Optional[PlaylistData]:
    """Build ``PlaylistData`` from one segment, or None if its stats are malformed."""
    problems = validate_stats(segment.stats)
    if problems:
        logger.warning(
            "Invalid stats structure in segment, tracker API shape may have changed",
            segment_type=segment.type or "unknown",
            playlist_id=segment.playlist_id,
            problems="; ".join(problems),
        )
        return None

    stats = segment.stats
    return PlaylistData(
        rank=_stat_name(stats, "tier"),
        rank_value=_stat_count(stats, "tier"),
        division=_stat_name(stats, "division"),
        division_value=_stat_count(stats, "division"),
        rating=_stat_value(stats, "rating"),
        matches_played=_stat_count(stats, "matchesPlayed"),
        win_streak=_stat_count(stats, "winStreak"),
    )


def resolve_season_name(
    segments: Sequence[TrackerSegment],
    season_number: int,
    available_segments: Sequence[AvailableSegment] = (),
) -> str:
    """Season name: available-season entry, then overview segment, then ``Season {n}``."""
    for available in available_segments:
        if available.season == season_number and available.name:
            return available.name

    for segment in segments:
        if segment.type == OVERVIEW_SEGMENT_TYPE and segment.name:
            return segment.name

    return f"Season {season_number}"


def _find_segment(
    by_playlist_id: Dict[int, TrackerSegment], slot: PlaylistSlot
) -> Optional[TrackerSegment]:
    for table in (PRIMARY_PLAYLIST_IDS, ALTERNATIVE_PLAYLIST_IDS):
        for playlist_id in _playlist_ids_for(slot, table):
            segment = by_playlist_id.get(playlist_id)
            if segment is not None:
                return segment
    return None


def parse_segments(
    segments: Sequence[TrackerSegment],
    season_number: int,
    available_segments: Sequence[AvailableSegment] = (),
) -> SeasonRecord:
    """Map a raw segment list to the season record for ``season_number``.

    :param segments: All segments of a profile response
    :param season_number: Season to extract
    :param available_segments: Season descriptors, used for the season name
    :returns: Unpersisted ``SeasonRecord``; modes without a segment are None
    """
    by_playlist_id: Dict[int, TrackerSegment] = {}
    for segment in segments:
        if segment.type != PLAYLIST_SEGMENT_TYPE or segment.season != season_number:
            continue
        playlist_id = segment.playlist_id
        if playlist_id is None:
            continue
        # First segment per id wins
        by_playlist_id.setdefault(playlist_id, segment)

    playlists: Dict[str, Optional[PlaylistData]] = {}
    for slot in PlaylistSlot:
        segment = _find_segment(by_playlist_id, slot)
        playlists[slot.value] = (
            extract_playlist_data(segment) if segment is not None else None
        )

    return SeasonRecord(
        season_number=season_number,
        season_name=resolve_season_name(segments, season_number, available_segments),
        **playlists,
    )
