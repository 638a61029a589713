"""
Tests for the playlist parser.
"""

import pytest

from factories import available_segment, playlist_segment, stat
from trackerhub.core.enums import PlaylistSlot
from trackerhub.core.flaresolverr.models import AvailableSegment, TrackerSegment
from trackerhub.features.trackers.parser import (
    extract_playlist_data,
    parse_segments,
    resolve_season_name,
    validate_stats,
)
from trackerhub.features.trackers.schemas import PlaylistData


def segments(*raw):
    return [TrackerSegment.model_validate(item) for item in raw]


def available(*raw):
    return [AvailableSegment.model_validate(item) for item in raw]


class TestParseSegments:
    """Test cases for parse_segments."""

    def test_ranked_duel_segment(self):
        """A primary 1v1 segment fills the 1v1 slot and nothing else."""
        raw = playlist_segment(
            1, 34, tier=22, tier_name="Supersonic Legend",
            division=None, division_name=None,
            rating=1721, matches_played=62, win_streak=11,
        )

        record = parse_segments(segments(raw), 34)

        assert record.season_number == 34
        assert record.playlist_1v1 == PlaylistData(
            rank="Supersonic Legend",
            rank_value=22,
            rating=1721,
            matches_played=62,
            win_streak=11,
        )
        assert record.playlist_2v2 is None
        assert record.playlist_3v3 is None
        assert record.playlist_4v4 is None

    def test_primary_id_wins_over_alternative(self):
        """When both numbering schemes are present the primary id is used."""
        raw = [
            playlist_segment(13, 34, tier=10, tier_name="Diamond I", rating=900),
            playlist_segment(3, 34, tier=19, tier_name="Grand Champion I", rating=1480),
        ]

        record = parse_segments(segments(*raw), 34)

        assert record.playlist_3v3.rank == "Grand Champion I"
        assert record.playlist_3v3.rating == 1480

    def test_alternative_id_used_when_primary_missing(self):
        """Alternative ids fill slots that have no primary segment."""
        raw = [
            playlist_segment(10, 34, tier=12, tier_name="Champion I"),
            playlist_segment(11, 34, tier=15, tier_name="Champion III"),
            playlist_segment(61, 34, tier=8, tier_name="Platinum II"),
        ]

        record = parse_segments(segments(*raw), 34)

        assert record.playlist_1v1.rank == "Champion I"
        assert record.playlist_2v2.rank == "Champion III"
        assert record.playlist_3v3 is None
        assert record.playlist_4v4.rank == "Platinum II"

    def test_segments_of_other_seasons_ignored(self):
        """Only segments tagged with the requested season are considered."""
        raw = [
            playlist_segment(2, 33, tier_name="Grand Champion III"),
            playlist_segment(2, 34, tier_name="Champion II"),
        ]

        record = parse_segments(segments(*raw), 34)

        assert record.playlist_2v2.rank == "Champion II"

    def test_non_playlist_segments_ignored(self):
        """Overview and other segment types never fill a playlist slot."""
        overview = playlist_segment(1, 34)
        overview["type"] = "overview"

        record = parse_segments(segments(overview), 34)

        assert not record.has_any_playlist()

    def test_unknown_playlist_ids_ignored(self):
        """Casual and extra-mode ids do not map to a slot."""
        record = parse_segments(segments(playlist_segment(27, 34)), 34)

        assert not record.has_any_playlist()

    def test_all_null_stats_kept(self):
        """A segment whose stats are all null still yields a playlist entry."""
        raw = playlist_segment(
            8, 34, tier=None, tier_name=None, division=None, division_name=None,
            rating=None, matches_played=None, win_streak=None,
        )

        record = parse_segments(segments(raw), 34)

        assert record.playlist_4v4 == PlaylistData()

    def test_malformed_stats_leave_slot_empty(self):
        """A segment with a malformed stat block yields None for its slot."""
        raw = playlist_segment(1, 34, rating="1721")

        record = parse_segments(segments(raw, playlist_segment(2, 34)), 34)

        assert record.playlist_1v1 is None
        assert record.playlist_2v2 is not None

    def test_malformed_primary_does_not_fall_through(self):
        """A malformed primary segment is not replaced by the alternative one."""
        broken = playlist_segment(1, 34)
        broken["stats"] = ["not", "an", "object"]

        record = parse_segments(segments(broken, playlist_segment(10, 34)), 34)

        assert record.playlist_1v1 is None

    def test_empty_rank_name_is_none(self):
        raw = playlist_segment(1, 34, tier=0, tier_name="")

        record = parse_segments(segments(raw), 34)

        assert record.playlist_1v1.rank is None
        assert record.playlist_1v1.rank_value == 0

    def test_fractional_counts_kept(self):
        raw = playlist_segment(1, 34, tier=22.5, matches_played=40.0)

        record = parse_segments(segments(raw), 34)

        assert record.playlist_1v1.rank_value == 22.5
        assert record.playlist_1v1.matches_played == 40
        assert isinstance(record.playlist_1v1.matches_played, int)

    def test_deterministic(self):
        """Parsing the same input twice yields equal records."""
        raw = segments(playlist_segment(1, 34), playlist_segment(13, 34))
        seasons = available(available_segment(34))

        assert parse_segments(raw, 34, seasons) == parse_segments(raw, 34, seasons)

    def test_scraped_at_not_set(self):
        record = parse_segments(segments(playlist_segment(1, 34)), 34)

        assert record.scraped_at is None


class TestResolveSeasonName:
    """Test cases for the season name fallback chain."""

    def test_available_segment_name_first(self):
        name = resolve_season_name(
            segments({"type": "overview", "metadata": {"name": "Lifetime"}}),
            34,
            available(available_segment(33), available_segment(34, name="Season 34 (2025)")),
        )

        assert name == "Season 34 (2025)"

    def test_overview_name_second(self):
        name = resolve_season_name(
            segments({"type": "overview", "metadata": {"name": "Lifetime"}}),
            34,
            available(available_segment(33)),
        )

        assert name == "Lifetime"

    def test_generated_name_last(self):
        assert resolve_season_name([], 12) == "Season 12"


class TestValidateStats:
    """Test cases for stat block validation."""

    def test_valid_stats(self):
        assert validate_stats(playlist_segment(1, 34)["stats"]) == []

    def test_missing_fields_are_valid(self):
        assert validate_stats({"rating": stat(1200)}) == []

    def test_stats_not_an_object(self):
        assert validate_stats(None) == ["stats is NoneType, expected object"]

    @pytest.mark.parametrize(
        "field, value, problem",
        [
            ("rating", {"value": "high"}, "rating.value is not numeric"),
            ("rating", {"value": True}, "rating.value is not numeric"),
            ("rating", {"value": float("nan")}, "rating.value is not numeric"),
            ("tier", "Champion", "tier is not an object"),
            ("tier", {"value": 1, "metadata": "x"}, "tier.metadata is not an object"),
            ("tier", {"value": 1, "metadata": {"name": 7}}, "tier.metadata.name is not a string"),
        ],
    )
    def test_invalid_fields(self, field, value, problem):
        assert validate_stats({field: value}) == [problem]

    def test_extract_playlist_data_rejects_invalid(self):
        segment = TrackerSegment.model_validate(
            {"type": "playlist", "attributes": {"playlistId": 1, "season": 34},
             "stats": {"winStreak": {"value": [11]}}}
        )

        assert extract_playlist_data(segment) is None

    def test_slot_lookup(self):
        record = parse_segments(segments(playlist_segment(3, 34)), 34)

        assert record.get_playlist(PlaylistSlot.PLAYLIST_3V3) is record.playlist_3v3
