"""
Tests for tracker ORM helpers.
"""

from datetime import datetime, timedelta, timezone

from trackerhub.core.enums import TrackerPlatform
from trackerhub.features.trackers.orm_models import TrackerORM, TrackerSeasonORM

NOW = datetime(2025, 11, 20, 12, 0, tzinfo=timezone.utc)


def make_tracker(**kwargs):
    values = {
        "id": "tracker-1",
        "url": "https://rocketleague.tracker.network/rocket-league/profile/steam/1/overview",
        "platform": TrackerPlatform.STEAM,
        "user_id": "user-1",
        "is_active": True,
        "is_deleted": False,
    }
    values.update(kwargs)
    return TrackerORM(**values)


class TestTrackerORM:
    """Test cases for TrackerORM."""

    def test_never_scraped_is_stale(self):
        assert make_tracker(last_scraped_at=None).is_stale(timedelta(hours=24), NOW)

    def test_recent_scrape_not_stale(self):
        tracker = make_tracker(last_scraped_at=NOW - timedelta(hours=3))

        assert not tracker.is_stale(timedelta(hours=24), NOW)

    def test_old_scrape_is_stale(self):
        tracker = make_tracker(last_scraped_at=NOW - timedelta(hours=25))

        assert tracker.is_stale(timedelta(hours=24), NOW)

    def test_selectable(self):
        assert make_tracker().is_selectable()
        assert not make_tracker(is_active=False).is_selectable()
        assert not make_tracker(is_deleted=True).is_selectable()


def test_season_unique_per_tracker():
    constraints = {c.name for c in TrackerSeasonORM.__table__.constraints}

    assert "uq_tracker_seasons_tracker_season" in constraints
