"""Shared fixtures for tracker ingestion tests."""

import pytest

from factories import available_segment, playlist_segment, profile_payload
from trackerhub.core import config
from trackerhub.core.flaresolverr import rate_limiter


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Fresh settings and a fresh shared rate limiter for every test."""
    monkeypatch.setenv("FLARESOLVERR_URL", "http://flaresolverr.test/v1")
    monkeypatch.setattr(config, "settings", None)
    rate_limiter.reset_shared_rate_limiter()
    yield
    rate_limiter.reset_shared_rate_limiter()


@pytest.fixture
def current_season_payload():
    """Profile whose current season is 34 with 1v1 and 2v2 segments."""
    return profile_payload(
        segments=[
            {"type": "overview", "attributes": {}, "metadata": {"name": "Lifetime"}, "stats": {}},
            playlist_segment(1, 34),
            playlist_segment(11, 34, tier=15, tier_name="Champion I", rating=1180),
        ],
        available=[available_segment(34), available_segment(33), available_segment(32)],
    )
