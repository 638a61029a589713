"""
Tests for application settings.
"""

import pytest
from pydantic import ValidationError

from trackerhub.core import config


def test_defaults(monkeypatch):
    monkeypatch.delenv("FLARESOLVERR_URL", raising=False)

    settings = config.Settings(_env_file=None)

    assert settings.flaresolverr_url is None
    assert settings.flaresolverr_timeout_ms == 60000
    assert settings.flaresolverr_retry_attempts == 3
    assert settings.flaresolverr_retry_delay_ms == 1000
    assert settings.tracker_refresh_interval_hours == 24
    assert settings.tracker_batch_size == 100


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("FLARESOLVERR_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("TRACKER_REFRESH_CRON", "30 4 * * *")

    settings = config.Settings(_env_file=None)

    assert settings.flaresolverr_url == "http://flaresolverr.test/v1"
    assert settings.flaresolverr_retry_attempts == 5
    assert settings.tracker_refresh_cron == "30 4 * * *"


def test_blank_proxy_url_is_unset(monkeypatch):
    monkeypatch.setenv("FLARESOLVERR_URL", "   ")

    assert config.Settings(_env_file=None).flaresolverr_url is None


@pytest.mark.parametrize(
    "variable",
    ["FLARESOLVERR_RETRY_ATTEMPTS", "TRACKER_BATCH_SIZE", "SCRAPING_QUEUE_CONCURRENCY"],
)
def test_counts_must_be_positive(monkeypatch, variable):
    monkeypatch.setenv(variable, "0")

    with pytest.raises(ValidationError):
        config.Settings(_env_file=None)


def test_database_url():
    settings = config.Settings(
        _env_file=None,
        postgres_user="u",
        postgres_password="p",
        postgres_host="db",
        postgres_port=5433,
        postgres_db="trackers",
    )

    assert settings.database_url == "postgresql+asyncpg://u:p@db:5433/trackers"


def test_global_settings_cached():
    assert config.get_global_settings() is config.get_global_settings()
