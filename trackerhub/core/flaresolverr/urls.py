"""Conversion between public tracker profile URLs and tracker API URLs."""

import re
from urllib.parse import quote, urlencode, urlsplit, urlunsplit, parse_qsl

import structlog

from ..enums import TrackerPlatform
from .errors import InvalidTrackerUrlError

logger = structlog.get_logger(__name__)

TRACKER_API_BASE = "https://api.tracker.gg/api/v2/rocket-league/standard/profile"

_PROFILE_URL = re.compile(
    r"^https://rocketleague\.tracker\.network/rocket-league/profile/([^/]+)/([^/]+)/overview/?$",
    re.IGNORECASE,
)
_API_URL = re.compile(
    r"^https://api\.tracker\.gg/api/v2/rocket-league/standard/profile/[^/]+/[^/?]+",
    re.IGNORECASE,
)


def to_api_url(profile_url: str) -> str:
    """
    Convert a public profile URL to the tracker API URL.

    API URLs are returned unchanged.

    :param profile_url: e.g. https://rocketleague.tracker.network/rocket-league/profile/steam/76561198051701160/overview
    :returns: e.g. https://api.tracker.gg/api/v2/rocket-league/standard/profile/steam/76561198051701160
    :raises InvalidTrackerUrlError: If the URL is not a supported profile URL
    """
    url = profile_url.strip()
    if _API_URL.match(url):
        return url

    match = _PROFILE_URL.match(url)
    if not match:
        raise InvalidTrackerUrlError(
            "Invalid tracker URL format. Expected: "
            "https://rocketleague.tracker.network/rocket-league/profile/{platform}/{username}/overview"
        )

    platform = match.group(1).lower()
    try:
        api_platform = TrackerPlatform(platform)
    except ValueError:
        supported = ", ".join(p.value for p in TrackerPlatform)
        raise InvalidTrackerUrlError(
            f"Unsupported platform: {platform}. Supported platforms: {supported}"
        ) from None

    api_url = f"{TRACKER_API_BASE}/{api_platform.value}/{quote(match.group(2), safe='')}"
    logger.debug("Converted tracker URL", profile_url=url, api_url=api_url)
    return api_url


def with_season(api_url: str, season_number: int) -> str:
    """Append (or replace) the ``season`` query parameter."""
    parts = urlsplit(api_url)
    query = [(k, v) for k, v in parse_qsl(parts.query) if k != "season"]
    query.append(("season", str(season_number)))
    return urlunsplit(parts._replace(query=urlencode(query)))
