"""Anti-bot proxy (FlareSolverr) client package."""

from .client import FlareSolverrClient
from .envelope import (
    ChallengeFailed,
    Malformed,
    ProxyResult,
    ProxySuccess,
    parse_envelope,
)
from .errors import (
    ConfigurationError,
    InvalidTrackerUrlError,
    MalformedResponseError,
    ScraperProxyError,
    ServiceUnavailableError,
    TransportError,
    UpstreamChallengeError,
)
from .models import (
    AvailableSegment,
    PlatformInfo,
    ProfileMetadata,
    ScrapedProfile,
    TrackerSegment,
    UserInfo,
)
from .rate_limiter import RateLimiter, get_shared_rate_limiter, reset_shared_rate_limiter
from .urls import to_api_url, with_season

__all__ = [
    "FlareSolverrClient",
    # Envelope
    "ChallengeFailed",
    "Malformed",
    "ProxyResult",
    "ProxySuccess",
    "parse_envelope",
    # Errors
    "ConfigurationError",
    "InvalidTrackerUrlError",
    "MalformedResponseError",
    "ScraperProxyError",
    "ServiceUnavailableError",
    "TransportError",
    "UpstreamChallengeError",
    # Models
    "AvailableSegment",
    "PlatformInfo",
    "ProfileMetadata",
    "ScrapedProfile",
    "TrackerSegment",
    "UserInfo",
    # Rate limiting
    "RateLimiter",
    "get_shared_rate_limiter",
    "reset_shared_rate_limiter",
    # URLs
    "to_api_url",
    "with_season",
]
