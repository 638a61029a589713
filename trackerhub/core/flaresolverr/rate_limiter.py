"""Process-wide rate limiting for requests sent through the anti-bot proxy."""

import asyncio
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Optional

import structlog

logger = structlog.get_logger(__name__)

WINDOW_SECONDS = 60.0


class RateLimitTracker:
    """Sliding-window counter of request timestamps."""

    def __init__(self, requests: int, window: float = WINDOW_SECONDS):
        """
        Initialize tracker.

        Args:
            requests: Maximum requests allowed inside one window
            window: Window length in seconds
        """
        self.requests = requests
        self.window = window
        self.timestamps: Deque[float] = deque()

    def _evict_expired(self, now: float) -> None:
        while self.timestamps and self.timestamps[0] <= now - self.window:
            self.timestamps.popleft()

    def can_make_request(self, now: float) -> bool:
        self._evict_expired(now)
        return len(self.timestamps) < self.requests

    def record_request(self, now: float) -> None:
        self.timestamps.append(now)

    def get_wait_time(self, now: float) -> float:
        """Seconds until the oldest request in the window expires (0 if a slot is free)."""
        if self.can_make_request(now):
            return 0.0
        return max(self.timestamps[0] + self.window - now, 0.0)

    def get_current_usage(self, now: float) -> int:
        self._evict_expired(now)
        return len(self.timestamps)


class RateLimiter:
    """Shared requests-per-minute limiter.

    Callers queue on a single ``asyncio.Lock`` (FIFO), so concurrent scrapes
    are admitted one at a time and never overshoot the window. Requests are
    also spaced by ``window / requests`` seconds to avoid bursts.
    """

    def __init__(
        self,
        requests_per_minute: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        spread_requests: bool = True,
    ):
        if requests_per_minute < 1:
            raise ValueError("requests_per_minute must be at least 1")

        self.requests_per_minute = requests_per_minute
        self.tracker = RateLimitTracker(requests_per_minute, WINDOW_SECONDS)
        self.request_spacing = (
            WINDOW_SECONDS / requests_per_minute if spread_requests else 0.0
        )
        self.last_request_time: Optional[float] = None

        self._clock = clock
        self._sleep = sleep
        self.lock = asyncio.Lock()

    def _spacing_wait(self, now: float) -> float:
        if self.last_request_time is None or self.request_spacing <= 0:
            return 0.0
        return max(self.last_request_time + self.request_spacing - now, 0.0)

    async def acquire(self) -> None:
        """Wait until a request slot is free and claim it."""
        async with self.lock:
            while True:
                now = self._clock()
                wait_time = max(
                    self.tracker.get_wait_time(now), self._spacing_wait(now)
                )
                if wait_time <= 0:
                    break

                logger.debug(
                    "Proxy rate limit reached, waiting",
                    wait_time=round(wait_time, 3),
                    in_window=self.tracker.get_current_usage(now),
                    limit=self.requests_per_minute,
                )
                await self._sleep(wait_time)

            self.tracker.record_request(now)
            self.last_request_time = now

    def current_usage(self) -> int:
        return self.tracker.get_current_usage(self._clock())


# Process-wide limiter shared by every proxy client
_shared_limiter: Optional[RateLimiter] = None


def get_shared_rate_limiter(requests_per_minute: int) -> RateLimiter:
    """Get or create the process-wide rate limiter."""
    global _shared_limiter
    if _shared_limiter is None:
        _shared_limiter = RateLimiter(requests_per_minute)
    elif _shared_limiter.requests_per_minute != requests_per_minute:
        logger.warning(
            "Shared rate limiter already configured, ignoring new limit",
            configured=_shared_limiter.requests_per_minute,
            requested=requests_per_minute,
        )
    return _shared_limiter


def reset_shared_rate_limiter() -> None:
    """Drop the process-wide limiter (used when settings are reloaded)."""
    global _shared_limiter
    _shared_limiter = None
