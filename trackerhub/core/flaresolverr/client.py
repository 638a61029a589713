"""Anti-bot proxy (FlareSolverr) HTTP client with rate limiting and bounded retry."""

import asyncio
from typing import Any, Callable, Optional

import httpx
import structlog

from ..config import get_global_settings
from .envelope import Malformed, ProxyResult, ProxySuccess, parse_envelope
from .errors import (
    ConfigurationError,
    MalformedResponseError,
    ScraperProxyError,
    ServiceUnavailableError,
    TransportError,
    UpstreamChallengeError,
)
from .models import ScrapedProfile
from .rate_limiter import RateLimiter, get_shared_rate_limiter
from .urls import to_api_url, with_season

logger = structlog.get_logger(__name__)

# Headroom on top of the proxy's own solve timeout before the HTTP call gives up
PROXY_OVERHEAD_SECONDS = 10.0


class FlareSolverrClient:
    """Fetches tracker profiles through a challenge-solving proxy."""

    def __init__(
        self,
        proxy_url: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        retry_attempts: Optional[int] = None,
        retry_delay_ms: Optional[int] = None,
        rate_limiter: Optional[RateLimiter] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        request_callback: Optional[Callable[[str, int], None]] = None,
    ):
        """
        Initialize the proxy client.

        Args:
            proxy_url: FlareSolverr endpoint (uses config if None)
            timeout_ms: Per-request timeout in milliseconds
            retry_attempts: Total attempts for transient failures
            retry_delay_ms: Base delay between attempts; grows linearly per attempt
            rate_limiter: Limiter to acquire before every call (process-wide one if None)
            http_client: Pre-built httpx client, mainly for tests
            request_callback: Optional callback for tracking requests (metric_name, count)

        Raises:
            ConfigurationError: If no proxy endpoint is configured
        """
        settings = get_global_settings()
        self.proxy_url = proxy_url or settings.flaresolverr_url
        if not self.proxy_url:
            raise ConfigurationError(
                "FlareSolverr configuration is missing: set FLARESOLVERR_URL"
            )

        self.timeout_ms = timeout_ms or settings.flaresolverr_timeout_ms
        self.retry_attempts = (
            retry_attempts
            if retry_attempts is not None
            else settings.flaresolverr_retry_attempts
        )
        self.retry_delay_ms = (
            retry_delay_ms
            if retry_delay_ms is not None
            else settings.flaresolverr_retry_delay_ms
        )
        if self.retry_attempts < 1:
            raise ConfigurationError("FlareSolverr retry attempts must be at least 1")

        self.rate_limiter = rate_limiter or get_shared_rate_limiter(
            settings.flaresolverr_rate_limit_per_minute
        )
        self.request_callback = request_callback

        self.session: Optional[httpx.AsyncClient] = http_client
        self._owns_session = http_client is None
        self._session_lock = asyncio.Lock()

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start_session()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def start_session(self) -> None:
        """Start the httpx session."""
        if self.session is None or self.session.is_closed:
            async with self._session_lock:
                if self.session is None or self.session.is_closed:
                    timeout = httpx.Timeout(
                        self.timeout_ms / 1000 + PROXY_OVERHEAD_SECONDS, connect=10.0
                    )
                    self.session = httpx.AsyncClient(
                        headers={
                            "Content-Type": "application/json",
                            "Accept": "application/json",
                        },
                        timeout=timeout,
                    )
                    self._owns_session = True

                    logger.info(
                        "FlareSolverr client session started",
                        proxy_url=self.proxy_url,
                        timeout_ms=self.timeout_ms,
                        retry_attempts=self.retry_attempts,
                    )

    async def close(self) -> None:
        """Close the httpx session."""
        if self._owns_session and self.session and not self.session.is_closed:
            await self.session.aclose()
            logger.info("FlareSolverr client session closed")

    async def fetch_profile(
        self, url: str, season_number: Optional[int] = None
    ) -> ScrapedProfile:
        """
        Fetch and decode one tracker profile.

        Args:
            url: Public profile URL or tracker API URL
            season_number: Optional season to request instead of the current one

        Returns:
            Decoded profile payload

        Raises:
            InvalidTrackerUrlError: URL cannot be converted
            MalformedResponseError: Payload unusable (not retried)
            ServiceUnavailableError: Transient failures outlasted every attempt
        """
        api_url = to_api_url(url)
        if season_number is not None:
            api_url = with_season(api_url, season_number)

        logger.debug("Fetching tracker profile", api_url=api_url)
        return await self._make_request(api_url)

    async def _make_request(self, target_url: str) -> ScrapedProfile:
        """Run the retry loop around single proxy round trips."""
        await self.start_session()

        last_error: Optional[ScraperProxyError] = None

        for attempt in range(1, self.retry_attempts + 1):
            try:
                result = await self._execute_single_request(target_url)
            except TransportError as e:
                last_error = e
            else:
                if isinstance(result, ProxySuccess):
                    if self.request_callback:
                        self.request_callback("requests_made", 1)
                    return result.profile
                if isinstance(result, Malformed):
                    logger.error(
                        "Malformed proxy response",
                        target_url=target_url,
                        reason=result.reason,
                    )
                    raise MalformedResponseError(
                        f"Invalid API response: {result.reason}"
                    )
                last_error = UpstreamChallengeError(
                    f"Challenge not solved: {result.message}",
                    response_data={"status": result.status},
                )

            if attempt < self.retry_attempts:
                delay = self._retry_delay_seconds(attempt)
                logger.warning(
                    "Proxy request failed, retrying",
                    target_url=target_url,
                    attempt=attempt,
                    max_attempts=self.retry_attempts,
                    delay=delay,
                    error=last_error.message,
                    error_type=type(last_error).__name__,
                )
                await asyncio.sleep(delay)

        logger.error(
            "Proxy request failed after all attempts",
            target_url=target_url,
            attempts=self.retry_attempts,
            error=last_error.message if last_error else None,
        )
        raise ServiceUnavailableError(
            f"Failed to fetch profile through FlareSolverr: {last_error.message if last_error else 'unknown error'}",
            attempts=self.retry_attempts,
        ) from last_error

    async def _execute_single_request(self, target_url: str) -> ProxyResult:
        """Acquire a rate-limit slot and perform one proxy round trip."""
        if self.session is None:
            raise TransportError("Session not initialized")

        await self.rate_limiter.acquire()

        request_body = {
            "cmd": "request.get",
            "url": target_url,
            "maxTimeout": self.timeout_ms,
        }

        try:
            response = await self.session.post(self.proxy_url, json=request_body)
        except (httpx.RequestError, asyncio.TimeoutError) as e:
            raise TransportError(
                f"Request to FlareSolverr failed: {type(e).__name__}: {e}"
            ) from e

        envelope = self._decode_body(response)
        return parse_envelope(envelope)

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        """Decode the proxy body; non-JSON bodies are transient only on 5xx/429."""
        try:
            return response.json()
        except ValueError:
            if response.status_code >= 500 or response.status_code == 429:
                raise TransportError(
                    f"FlareSolverr unavailable (HTTP {response.status_code})"
                ) from None
            return None

    def _retry_delay_seconds(self, attempt: int) -> float:
        """Linear backoff: base delay times the attempt number."""
        return self.retry_delay_ms * attempt / 1000
