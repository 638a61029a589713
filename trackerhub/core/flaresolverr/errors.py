"""Custom error classes for the anti-bot proxy client."""

from typing import Optional, Dict, Any


class ScraperProxyError(Exception):
    """Base exception for proxy scraping errors with status code tracking."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize ScraperProxyError.

        Args:
            message: Error message
            status_code: HTTP-style status the error surfaces as (400, 500, 503)
            response_data: Raw proxy envelope, when one was received
        """
        super().__init__(message)
        self.status_code: Optional[int] = status_code
        self.response_data: Dict[str, Any] = response_data or {}
        self.message: str = message

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.status_code:
            return f"Scraper Proxy Error {self.status_code}: {self.message}"
        return f"Scraper Proxy Error: {self.message}"


class ConfigurationError(ScraperProxyError):
    """Proxy endpoint or settings missing - fatal, never retried."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=500)


class UpstreamChallengeError(ScraperProxyError):
    """Proxy could not solve the anti-bot challenge - retried."""

    retryable = True

    def __init__(
        self, message: str, response_data: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, status_code=503, response_data=response_data)


class TransportError(ScraperProxyError):
    """Network, timeout or connection failure talking to the proxy - retried."""

    retryable = True

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=503)


class MalformedResponseError(ScraperProxyError):
    """Proxy succeeded but the embedded payload is unusable - never retried."""

    def __init__(
        self, message: str, response_data: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, status_code=400, response_data=response_data)


class ServiceUnavailableError(ScraperProxyError):
    """Transient failures persisted after every attempt was spent."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message, status_code=503)
        self.attempts = attempts


class InvalidTrackerUrlError(ScraperProxyError):
    """Profile URL cannot be converted to a tracker API URL."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400)
