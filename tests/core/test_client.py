"""
Tests for the FlareSolverr proxy client.
"""

import json

import httpx
import pytest

from factories import playlist_segment, profile_payload, proxy_envelope
from trackerhub.core import config
from trackerhub.core.flaresolverr import (
    ConfigurationError,
    FlareSolverrClient,
    InvalidTrackerUrlError,
    MalformedResponseError,
    RateLimiter,
    ServiceUnavailableError,
    UpstreamChallengeError,
)

PROFILE_URL = (
    "https://rocketleague.tracker.network/rocket-league/profile/steam/76561198051701160/overview"
)
PROXY_URL = "http://flaresolverr.test/v1"


class ProxyStub:
    """Replays queued responses and records every request body."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def ok_response():
    payload = profile_payload(segments=[playlist_segment(1, 34)], available=[])
    return httpx.Response(200, json=proxy_envelope(payload))


def make_client(stub, **kwargs):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
    return FlareSolverrClient(
        proxy_url=PROXY_URL,
        timeout_ms=60000,
        retry_attempts=kwargs.pop("retry_attempts", 3),
        retry_delay_ms=0,
        rate_limiter=RateLimiter(1000, spread_requests=False),
        http_client=http_client,
        **kwargs,
    )


class TestFlareSolverrClient:
    """Test cases for FlareSolverrClient."""

    @pytest.mark.asyncio
    async def test_fetch_profile_success(self):
        """A solved challenge returns the decoded profile on the first attempt."""
        stub = ProxyStub(ok_response())
        client = make_client(stub)

        profile = await client.fetch_profile(PROFILE_URL)

        assert profile.current_season == 34
        assert len(stub.requests) == 1

    @pytest.mark.asyncio
    async def test_request_body(self):
        """The proxy receives the API URL and the timeout as maxTimeout."""
        stub = ProxyStub(ok_response())
        client = make_client(stub)

        await client.fetch_profile(PROFILE_URL, season_number=33)

        assert stub.requests[0] == {
            "cmd": "request.get",
            "url": "https://api.tracker.gg/api/v2/rocket-league/standard/profile/steam/76561198051701160?season=33",
            "maxTimeout": 60000,
        }

    @pytest.mark.asyncio
    async def test_malformed_payload_not_retried(self):
        """Malformed payloads fail fast after a single call."""
        stub = ProxyStub(
            httpx.Response(
                200,
                json={"status": "ok", "solution": {"response": "<html>blocked</html>"}},
            ),
            ok_response(),
        )
        client = make_client(stub)

        with pytest.raises(MalformedResponseError):
            await client.fetch_profile(PROFILE_URL)

        assert len(stub.requests) == 1

    @pytest.mark.asyncio
    async def test_transport_errors_exhaust_attempts(self):
        """Transport failures are retried up to the attempt limit."""
        stub = ProxyStub(*[httpx.ConnectError("connection refused") for _ in range(3)])
        client = make_client(stub)

        with pytest.raises(ServiceUnavailableError) as exc_info:
            await client.fetch_profile(PROFILE_URL)

        assert len(stub.requests) == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_request_errors_are_retried(self):
        """Any httpx request error, not only transport ones, is transient."""
        stub = ProxyStub(
            httpx.TooManyRedirects("Exceeded maximum allowed redirects."),
            httpx.DecodingError("Malformed gzip body"),
            ok_response(),
        )
        client = make_client(stub)

        profile = await client.fetch_profile(PROFILE_URL)

        assert profile.current_season == 34
        assert len(stub.requests) == 3

    @pytest.mark.asyncio
    async def test_challenge_failure_then_success(self):
        """An unsolved challenge is retried and a later success is returned."""
        stub = ProxyStub(
            httpx.Response(200, json={"status": "error", "message": "Challenge timeout"}),
            ok_response(),
        )
        client = make_client(stub)

        profile = await client.fetch_profile(PROFILE_URL)

        assert profile.current_season == 34
        assert len(stub.requests) == 2

    @pytest.mark.asyncio
    async def test_challenge_failures_chain_cause(self):
        stub = ProxyStub(
            *[httpx.Response(200, json={"status": "error", "message": "Challenge timeout"}) for _ in range(2)]
        )
        client = make_client(stub, retry_attempts=2)

        with pytest.raises(ServiceUnavailableError) as exc_info:
            await client.fetch_profile(PROFILE_URL)

        assert isinstance(exc_info.value.__cause__, UpstreamChallengeError)

    @pytest.mark.asyncio
    async def test_non_json_server_error_is_transient(self):
        stub = ProxyStub(httpx.Response(502, text="Bad Gateway"), ok_response())
        client = make_client(stub)

        profile = await client.fetch_profile(PROFILE_URL)

        assert profile.current_season == 34
        assert len(stub.requests) == 2

    @pytest.mark.asyncio
    async def test_non_json_client_error_is_malformed(self):
        stub = ProxyStub(httpx.Response(400, text="Bad Request"))
        client = make_client(stub)

        with pytest.raises(MalformedResponseError):
            await client.fetch_profile(PROFILE_URL)

    @pytest.mark.asyncio
    async def test_invalid_url_never_reaches_proxy(self):
        stub = ProxyStub()
        client = make_client(stub)

        with pytest.raises(InvalidTrackerUrlError):
            await client.fetch_profile("https://example.com/profile/someone")

        assert stub.requests == []

    @pytest.mark.asyncio
    async def test_request_callback(self):
        calls = []
        stub = ProxyStub(ok_response())
        client = make_client(stub, request_callback=lambda name, count: calls.append((name, count)))

        await client.fetch_profile(PROFILE_URL)

        assert calls == [("requests_made", 1)]

    @pytest.mark.asyncio
    async def test_every_attempt_acquires_rate_limit(self):
        stub = ProxyStub(httpx.ConnectError("refused"), ok_response())
        client = make_client(stub)

        await client.fetch_profile(PROFILE_URL)

        assert client.rate_limiter.current_usage() == 2

    @pytest.mark.asyncio
    async def test_injected_session_not_closed(self):
        client = make_client(ProxyStub())

        await client.close()

        assert not client.session.is_closed


class TestClientConfiguration:
    """Test cases for client configuration errors."""

    def test_missing_proxy_url(self, monkeypatch):
        monkeypatch.delenv("FLARESOLVERR_URL", raising=False)
        monkeypatch.setattr(config, "settings", config.Settings(_env_file=None))

        with pytest.raises(ConfigurationError):
            FlareSolverrClient()

    def test_zero_retry_attempts_rejected(self):
        with pytest.raises(ConfigurationError):
            FlareSolverrClient(proxy_url=PROXY_URL, retry_attempts=0)

    def test_defaults_from_settings(self):
        client = FlareSolverrClient()

        assert client.proxy_url == PROXY_URL
        assert client.timeout_ms == 60000
        assert client.retry_attempts == 3
        assert client.rate_limiter.requests_per_minute == 60
