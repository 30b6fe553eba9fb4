"""Tests for the retrying HTTP client."""

import asyncio
import socket
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest
from markdowndown.errors import (
    AuthError,
    AuthErrorKind,
    NetworkError,
    NetworkErrorKind,
    ValidationError,
    ValidationErrorKind,
)
from markdowndown.http import RetryingHttpClient, RetryPolicy
from markdowndown.models.config import AuthConfig, HttpConfig


class MockResponse:
    """Mock aiohttp response usable as an async context manager."""

    def __init__(self, status=200, body=b"", content_type="text/html", read_error=None):
        self.status = status
        self.headers = {"Content-Type": content_type} if content_type else {}
        self.url = "https://example.com/final"
        self._body = body
        self._read_error = read_error

    async def read(self):
        if self._read_error is not None:
            raise self._read_error
        return self._body


class MockRequest:
    """Mock for the object returned by ClientSession.get()."""

    def __init__(self, outcome):
        self._outcome = outcome

    async def __aenter__(self):
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, *args):
        return None


class MockSession:
    """Mock session returning queued outcomes; the last one repeats."""

    def __init__(self, *outcomes):
        self._outcomes = list(outcomes)
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        index = min(len(self.calls) - 1, len(self._outcomes) - 1)
        return MockRequest(self._outcomes[index])


def make_client(*outcomes, max_retries=3):
    client = RetryingHttpClient(max_retries=max_retries, retry_base_delay=0)
    session = MockSession(*outcomes)
    client._session = session
    return client, session


class TestConfiguration:
    """Tests for client construction."""

    def test_default_user_agent(self):
        """Test the default User-Agent names the package."""
        assert RetryingHttpClient().user_agent.startswith("markdowndown/")

    def test_from_config(self):
        """Test building from HttpConfig."""
        config = HttpConfig(timeout=5, max_retries=1, retry_delay=0.5, user_agent="test-agent")
        client = RetryingHttpClient.from_config(config)

        assert client.retry_policy == RetryPolicy(max_retries=1, base_delay=0.5)
        assert client.user_agent == "test-agent"

    @pytest.mark.asyncio
    async def test_requires_context_manager(self):
        """Test that requests outside the context manager fail clearly."""
        client = RetryingHttpClient()
        with pytest.raises(RuntimeError):
            await client.get_text("https://example.com")

    @pytest.mark.asyncio
    async def test_context_manager_closes_session(self):
        """Test session lifecycle."""
        async with RetryingHttpClient() as client:
            assert client._session is not None
        assert client._session is None


class TestSuccess:
    """Tests for successful requests."""

    @pytest.mark.asyncio
    async def test_get_text(self):
        """Test fetching and decoding a page."""
        client, session = make_client(MockResponse(200, b"<p>Hello</p>", "text/html; charset=utf-8"))

        assert await client.get_text("https://example.com") == "<p>Hello</p>"
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_get_bytes(self):
        """Test fetching raw bytes."""
        client, _ = make_client(MockResponse(200, b"\x00\x01", "application/octet-stream"))
        assert await client.get_bytes("https://example.com/file") == b"\x00\x01"

    @pytest.mark.asyncio
    async def test_headers_are_sent(self):
        """Test that custom headers reach the request."""
        client, session = make_client(MockResponse(200, b"{}", "application/json"))

        await client.get_text_with_headers("https://example.com", {"Authorization": "token abc"})

        _, kwargs = session.calls[0]
        assert kwargs["headers"] == {"Authorization": "token abc"}
        assert kwargs["allow_redirects"] is True

    @pytest.mark.asyncio
    async def test_get_returns_response(self):
        """Test the full response object."""
        client, _ = make_client(MockResponse(200, b"body", "text/plain"))

        response = await client.get("https://example.com")

        assert response.status_code == 200
        assert response.content == b"body"
        assert response.content_type == "text/plain"
        assert response.url == "https://example.com/final"

    @pytest.mark.asyncio
    async def test_declared_charset(self):
        """Test decoding with the Content-Type charset."""
        body = "café".encode("latin-1")
        client, _ = make_client(MockResponse(200, body, "text/html; charset=latin-1"))
        assert await client.get_text("https://example.com") == "café"

    @pytest.mark.asyncio
    async def test_empty_body(self):
        """Test that an empty body decodes to an empty string."""
        client, _ = make_client(MockResponse(200, b"", "text/html"))
        assert await client.get_text("https://example.com") == ""


class TestStatusErrors:
    """Tests for non-success statuses."""

    @pytest.mark.asyncio
    async def test_401_is_missing_token(self):
        """Test that 401 maps to MISSING_TOKEN without retrying."""
        client, session = make_client(MockResponse(401))

        with pytest.raises(AuthError) as exc_info:
            await client.get_text("https://example.com")

        assert exc_info.value.kind == AuthErrorKind.MISSING_TOKEN
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_403_is_permission_denied(self):
        """Test that 403 maps to PERMISSION_DENIED after one request."""
        client, session = make_client(MockResponse(403))

        with pytest.raises(AuthError) as exc_info:
            await client.get_text("https://example.com")

        assert exc_info.value.kind == AuthErrorKind.PERMISSION_DENIED
        assert "403" in exc_info.value.context.additional_info
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_404_is_not_retried(self):
        """Test that 404 fails after one request."""
        client, session = make_client(MockResponse(404))

        with pytest.raises(NetworkError) as exc_info:
            await client.get_text("https://example.com")

        assert exc_info.value.kind == NetworkErrorKind.SERVER_ERROR
        assert exc_info.value.status_code == 404
        assert not exc_info.value.is_retryable()
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_other_4xx_is_terminal(self):
        """Test that 400 is not retried."""
        client, session = make_client(MockResponse(400))

        with pytest.raises(NetworkError) as exc_info:
            await client.get_text("https://example.com")

        assert exc_info.value.status_code == 400
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_429_exhausts_retries(self):
        """Test that persistent 429 becomes RATE_LIMITED after every attempt."""
        client, session = make_client(MockResponse(429))

        with pytest.raises(NetworkError) as exc_info:
            await client.get_text("https://example.com")

        assert exc_info.value.kind == NetworkErrorKind.RATE_LIMITED
        assert "after 4 attempts" in exc_info.value.context.additional_info
        assert len(session.calls) == 4

    @pytest.mark.asyncio
    async def test_500_makes_four_requests(self):
        """Test that a persistent 500 is requested max_retries + 1 times."""
        client, session = make_client(MockResponse(500))

        with pytest.raises(NetworkError) as exc_info:
            await client.get_text("https://example.com")

        assert exc_info.value.status_code == 500
        assert len(session.calls) == 4

    @pytest.mark.asyncio
    async def test_500_twice_then_200(self):
        """Test that the body of the eventual 200 is returned unchanged."""
        client, session = make_client(
            MockResponse(500),
            MockResponse(500),
            MockResponse(200, b"<h1>Recovered</h1>", "text/html; charset=utf-8"),
        )

        response = await client.get("https://example.com")

        assert response.content == b"<h1>Recovered</h1>"
        assert len(session.calls) == 3

    @pytest.mark.asyncio
    async def test_5xx_exhausts_retries(self):
        """Test that persistent 503 becomes a retryable SERVER_ERROR."""
        client, session = make_client(MockResponse(503), max_retries=2)

        with pytest.raises(NetworkError) as exc_info:
            await client.get_text("https://example.com")

        assert exc_info.value.kind == NetworkErrorKind.SERVER_ERROR
        assert exc_info.value.status_code == 503
        assert exc_info.value.is_retryable()
        assert len(session.calls) == 3

    @pytest.mark.asyncio
    async def test_retry_then_success(self):
        """Test recovery after transient failures."""
        client, session = make_client(
            MockResponse(500),
            MockResponse(429),
            MockResponse(200, b"ok", "text/plain"),
        )

        assert await client.get_text("https://example.com") == "ok"
        assert len(session.calls) == 3

    @pytest.mark.asyncio
    async def test_zero_retries(self):
        """Test that max_retries=0 sends exactly one request."""
        client, session = make_client(MockResponse(503), max_retries=0)

        with pytest.raises(NetworkError):
            await client.get_text("https://example.com")

        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_backoff_delays(self):
        """Test that delays grow as base * 2**attempt."""
        client = RetryingHttpClient(max_retries=3, retry_base_delay=1.0)
        client._session = MockSession(MockResponse(503))

        with patch("markdowndown.http.client.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(NetworkError):
                await client.get_text("https://example.com")

        assert [call.args[0] for call in mock_sleep.await_args_list] == [1.0, 2.0, 4.0]


class TestTransportErrors:
    """Tests for transport failures."""

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test that repeated timeouts become TIMEOUT."""
        client, session = make_client(asyncio.TimeoutError())

        with pytest.raises(NetworkError) as exc_info:
            await client.get_text("https://example.com")

        assert exc_info.value.kind == NetworkErrorKind.TIMEOUT
        assert "after 4 attempts" in exc_info.value.context.additional_info
        assert len(session.calls) == 4

    @pytest.mark.asyncio
    async def test_dns_failure(self):
        """Test that name resolution errors become DNS_RESOLUTION."""
        client, _ = make_client(socket.gaierror(-2, "Name or service not known"), max_retries=1)

        with pytest.raises(NetworkError) as exc_info:
            await client.get_text("https://nonexistent.invalid")

        assert exc_info.value.kind == NetworkErrorKind.DNS_RESOLUTION

    @pytest.mark.asyncio
    async def test_connector_dns_failure(self):
        """Test DNS errors wrapped by aiohttp's connector."""
        error = aiohttp.ClientConnectorError(MagicMock(), socket.gaierror(-2, "Name or service not known"))
        client, _ = make_client(error, max_retries=0)

        with pytest.raises(NetworkError) as exc_info:
            await client.get_text("https://nonexistent.invalid")

        assert exc_info.value.kind == NetworkErrorKind.DNS_RESOLUTION

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        """Test that other client errors become CONNECTION_FAILED."""
        client, session = make_client(aiohttp.ClientOSError(111, "Connection refused"), max_retries=1)

        with pytest.raises(NetworkError) as exc_info:
            await client.get_text("https://example.com")

        assert exc_info.value.kind == NetworkErrorKind.CONNECTION_FAILED
        assert len(session.calls) == 2

    @pytest.mark.asyncio
    async def test_transport_error_then_success(self):
        """Test that a transient transport error is retried."""
        client, session = make_client(
            aiohttp.ServerDisconnectedError(),
            MockResponse(200, b"ok", "text/plain"),
        )

        assert await client.get_text("https://example.com") == "ok"
        assert len(session.calls) == 2

    @pytest.mark.asyncio
    async def test_body_read_failure(self):
        """Test that failing to read the body is a connection failure."""
        client, _ = make_client(MockResponse(200, read_error=aiohttp.ClientPayloadError("truncated")))

        with pytest.raises(NetworkError) as exc_info:
            await client.get_text("https://example.com")

        assert exc_info.value.kind == NetworkErrorKind.CONNECTION_FAILED
        assert exc_info.value.context.operation == "Read response body"


class TestUrlValidation:
    """Tests for URL checks before any request."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url",
        ["not a url", "ftp://example.com/file", "https://", "https://exa mple.com/", "https://exa<mple.com/"],
    )
    async def test_invalid_url_sends_nothing(self, url):
        """Test that invalid URLs fail without a request."""
        client, session = make_client(MockResponse(200, b"ok"))

        with pytest.raises(ValidationError) as exc_info:
            await client.get_text(url)

        assert exc_info.value.kind == ValidationErrorKind.INVALID_URL
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_invalid_url_from_aiohttp_is_not_retried(self):
        """Test that aiohttp's InvalidURL is reported once."""
        client, session = make_client(aiohttp.InvalidURL("https://exa mple.com"))

        with pytest.raises(ValidationError):
            await client.get_text("https://example.com")

        assert len(session.calls) == 1


class TestGoogleApiKey:
    """Tests for the Google API key credential."""

    def make_keyed_client(self):
        client = RetryingHttpClient.from_config(HttpConfig(), AuthConfig(google_api_key="key-123"))
        session = MockSession(MockResponse(200, b"{}", "application/json"))
        client._session = session
        return client, session

    @pytest.mark.asyncio
    async def test_sent_to_googleapis(self):
        """Test that googleapis.com requests carry the key."""
        client, session = self.make_keyed_client()

        await client.get_text("https://www.googleapis.com/drive/v3/files/abc")

        _, kwargs = session.calls[0]
        assert kwargs["headers"]["Authorization"] == "Bearer key-123"

    @pytest.mark.asyncio
    async def test_not_sent_elsewhere(self):
        """Test that other hosts never see the key."""
        client, session = self.make_keyed_client()

        await client.get_text("https://example.com/page")

        _, kwargs = session.calls[0]
        assert kwargs["headers"] is None

    @pytest.mark.asyncio
    async def test_explicit_authorization_wins(self):
        """Test that a caller-supplied Authorization header is kept."""
        client, session = self.make_keyed_client()

        await client.get_text_with_headers("https://www.googleapis.com/x", {"Authorization": "Bearer other"})

        _, kwargs = session.calls[0]
        assert kwargs["headers"]["Authorization"] == "Bearer other"
