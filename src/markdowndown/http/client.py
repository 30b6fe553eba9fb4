"""Async HTTP client with retry logic and status-to-error mapping."""

from __future__ import annotations

import asyncio
import logging
import socket
from types import TracebackType
from urllib.parse import urlsplit

import aiohttp
from charset_normalizer import from_bytes as detect_encoding

from .. import __version__
from ..detection import is_valid_host
from ..errors import (
    AuthError,
    AuthErrorKind,
    ErrorContext,
    MarkdownError,
    NetworkError,
    NetworkErrorKind,
    ValidationError,
    ValidationErrorKind,
)
from ..models.config import AuthConfig, HttpConfig
from .protocols import HttpResponse
from .retry import RetryPolicy, StatusOutcome, classify_status

logger = logging.getLogger(__name__)

COMPONENT = "HttpClient"


class RetryingHttpClient:
    """
    Async HTTP client with retry logic.

    Features:
    - Exponential backoff retry for 429, 5xx and transport failures
    - Every failure surfaced as a typed MarkdownError
    - Intelligent encoding detection
    - Timeout and redirect limits

    Example:
        async with RetryingHttpClient(timeout=10) as client:
            html = await client.get_text("https://example.com")
    """

    # Exceptions that warrant a retry
    RETRYABLE_EXCEPTIONS = (
        aiohttp.ClientError,
        asyncio.TimeoutError,
        OSError,
    )

    def __init__(
        self,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        max_redirects: int = 10,
        user_agent: str | None = None,
        retry_policy: RetryPolicy | None = None,
        google_api_key: str | None = None,
    ) -> None:
        """
        Initialize the HTTP client.

        Args:
            timeout: Total request timeout in seconds
            max_retries: Maximum retry attempts for failed requests
            retry_base_delay: Base delay for exponential backoff (seconds)
            max_redirects: Maximum redirects to follow
            user_agent: Custom User-Agent string
            retry_policy: Explicit policy; overrides max_retries and retry_base_delay
            google_api_key: Sent as a Bearer credential to googleapis.com hosts
        """
        self._timeout = timeout
        self._max_redirects = max_redirects
        self._retry_policy = retry_policy or RetryPolicy(max_retries, retry_base_delay)
        self._google_api_key = (google_api_key or "").strip() or None

        if user_agent is None:
            user_agent = f"markdowndown/{__version__}"
        self._user_agent = user_agent

        self._session: aiohttp.ClientSession | None = None

    @classmethod
    def from_config(cls, config: HttpConfig, auth: AuthConfig | None = None) -> RetryingHttpClient:
        """Create a client from an HttpConfig section and optional credentials."""
        return cls(
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_base_delay=config.retry_delay,
            max_redirects=config.max_redirects,
            user_agent=config.user_agent,
            google_api_key=auth.google_api_key if auth else None,
        )

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    @property
    def user_agent(self) -> str:
        return self._user_agent

    async def __aenter__(self) -> RetryingHttpClient:
        """Enter async context and create session."""
        connector = aiohttp.TCPConnector(
            limit=100,  # Total connection limit
            limit_per_host=10,  # Per-host connection limit
            ttl_dns_cache=300,  # DNS cache TTL
        )
        self._session = aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": self._user_agent},
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and close session."""
        if self._session:
            await self._session.close()
            self._session = None

    def _decode_content(self, content: bytes, content_type: str) -> str:
        """
        Decode content with intelligent encoding detection.

        Fallback chain:
        1. Content-Type header charset
        2. charset-normalizer detection
        3. UTF-8 with replacement
        """
        encoding = None
        if content_type:
            for part in content_type.split(";"):
                part = part.strip()
                if part.lower().startswith("charset="):
                    encoding = part.split("=", 1)[1].strip().strip("\"'")
                    break

        if encoding:
            try:
                return content.decode(encoding)
            except (UnicodeDecodeError, LookupError):
                logger.debug(f"Failed to decode with declared encoding: {encoding}")

        if not content:
            return ""

        best_match = detect_encoding(content).best()
        if best_match is not None:
            logger.debug(f"Detected encoding: {best_match.encoding}")
            return str(best_match)

        return content.decode("utf-8", errors="replace")

    def _validate_url(self, url: str) -> None:
        """Reject anything that is not an absolute http(s) URL before any request."""
        context = ErrorContext(url, "URL validation", COMPONENT)
        try:
            parsed = urlsplit(url)
            parsed.port
        except (TypeError, ValueError) as e:
            raise ValidationError(ValidationErrorKind.INVALID_URL, context.with_info(f"Parse error: {e}")) from e

        if parsed.scheme not in ("http", "https"):
            raise ValidationError(
                ValidationErrorKind.INVALID_URL,
                context.with_info(f"Unsupported scheme: {parsed.scheme or '(none)'}"),
            )
        if not parsed.hostname:
            raise ValidationError(ValidationErrorKind.INVALID_URL, context.with_info("URL has no host"))
        if not is_valid_host(parsed.hostname):
            raise ValidationError(
                ValidationErrorKind.INVALID_URL, context.with_info(f"Invalid host: {parsed.hostname!r}")
            )

    def _auth_headers(self, url: str, headers: dict[str, str] | None) -> dict[str, str] | None:
        """Add the Google API key for googleapis.com hosts unless the caller set Authorization."""
        if not self._google_api_key or "googleapis.com" not in (urlsplit(url).hostname or ""):
            return headers
        merged = dict(headers or {})
        merged.setdefault("Authorization", f"Bearer {self._google_api_key}")
        return merged

    def _status_error(self, url: str, status: int, outcome: StatusOutcome, attempts: int) -> MarkdownError:
        """Build the error for a non-success status."""
        context = ErrorContext(url, "HTTP request", COMPONENT)
        if outcome == StatusOutcome.MISSING_TOKEN:
            return AuthError(AuthErrorKind.MISSING_TOKEN, context.with_info(f"HTTP status: {status}"))
        if outcome == StatusOutcome.PERMISSION_DENIED:
            return AuthError(AuthErrorKind.PERMISSION_DENIED, context.with_info(f"HTTP status: {status}"))
        if outcome == StatusOutcome.RETRY:
            context = context.with_info(f"HTTP status: {status} after {attempts} attempts")
            if status == 429:
                return NetworkError(NetworkErrorKind.RATE_LIMITED, context, status_code=status)
            return NetworkError(NetworkErrorKind.SERVER_ERROR, context, status_code=status)
        return NetworkError(
            NetworkErrorKind.SERVER_ERROR,
            context.with_info(f"HTTP status: {status}"),
            status_code=status,
        )

    def _transport_error(self, url: str, error: BaseException, attempts: int) -> MarkdownError:
        """Map the last transport exception to a NetworkError."""
        context = ErrorContext(url, "HTTP request", COMPONENT)
        suffix = f" after {attempts} attempts"

        # Checked first: asyncio.TimeoutError is an OSError on current Pythons
        if isinstance(error, asyncio.TimeoutError):
            return NetworkError(NetworkErrorKind.TIMEOUT, context.with_info("Request timeout" + suffix))
        if isinstance(error, aiohttp.ClientConnectorError) and isinstance(error.os_error, socket.gaierror):
            return NetworkError(
                NetworkErrorKind.DNS_RESOLUTION,
                context.with_info(f"DNS lookup failed: {error.os_error}" + suffix),
            )
        if isinstance(error, socket.gaierror):
            return NetworkError(
                NetworkErrorKind.DNS_RESOLUTION,
                context.with_info(f"DNS lookup failed: {error}" + suffix),
            )
        if isinstance(error, aiohttp.TooManyRedirects):
            return NetworkError(
                NetworkErrorKind.CONNECTION_FAILED,
                context.with_info(f"Too many redirects (limit {self._max_redirects})" + suffix),
            )
        return NetworkError(
            NetworkErrorKind.CONNECTION_FAILED,
            context.with_info(f"Connection error: {error}" + suffix),
        )

    async def _read_body(self, response: aiohttp.ClientResponse, url: str) -> bytes:
        try:
            return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.error(f"Failed to read response body for {url}: {e}")
            context = ErrorContext(url, "Read response body", COMPONENT).with_info(f"Error: {e}")
            raise NetworkError(NetworkErrorKind.CONNECTION_FAILED, context) from e

    async def _retry_request(self, url: str, headers: dict[str, str] | None = None) -> HttpResponse:
        """
        Perform a GET request with retry logic.

        Raises:
            ValidationError: Invalid URL (no request is sent)
            AuthError: 401 or 403
            NetworkError: Any other failure, after retries where applicable
        """
        self._validate_url(url)
        if self._session is None:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        headers = self._auth_headers(url, headers)
        policy = self._retry_policy
        attempts = policy.max_attempts

        for attempt in range(attempts):
            logger.debug(f"GET {url} (attempt {attempt + 1}/{attempts})")
            try:
                async with self._session.get(
                    url,
                    headers=headers or None,
                    timeout=aiohttp.ClientTimeout(total=self._timeout),
                    allow_redirects=True,
                    max_redirects=self._max_redirects,
                ) as response:
                    status = response.status
                    outcome = classify_status(status)

                    if outcome == StatusOutcome.SUCCESS:
                        content = await self._read_body(response, url)
                        return HttpResponse(
                            status_code=status,
                            content=content,
                            content_type=response.headers.get("Content-Type", ""),
                            headers=dict(response.headers),
                            url=str(response.url),
                        )

                    if outcome != StatusOutcome.RETRY:
                        raise self._status_error(url, status, outcome, attempt + 1)

                    if attempt == policy.max_retries:
                        logger.error(f"Got {status} for {url} after {attempts} attempts")
                        raise self._status_error(url, status, outcome, attempts)

                    logger.warning(
                        f"Got {status} for {url}, retrying in {policy.delay_for(attempt):.1f}s "
                        f"(attempt {attempt + 1}/{attempts})"
                    )

            except aiohttp.InvalidURL as e:
                context = ErrorContext(url, "HTTP request validation", COMPONENT).with_info(str(e))
                raise ValidationError(ValidationErrorKind.INVALID_URL, context) from e

            except self.RETRYABLE_EXCEPTIONS as e:
                if attempt == policy.max_retries:
                    logger.error(f"HTTP fetch error for {url} after {attempts} attempts: {e!r}")
                    raise self._transport_error(url, e, attempts) from e
                logger.warning(
                    f"Error fetching {url}: {e!r}, retrying in {policy.delay_for(attempt):.1f}s "
                    f"(attempt {attempt + 1}/{attempts})"
                )

            await asyncio.sleep(policy.delay_for(attempt))

        raise RuntimeError(f"Unexpected error fetching {url}")

    async def get(self, url: str, *, headers: dict[str, str] | None = None) -> HttpResponse:
        """Fetch a URL and return the full response."""
        return await self._retry_request(url, headers)

    async def get_text(self, url: str) -> str:
        """
        Fetch a URL and return the decoded body.

        Raises:
            MarkdownError: See _retry_request
        """
        response = await self._retry_request(url)
        text = self._decode_content(response.content, response.content_type)
        logger.info(f"Fetched {url} ({len(text)} chars)")
        return text

    async def get_bytes(self, url: str) -> bytes:
        """Fetch a URL and return the raw body."""
        response = await self._retry_request(url)
        return response.content

    async def get_text_with_headers(self, url: str, headers: dict[str, str]) -> str:
        """Fetch a URL with extra request headers and return the decoded body."""
        response = await self._retry_request(url, headers)
        return self._decode_content(response.content, response.content_type)
