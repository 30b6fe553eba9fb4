"""Protocol definitions for HTTP client abstraction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class HttpResponse:
    """
    Immutable HTTP response returned by HttpClient.

    Attributes:
        status_code: HTTP status code (200, 404, etc.)
        content: Raw response content as bytes
        content_type: Content-Type header value
        headers: All response headers
        url: Final URL after any redirects
    """

    status_code: int
    content: bytes
    content_type: str
    headers: dict[str, str]
    url: str


class HttpClient(Protocol):
    """
    Protocol for the HTTP client shared by converters.

    This abstraction allows for:
    - Mock implementations in tests
    - Converters that depend only on the calls they make
    """

    async def get_text(self, url: str) -> str:
        """Fetch a URL and return the decoded body."""
        ...

    async def get_bytes(self, url: str) -> bytes:
        """Fetch a URL and return the raw body."""
        ...

    async def get_text_with_headers(self, url: str, headers: dict[str, str]) -> str:
        """Fetch a URL with extra request headers and return the decoded body."""
        ...
