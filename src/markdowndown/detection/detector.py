"""URL type detection and normalization."""

from __future__ import annotations

import logging
import string
from urllib.parse import SplitResult, unquote_plus, urlsplit, urlunsplit

from ..errors import ErrorContext, ValidationError, ValidationErrorKind
from ..models.types import UrlType
from .patterns import DEFAULT_PATTERNS, Pattern

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = frozenset({"http", "https"})

# RFC 3986 reg-name characters; IPv6 literals arrive without their brackets
_HOST_CHARS = frozenset(string.ascii_letters + string.digits + "-._~!$&'()*+,;=%")
_IPV6_CHARS = frozenset(string.hexdigits + ":.")

# Removed by normalize_url() in addition to any utm_* parameter
TRACKING_PARAMS = frozenset(
    {
        "ref",
        "source",
        "campaign",
        "medium",
        "term",
        "gclid",
        "fbclid",
        "msclkid",
        "_ga",
        "_gid",
        "mc_cid",
        "mc_eid",
    }
)


def _is_number(segment: str) -> bool:
    return segment.isascii() and segment.isdigit()


def is_valid_host(host: str) -> bool:
    """
    Check that a hostname only uses characters a URL host may contain.

    Non-ASCII letters and digits are accepted for internationalized domains.
    """
    if not host:
        return False
    if ":" in host:
        return all(c in _IPV6_CHARS for c in host)
    return all(c in _HOST_CHARS or (not c.isascii() and c.isalnum()) for c in host)


def is_github_issue_url(host: str, path: str) -> bool:
    """
    Check for a GitHub issue or pull request URL.

    Accepted shapes:
        github.com/{owner}/{repo}/issues/{n}
        github.com/{owner}/{repo}/pull/{n}
        api.github.com/repos/{owner}/{repo}/issues/{n}
        api.github.com/repos/{owner}/{repo}/pulls/{n}
    """
    segments = [s for s in path.split("/") if s]
    host = host.lower()
    if host == "github.com":
        return len(segments) >= 4 and segments[2] in ("issues", "pull") and _is_number(segments[3])
    if host == "api.github.com":
        return (
            len(segments) >= 5
            and segments[0] == "repos"
            and segments[3] in ("issues", "pulls")
            and _is_number(segments[4])
        )
    return False


class UrlDetector:
    """
    Classifies URLs into UrlType values and normalizes them.

    GitHub issue/PR URLs are recognised structurally first, then the pattern
    table is consulted in registration order, and anything else is HTML.
    Only the host and path take part in detection.

    Example:
        detector = UrlDetector()
        detector.detect_type("https://docs.google.com/document/d/abc/edit")
        # UrlType.GOOGLE_DOCS
    """

    def __init__(self, patterns: list[Pattern] | None = None) -> None:
        self._patterns: list[Pattern] = list(DEFAULT_PATTERNS if patterns is None else patterns)

    @property
    def patterns(self) -> list[Pattern]:
        """Registered patterns in evaluation order (a copy)."""
        return list(self._patterns)

    def add_pattern(self, pattern: Pattern) -> None:
        """Append a pattern; earlier patterns keep priority."""
        self._patterns.append(pattern)

    def _parse(self, url: str) -> SplitResult:
        trimmed = url.strip() if isinstance(url, str) else ""
        context = ErrorContext(url if isinstance(url, str) else repr(url), "URL parsing", "UrlDetector")

        if not trimmed:
            raise ValidationError(ValidationErrorKind.INVALID_URL, context.with_info("URL is empty"))

        try:
            parsed = urlsplit(trimmed)
            # Accessing .port validates it
            parsed.port
        except ValueError as e:
            raise ValidationError(
                ValidationErrorKind.INVALID_URL, context.with_info(f"Parse error: {e}")
            ) from e

        if parsed.scheme.lower() not in ALLOWED_SCHEMES:
            raise ValidationError(
                ValidationErrorKind.INVALID_URL,
                context.with_info("URL must use http or https"),
            )
        if not parsed.hostname:
            raise ValidationError(ValidationErrorKind.INVALID_URL, context.with_info("URL has no host"))
        if not is_valid_host(parsed.hostname):
            raise ValidationError(
                ValidationErrorKind.INVALID_URL,
                context.with_info(f"Invalid host: {parsed.hostname!r}"),
            )
        return parsed

    def validate_url(self, url: str) -> None:
        """
        Check that a URL is an absolute http(s) URL with a host.

        No network access is performed.

        Raises:
            ValidationError: If the URL is invalid
        """
        self._parse(url)

    def detect_type(self, url: str) -> UrlType:
        """
        Determine which converter should handle a URL.

        Raises:
            ValidationError: If the URL is invalid
        """
        parsed = self._parse(url)
        host = parsed.hostname or ""
        path = parsed.path or "/"

        if is_github_issue_url(host, path):
            url_type = UrlType.GITHUB_ISSUE
        else:
            url_type = UrlType.HTML
            for pattern in self._patterns:
                if pattern.matches(host, path):
                    url_type = pattern.url_type
                    break

        logger.debug(f"Detected {url_type} for {url}")
        return url_type

    def normalize_url(self, url: str) -> str:
        """
        Return a canonical form of a URL.

        Trims whitespace, lower-cases scheme and host, and removes tracking
        parameters. Every other parameter is kept in its original order and
        encoding, as is the fragment. Normalizing twice gives the same result.

        Raises:
            ValidationError: If the URL is invalid
        """
        parsed = self._parse(url)

        netloc = parsed.netloc
        userinfo, sep, hostport = netloc.rpartition("@")
        netloc = f"{userinfo}{sep}{hostport.lower()}"

        kept = [
            part
            for part in parsed.query.split("&")
            if part and not _is_tracking_param(unquote_plus(part.split("=", 1)[0]))
        ]

        return urlunsplit(
            (
                parsed.scheme.lower(),
                netloc,
                parsed.path or "/",
                "&".join(kept),
                parsed.fragment,
            )
        )


def _is_tracking_param(name: str) -> bool:
    return name.startswith("utm_") or name in TRACKING_PARAMS


_default_detector = UrlDetector()


def detect_url_type(url: str) -> UrlType:
    """Detect the UrlType of a URL using the default rules."""
    return _default_detector.detect_type(url)
