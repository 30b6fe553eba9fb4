"""Data-driven URL matching rules."""

from __future__ import annotations

from dataclasses import dataclass

from ..models.types import UrlType


@dataclass(frozen=True)
class Pattern:
    """
    A host/path rule that maps matching URLs to a UrlType.

    Domain patterns:
        "example.com"    matches example.com only (case-insensitive)
        "*.example.com"  matches example.com and any subdomain of it

    Path patterns:
        None             matches any path
        "/docs/"         path starts with "/docs/"
        "/docs/*"        path starts with "/docs/"
        "*.html"         path ends with ".html"
        "/a/*/edit"      path starts with "/a/" and ends with "/edit"

    A path pattern with more than one "*" never matches.
    """

    domain_pattern: str
    path_pattern: str | None
    url_type: UrlType

    def matches(self, host: str, path: str) -> bool:
        """Check whether a host and path satisfy this rule."""
        if not self.matches_domain(host):
            return False
        if self.path_pattern is None:
            return True
        return self.matches_path(path)

    def matches_domain(self, host: str) -> bool:
        host = host.lower()
        pattern = self.domain_pattern.lower()
        if pattern.startswith("*."):
            suffix = pattern[2:]
            return host == suffix or host.endswith("." + suffix)
        return host == pattern

    def matches_path(self, path: str) -> bool:
        pattern = self.path_pattern or ""
        wildcards = pattern.count("*")
        if wildcards == 0:
            return path.startswith(pattern)
        if wildcards > 1:
            return False
        prefix, suffix = pattern.split("*")
        return (
            len(path) >= len(prefix) + len(suffix)
            and path.startswith(prefix)
            and path.endswith(suffix)
        )


DEFAULT_PATTERNS: tuple[Pattern, ...] = (
    Pattern("docs.google.com", "/document/*", UrlType.GOOGLE_DOCS),
    Pattern("drive.google.com", "/file/*", UrlType.GOOGLE_DOCS),
)
