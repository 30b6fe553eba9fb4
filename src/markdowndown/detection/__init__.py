"""URL classification."""

from .detector import (
    TRACKING_PARAMS,
    UrlDetector,
    detect_url_type,
    is_github_issue_url,
    is_valid_host,
)
from .patterns import DEFAULT_PATTERNS, Pattern

__all__ = [
    "DEFAULT_PATTERNS",
    "Pattern",
    "TRACKING_PARAMS",
    "UrlDetector",
    "detect_url_type",
    "is_github_issue_url",
    "is_valid_host",
]
