"""HTTP client and retry policy for markdowndown."""

from .client import RetryingHttpClient
from .protocols import HttpClient, HttpResponse
from .retry import RetryPolicy, StatusOutcome, classify_status

__all__ = [
    "HttpClient",
    "HttpResponse",
    "RetryPolicy",
    "RetryingHttpClient",
    "StatusOutcome",
    "classify_status",
]
