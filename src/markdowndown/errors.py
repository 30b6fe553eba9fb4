"""Error taxonomy for markdowndown.

Every failure raised by the library is a ``MarkdownError`` subclass carrying a
``kind`` (what went wrong) and an ``ErrorContext`` (where it went wrong).

Two orthogonal questions can be asked of any error:

- ``is_retryable()``: should the same operation be attempted again
  automatically? Only the HTTP client acts on this.
- ``is_recoverable()``: can the caller plausibly succeed by doing something
  different (supplying a token, fixing a config value, ...)?

Example:
    try:
        markdown = await md.convert_url(url)
    except AuthError as e:
        for hint in e.suggestions():
            print(hint)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum


class ValidationErrorKind(str, Enum):
    """Input validation failures."""

    INVALID_URL = "invalid_url"
    INVALID_FORMAT = "invalid_format"
    MISSING_PARAMETER = "missing_parameter"


class NetworkErrorKind(str, Enum):
    """Transport and HTTP status failures."""

    TIMEOUT = "timeout"
    CONNECTION_FAILED = "connection_failed"
    DNS_RESOLUTION = "dns_resolution"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"


class AuthErrorKind(str, Enum):
    """Authentication and authorization failures."""

    MISSING_TOKEN = "missing_token"
    INVALID_TOKEN = "invalid_token"
    PERMISSION_DENIED = "permission_denied"
    TOKEN_EXPIRED = "token_expired"


class ContentErrorKind(str, Enum):
    """Problems with fetched content."""

    EMPTY_CONTENT = "empty_content"
    UNSUPPORTED_FORMAT = "unsupported_format"
    PARSING_FAILED = "parsing_failed"


class ConverterErrorKind(str, Enum):
    """Failures inside a converter."""

    EXTERNAL_TOOL_FAILED = "external_tool_failed"
    PROCESSING_ERROR = "processing_error"
    UNSUPPORTED_OPERATION = "unsupported_operation"


class ConfigErrorKind(str, Enum):
    """Configuration problems."""

    INVALID_CONFIG = "invalid_config"
    MISSING_DEPENDENCY = "missing_dependency"
    INVALID_VALUE = "invalid_value"


@dataclass(frozen=True)
class ErrorContext:
    """
    Where an error happened.

    Attributes:
        url: URL being processed when the error occurred
        operation: Operation that failed (e.g. "HTTP request")
        source_component: Component that raised the error (e.g. "HttpClient")
        timestamp: When the error was created (UTC)
        additional_info: Free-form detail such as the HTTP status
    """

    url: str
    operation: str
    source_component: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    additional_info: str | None = None

    def with_info(self, info: str) -> ErrorContext:
        """Return a copy with additional_info set."""
        return replace(self, additional_info=info)


class MarkdownError(Exception):
    """Base class for all markdowndown errors."""

    category = "Unknown"

    def __init__(self, kind: Enum, context: ErrorContext) -> None:
        self.kind = kind
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        message = (
            f"{self.category} error ({self.kind.value}): {self.context.url} "
            f"during {self.context.operation}"
        )
        if self.context.additional_info:
            message += f": {self.context.additional_info}"
        return message

    def is_retryable(self) -> bool:
        """Whether the same operation should be attempted again automatically."""
        return False

    def is_recoverable(self) -> bool:
        """Whether the caller can plausibly succeed by taking a different action."""
        return False

    def suggestions(self) -> list[str]:
        """Actionable hints for the user."""
        return []


class ValidationError(MarkdownError):
    """Invalid input (bad URL, wrong format, missing parameter)."""

    category = "Validation"

    def __init__(self, kind: ValidationErrorKind, context: ErrorContext) -> None:
        super().__init__(kind, context)

    def suggestions(self) -> list[str]:
        if self.kind == ValidationErrorKind.INVALID_URL:
            return [
                "Make sure the URL starts with http:// or https://",
                "Check the URL for typos or missing parts",
            ]
        if self.kind == ValidationErrorKind.INVALID_FORMAT:
            return ["Check that the input matches the expected format"]
        return ["Provide all required parameters"]


class NetworkError(MarkdownError):
    """Transport failure or unsuccessful HTTP status."""

    category = "Network"

    def __init__(
        self,
        kind: NetworkErrorKind,
        context: ErrorContext,
        status_code: int | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(kind, context)

    def _format_message(self) -> str:
        message = super()._format_message()
        if self.status_code is not None and self.context.additional_info is None:
            message += f": HTTP {self.status_code}"
        return message

    def is_retryable(self) -> bool:
        if self.kind in (
            NetworkErrorKind.TIMEOUT,
            NetworkErrorKind.CONNECTION_FAILED,
            NetworkErrorKind.RATE_LIMITED,
        ):
            return True
        if self.kind == NetworkErrorKind.SERVER_ERROR:
            return self.status_code is not None and 500 <= self.status_code < 600
        return False

    def is_recoverable(self) -> bool:
        return True

    def suggestions(self) -> list[str]:
        if self.kind == NetworkErrorKind.TIMEOUT:
            return [
                "Check your internet connection",
                "Increase the timeout with --timeout",
            ]
        if self.kind == NetworkErrorKind.CONNECTION_FAILED:
            return [
                "Check your internet connection",
                "Verify the server is reachable",
            ]
        if self.kind == NetworkErrorKind.DNS_RESOLUTION:
            return ["Check the domain name for typos", "Check your DNS settings"]
        if self.kind == NetworkErrorKind.RATE_LIMITED:
            return [
                "Wait a while before trying again",
                "Provide an API token to raise rate limits (e.g. GITHUB_TOKEN)",
            ]
        if self.status_code == 404:
            return ["Check that the URL exists and is publicly accessible"]
        if self.status_code is not None and self.status_code >= 500:
            return ["The server is having problems; try again later"]
        return ["Check the URL and request parameters"]


class AuthError(MarkdownError):
    """Missing, invalid or insufficient credentials."""

    category = "Authentication"

    def __init__(self, kind: AuthErrorKind, context: ErrorContext) -> None:
        super().__init__(kind, context)

    def is_retryable(self) -> bool:
        return self.kind == AuthErrorKind.TOKEN_EXPIRED

    def is_recoverable(self) -> bool:
        return True

    def suggestions(self) -> list[str]:
        if self.kind == AuthErrorKind.MISSING_TOKEN:
            return [
                "Provide an API token (e.g. set the GITHUB_TOKEN environment variable)",
                "Check that the resource is publicly accessible",
            ]
        if self.kind == AuthErrorKind.INVALID_TOKEN:
            return ["Check that the token is correct and has not been revoked"]
        if self.kind == AuthErrorKind.TOKEN_EXPIRED:
            return ["Refresh or regenerate the token"]
        return [
            "Check that the token has access to this resource",
            "Request access from the resource owner",
        ]


class ContentError(MarkdownError):
    """Fetched content was empty, unsupported or unparseable."""

    category = "Content"

    def __init__(self, kind: ContentErrorKind, context: ErrorContext) -> None:
        super().__init__(kind, context)

    def is_recoverable(self) -> bool:
        return self.kind == ContentErrorKind.UNSUPPORTED_FORMAT

    def suggestions(self) -> list[str]:
        if self.kind == ContentErrorKind.EMPTY_CONTENT:
            return ["The page returned no usable content; check the URL in a browser"]
        if self.kind == ContentErrorKind.UNSUPPORTED_FORMAT:
            return ["Export the document to HTML or Markdown and try again"]
        return ["The content could not be parsed; the source format may have changed"]


class ConverterError(MarkdownError):
    """A converter could not finish its work."""

    category = "Converter"

    def __init__(self, kind: ConverterErrorKind, context: ErrorContext) -> None:
        super().__init__(kind, context)

    def is_recoverable(self) -> bool:
        return True

    def suggestions(self) -> list[str]:
        if self.kind == ConverterErrorKind.EXTERNAL_TOOL_FAILED:
            return ["Check that the required external tool is installed"]
        if self.kind == ConverterErrorKind.UNSUPPORTED_OPERATION:
            return ["This URL type does not support the requested operation"]
        return ["Try again with --debug for more detail"]


class ConfigError(MarkdownError):
    """Invalid configuration or missing dependency."""

    category = "Configuration"

    def __init__(self, kind: ConfigErrorKind, context: ErrorContext) -> None:
        super().__init__(kind, context)

    def suggestions(self) -> list[str]:
        if self.kind == ConfigErrorKind.MISSING_DEPENDENCY:
            return ["Reinstall markdowndown: pip install --upgrade markdowndown"]
        return ["Check the configuration file and command-line options"]
