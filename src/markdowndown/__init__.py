"""
markdowndown - Convert web pages, Google Docs, Office 365 documents and
GitHub issues to Markdown.

Usage:
    from markdowndown import MarkdownDown

    async with MarkdownDown() as md:
        markdown = await md.convert_url("https://example.com/article")
        print(markdown)
"""

__version__ = "0.3.0"

from .concurrency import BatchCoordinator, read_url_file
from .converters import Converter, ConverterRegistry, build_default_registry
from .core import MarkdownDown, convert_url_blocking
from .detection import Pattern, UrlDetector, detect_url_type
from .errors import (
    AuthError,
    AuthErrorKind,
    ConfigError,
    ConfigErrorKind,
    ContentError,
    ContentErrorKind,
    ConverterError,
    ConverterErrorKind,
    ErrorContext,
    MarkdownError,
    NetworkError,
    NetworkErrorKind,
    ValidationError,
    ValidationErrorKind,
)
from .http import RetryingHttpClient, RetryPolicy
from .models.config import (
    AuthConfig,
    BatchConfig,
    HtmlConfig,
    HttpConfig,
    LoggingConfig,
    MarkdownDownConfig,
    OutputConfig,
    load_config,
)
from .models.events import BatchResult, BatchStats
from .models.types import Markdown, UrlType

__all__ = [
    "__version__",
    # Core
    "MarkdownDown",
    "convert_url_blocking",
    "detect_url_type",
    # Building blocks
    "BatchCoordinator",
    "Converter",
    "ConverterRegistry",
    "Pattern",
    "RetryPolicy",
    "RetryingHttpClient",
    "UrlDetector",
    "build_default_registry",
    "read_url_file",
    # Types
    "BatchResult",
    "BatchStats",
    "Markdown",
    "UrlType",
    # Config
    "AuthConfig",
    "BatchConfig",
    "HtmlConfig",
    "HttpConfig",
    "LoggingConfig",
    "MarkdownDownConfig",
    "OutputConfig",
    "load_config",
    # Errors
    "AuthError",
    "AuthErrorKind",
    "ConfigError",
    "ConfigErrorKind",
    "ContentError",
    "ContentErrorKind",
    "ConverterError",
    "ConverterErrorKind",
    "ErrorContext",
    "MarkdownError",
    "NetworkError",
    "NetworkErrorKind",
    "ValidationError",
    "ValidationErrorKind",
]
