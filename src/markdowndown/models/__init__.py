"""markdowndown configuration, value and result models."""

from .config import (
    AuthConfig,
    BatchConfig,
    HtmlConfig,
    HttpConfig,
    LoggingConfig,
    MarkdownDownConfig,
    OutputConfig,
    find_config_file,
    load_config,
)
from .events import BatchResult, BatchStats
from .types import Markdown, UrlType

__all__ = [
    # Config
    "AuthConfig",
    "BatchConfig",
    "HtmlConfig",
    "HttpConfig",
    "LoggingConfig",
    "MarkdownDownConfig",
    "OutputConfig",
    "find_config_file",
    "load_config",
    # Events
    "BatchResult",
    "BatchStats",
    # Types
    "Markdown",
    "UrlType",
]
