"""Converter interface and the UrlType -> Converter registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ..errors import ConfigError, ConfigErrorKind, ErrorContext
from ..models.types import Markdown, UrlType

if TYPE_CHECKING:
    from ..http.protocols import HttpClient
    from ..models.config import MarkdownDownConfig

logger = logging.getLogger(__name__)


@runtime_checkable
class Converter(Protocol):
    """
    Protocol for URL-to-Markdown converters.

    Implementations fetch whatever they need through the shared HTTP client
    and return validated Markdown, or raise a MarkdownError.
    """

    name: str

    async def convert(self, url: str) -> Markdown:
        """
        Convert the content at a URL to Markdown.

        Args:
            url: URL already classified for this converter

        Returns:
            Non-empty Markdown

        Raises:
            MarkdownError: On any failure
        """
        ...


class ConverterRegistry:
    """
    Maps each UrlType to the Converter that handles it.

    Registering a type twice replaces the earlier converter.

    Example:
        registry = ConverterRegistry()
        registry.register(UrlType.HTML, HtmlConverter(client))
        converter = registry.get_converter(UrlType.HTML)
    """

    def __init__(self) -> None:
        self._converters: dict[UrlType, Converter] = {}

    def register(self, url_type: UrlType, converter: Converter) -> None:
        """Register (or replace) the converter for a UrlType."""
        if url_type in self._converters:
            logger.debug(f"Replacing converter for {url_type}")
        self._converters[url_type] = converter

    def get_converter(self, url_type: UrlType) -> Converter | None:
        """Return the converter for a UrlType, or None if none is registered."""
        return self._converters.get(url_type)

    def supported_types(self) -> set[UrlType]:
        """UrlTypes that have a registered converter."""
        return set(self._converters)

    def ensure_complete(self) -> None:
        """
        Check that every UrlType has a converter.

        Raises:
            ConfigError: MISSING_DEPENDENCY naming the uncovered types
        """
        missing = [t for t in UrlType if t not in self._converters]
        if missing:
            names = ", ".join(str(t) for t in missing)
            context = ErrorContext("", "Converter registry check", "ConverterRegistry").with_info(
                f"No converter registered for: {names}"
            )
            raise ConfigError(ConfigErrorKind.MISSING_DEPENDENCY, context)

    def __contains__(self, url_type: object) -> bool:
        return url_type in self._converters

    def __len__(self) -> int:
        return len(self._converters)


def build_default_registry(
    client: HttpClient,
    config: MarkdownDownConfig | None = None,
) -> ConverterRegistry:
    """
    Build a registry with one converter per UrlType, all sharing one client.

    Args:
        client: HTTP client injected into every converter
        config: Source of credentials and output settings (defaults if None)
    """
    from ..models.config import MarkdownDownConfig
    from .github import GitHubIssueConverter
    from .google_docs import GoogleDocsConverter
    from .html import HtmlConverter
    from .office365 import Office365Converter

    config = config or MarkdownDownConfig()

    registry = ConverterRegistry()
    registry.register(UrlType.HTML, HtmlConverter(client, html_config=config.html, output_config=config.output))
    registry.register(UrlType.GOOGLE_DOCS, GoogleDocsConverter(client, output_config=config.output))
    registry.register(
        UrlType.GITHUB_ISSUE,
        GitHubIssueConverter(client, token=config.auth.github_token, output_config=config.output),
    )
    registry.register(
        UrlType.OFFICE365,
        Office365Converter(
            client,
            token=config.auth.office365_token,
            html_config=config.html,
            output_config=config.output,
        ),
    )
    return registry
