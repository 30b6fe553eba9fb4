"""MarkdownDown facade: classify a URL and dispatch it to its converter."""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Any

from ..converters.base import ConverterRegistry, build_default_registry
from ..detection import UrlDetector
from ..errors import ConfigError, ConfigErrorKind, ErrorContext
from ..http import RetryingHttpClient
from ..models.config import MarkdownDownConfig
from ..models.types import Markdown, UrlType

logger = logging.getLogger(__name__)


class MarkdownDown:
    """
    Converts URLs to Markdown.

    Owns one HTTP client (and its session) plus the converter registry built
    on top of it. Use as an async context manager.

    Example:
        async with MarkdownDown() as md:
            markdown = await md.convert_url("https://example.com/article")
            print(markdown.content_only())
    """

    name = "MarkdownDown"

    def __init__(
        self,
        config: MarkdownDownConfig | None = None,
        registry: ConverterRegistry | None = None,
        detector: UrlDetector | None = None,
    ) -> None:
        """
        Args:
            config: Configuration (defaults if None)
            registry: Prebuilt registry; when None the default one is built on enter
            detector: URL classifier (default rules if None)
        """
        self.config = config or MarkdownDownConfig()
        self._detector = detector or UrlDetector()
        self._client: RetryingHttpClient | None = None
        self._registry = registry

    async def __aenter__(self) -> MarkdownDown:
        """Enter async context and initialize components."""
        if self._registry is None:
            self._client = RetryingHttpClient.from_config(self.config.http, self.config.auth)
            await self._client.__aenter__()
            self._registry = build_default_registry(self._client, self.config)
        try:
            self._registry.ensure_complete()
        except ConfigError:
            await self._close_client()
            raise
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and cleanup."""
        await self._close_client()

    async def _close_client(self) -> None:
        if self._client:
            await self._client.__aexit__(None, None, None)
            self._client = None

    @property
    def registry(self) -> ConverterRegistry:
        if self._registry is None:
            raise RuntimeError("MarkdownDown not initialized. Use 'async with' context manager.")
        return self._registry

    @property
    def detector(self) -> UrlDetector:
        return self._detector

    def detect_type(self, url: str) -> UrlType:
        """Classify a URL without fetching it."""
        return self._detector.detect_type(url)

    def supported_types(self) -> set[UrlType]:
        """UrlTypes with a registered converter."""
        return self.registry.supported_types()

    async def convert_url(self, url: str) -> Markdown:
        """
        Fetch a URL and convert it to Markdown.

        The URL is normalized and classified, then handed to the converter
        registered for its type.

        Raises:
            ValidationError: Invalid URL
            ConfigError: MISSING_DEPENDENCY if no converter handles the type
            MarkdownError: Anything the converter raises
        """
        normalized = self._detector.normalize_url(url)
        url_type = self._detector.detect_type(normalized)

        converter = self.registry.get_converter(url_type)
        if converter is None:
            context = ErrorContext(normalized, "Converter lookup", self.name).with_info(
                f"No converter registered for {url_type}"
            )
            raise ConfigError(ConfigErrorKind.MISSING_DEPENDENCY, context)

        logger.info(f"Converting {normalized} as {url_type} with {converter.name}")
        return await converter.convert(normalized)

    async def convert(self, url: str) -> Markdown:
        """Alias of convert_url, so MarkdownDown can drive a BatchCoordinator."""
        return await self.convert_url(url)


def convert_url_blocking(url: str, config: MarkdownDownConfig | None = None, **kwargs: Any) -> Markdown:
    """
    Blocking conversion of a single URL.

    This is a convenience wrapper for sync code that can't use async/await.

    WARNING: Do not call from within an existing event loop (e.g., Jupyter,
    asyncio-based frameworks). Use the async MarkdownDown API instead.

    Args:
        url: The URL to convert
        config: Configuration (defaults if None)
        **kwargs: Top-level config sections used when config is None

    Example:
        markdown = convert_url_blocking("https://example.com")
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        raise RuntimeError(
            "convert_url_blocking() called from async context. Use 'async with MarkdownDown()' instead."
        )

    config = config or MarkdownDownConfig(**kwargs)

    async def _run() -> Markdown:
        async with MarkdownDown(config) as md:
            return await md.convert_url(url)

    return asyncio.run(_run())
