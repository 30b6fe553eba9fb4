"""Generic HTML page converter."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from .. import __version__
from ..conversion import (
    ContentExtractor,
    FrontmatterBuilder,
    HtmlToMarkdown,
    MainContentExtractor,
    MarkdownConverter,
)
from ..errors import ContentError, ContentErrorKind, ErrorContext
from ..models.config import HtmlConfig, OutputConfig
from ..models.types import Markdown

if TYPE_CHECKING:
    from ..http.protocols import HttpClient

logger = logging.getLogger(__name__)


class HtmlConverter:
    """
    Converts a web page to Markdown.

    Fetch -> main-content extraction -> html2text -> frontmatter.
    Parsing runs in a worker thread to keep the event loop free.

    Example:
        converter = HtmlConverter(client)
        markdown = await converter.convert("https://example.com/article")
    """

    name = "HTML"

    ACCEPT = "text/html,application/xhtml+xml"

    def __init__(
        self,
        client: HttpClient,
        html_config: HtmlConfig | None = None,
        output_config: OutputConfig | None = None,
        exporter: str | None = None,
        extractor: ContentExtractor | None = None,
        markdown_converter: MarkdownConverter | None = None,
    ) -> None:
        """
        Args:
            client: Shared HTTP client
            html_config: Which page chrome to strip (ignored when extractor is given)
            output_config: Frontmatter and blank-line settings
            exporter: Value of the frontmatter exporter field
            extractor: Custom main-content extractor
            markdown_converter: Custom HTML-to-Markdown converter
        """
        html_config = html_config or HtmlConfig()
        self._client = client
        self._output = output_config or OutputConfig()
        self._extractor: ContentExtractor = extractor or MainContentExtractor(
            remove_navigation=html_config.remove_navigation,
            remove_sidebars=html_config.remove_sidebars,
            remove_ads=html_config.remove_ads,
        )
        self._markdown: MarkdownConverter = markdown_converter or HtmlToMarkdown(
            max_consecutive_blank_lines=self._output.max_consecutive_blank_lines
        )
        self._frontmatter = FrontmatterBuilder(
            exporter=exporter or f"markdowndown-html-{__version__}",
            extra_fields=self._output.custom_frontmatter_fields,
        )

    def _render(self, html: str, url: str) -> tuple[str, str | None]:
        """Extract and convert; CPU-bound, called off the event loop."""
        title = self._extractor.extract_title(html)
        content = self._extractor.extract(html, url)
        if not content:
            return "", title
        return self._markdown.convert(content, url), title

    async def convert_html(self, html: str, url: str, **frontmatter_fields: Any) -> Markdown:
        """
        Convert already-fetched HTML to Markdown.

        Raises:
            ContentError: EMPTY_CONTENT if nothing usable remains after extraction
        """
        content, title = await asyncio.to_thread(self._render, html, url)
        if not content.strip():
            context = ErrorContext(url, "HTML conversion", self.name).with_info(
                "No content left after removing page chrome"
            )
            raise ContentError(ContentErrorKind.EMPTY_CONTENT, context)

        if not self._output.include_frontmatter:
            return Markdown.new(content, url, self.name)

        fields: dict[str, Any] = {"conversion_type": "html", "title": title}
        fields.update(frontmatter_fields)
        frontmatter = self._frontmatter.build(url, **fields)
        return Markdown.new(self._frontmatter.combine(frontmatter, content), url, self.name)

    async def convert(self, url: str) -> Markdown:
        """Fetch a page and convert it to Markdown."""
        html = await self._client.get_text_with_headers(url, {"Accept": self.ACCEPT})
        logger.debug(f"Converting {len(html)} chars of HTML from {url}")
        return await self.convert_html(html, url)
