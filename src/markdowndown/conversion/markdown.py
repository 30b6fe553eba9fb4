"""HTML to Markdown conversion and frontmatter generation."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urljoin

import html2text
import yaml

logger = logging.getLogger(__name__)


def collapse_blank_lines(markdown: str, max_consecutive: int = 2) -> str:
    """
    Limit runs of blank lines and strip trailing whitespace on each line.

    Args:
        markdown: Markdown text
        max_consecutive: Maximum number of consecutive blank lines kept
    """
    lines = [line.rstrip() for line in markdown.replace("\r\n", "\n").split("\n")]
    result: list[str] = []
    blank_run = 0
    for line in lines:
        if line:
            blank_run = 0
        else:
            blank_run += 1
            if blank_run > max_consecutive:
                continue
        result.append(line)
    return "\n".join(result).strip()


class HtmlToMarkdown:
    """
    Converts HTML content to clean Markdown.

    Uses html2text with settings that keep links inline and lines unwrapped.

    Example:
        converter = HtmlToMarkdown()
        markdown = converter.convert(html_string, "https://example.com/page")
    """

    def __init__(
        self,
        body_width: int = 0,
        inline_links: bool = True,
        ignore_images: bool = False,
        ignore_tables: bool = False,
        max_consecutive_blank_lines: int = 2,
    ):
        """
        Initialize the Markdown converter.

        Args:
            body_width: Max line width (0 = no wrapping)
            inline_links: Use inline [text](url) vs reference style
            ignore_images: Skip image conversion
            ignore_tables: Skip table conversion
            max_consecutive_blank_lines: Longer runs of blank lines are collapsed
        """
        self._max_blank_lines = max_consecutive_blank_lines

        self._converter = html2text.HTML2Text()
        self._converter.body_width = body_width

        # Link handling
        self._converter.inline_links = inline_links
        self._converter.wrap_links = False
        self._converter.protect_links = False

        # Content handling
        self._converter.ignore_images = ignore_images
        self._converter.ignore_tables = ignore_tables
        self._converter.unicode_snob = True
        self._converter.escape_snob = True
        self._converter.mark_code = True
        self._converter.default_image_alt = ""
        self._converter.single_line_break = False

    def _fix_relative_links(self, markdown: str, base_url: str) -> str:
        """Ensure all links are absolute."""

        def replace_link(match: re.Match[str]) -> str:
            text = match.group(1)
            url = match.group(2)
            if url.startswith("<") and url.endswith(">"):
                url = url[1:-1]

            if url.startswith(("#", "http://", "https://", "mailto:", "tel:")):
                return f"[{text}]({url})"

            return f"[{text}]({urljoin(base_url, url)})"

        return re.sub(r"\[([^\]]+)\]\(([^)]+)\)", replace_link, markdown)

    def convert(self, html: str, url: str) -> str:
        """
        Convert HTML to Markdown.

        Args:
            html: HTML content string
            url: Source URL for resolving relative links

        Returns:
            Markdown string (empty if the HTML has no content)
        """
        self._converter.baseurl = url
        markdown = self._converter.handle(html)
        # html2text marks code blocks with [code]...[/code]
        markdown = markdown.replace("[code]", "```").replace("[/code]", "```")
        markdown = collapse_blank_lines(markdown, self._max_blank_lines)
        if not markdown:
            return ""
        return self._fix_relative_links(markdown, url) + "\n"


class FrontmatterBuilder:
    """
    Builds YAML frontmatter for Markdown documents.

    Every block carries source_url, exporter and date_downloaded; extra
    fields follow in insertion order.

    Example:
        builder = FrontmatterBuilder(exporter="markdowndown-html")
        frontmatter = builder.build(
            "https://example.com/page",
            title="Getting Started",
        )
    """

    def __init__(self, exporter: str = "markdowndown", extra_fields: dict[str, str] | None = None):
        """
        Args:
            exporter: Value of the exporter field
            extra_fields: Fields added to every block (e.g. from configuration)
        """
        self._exporter = exporter
        self._extra_fields = dict(extra_fields or {})

    def build(
        self,
        url: str,
        date_downloaded: datetime | None = None,
        **extra_fields: Any,
    ) -> str:
        """
        Build YAML frontmatter string.

        Args:
            url: Source URL
            date_downloaded: Download time (defaults to now, UTC)
            **extra_fields: Additional frontmatter fields; None values are skipped

        Returns:
            YAML frontmatter string (with --- delimiters)
        """
        date_downloaded = date_downloaded or datetime.now(timezone.utc)
        data: dict[str, Any] = {
            "source_url": url,
            "exporter": self._exporter,
            "date_downloaded": date_downloaded.isoformat(),
        }
        for key, value in {**extra_fields, **self._extra_fields}.items():
            if value is not None and key not in data:
                data[key] = value

        body = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
        return f"---\n{body}---\n"

    def combine(self, frontmatter: str, content: str) -> str:
        """Join a frontmatter block and Markdown content."""
        return f"{frontmatter}\n{content}"
