"""Google Docs converter using the public export endpoint."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING
from urllib.parse import parse_qs, urlsplit

from .. import __version__
from ..conversion import FrontmatterBuilder, HtmlToMarkdown, collapse_blank_lines
from ..errors import (
    AuthError,
    ContentError,
    ContentErrorKind,
    ErrorContext,
    MarkdownError,
    ValidationError,
    ValidationErrorKind,
)
from ..models.config import OutputConfig
from ..models.types import Markdown

if TYPE_CHECKING:
    from ..http.protocols import HttpClient

logger = logging.getLogger(__name__)

EXPORT_URL_TEMPLATE = "https://docs.google.com/document/d/{document_id}/export?format={format}"

# Tried in order; the first that yields valid content wins
EXPORT_FORMATS = ("md", "txt", "html")

EMPTY_DOCUMENT_PLACEHOLDER = "_[Empty document]_"

_DOCUMENT_ID = r"([A-Za-z0-9_-]+)"
_PATH_PATTERNS = (
    re.compile(rf"/document/d/{_DOCUMENT_ID}"),
    re.compile(rf"/file/d/{_DOCUMENT_ID}"),
)

# Lower-cased phrases that mark an error page served with a 200 status
ERROR_PAGE_MARKERS = (
    "sorry, the file you have requested does not exist",
    "access denied",
    "permission denied",
    "file not found",
    "error 404",
    "error 403",
)


def is_valid_export(content: str, export_format: str) -> bool:
    """Check that an export response is real content of the requested format."""
    lowered = content.lower()
    if any(marker in lowered for marker in ERROR_PAGE_MARKERS):
        return False

    stripped = lowered.lstrip()
    if export_format == "md":
        return not stripped.startswith(("<!doctype", "<html"))
    if export_format == "txt":
        return "<html" not in lowered and "<!doctype" not in lowered
    if export_format == "html":
        return "<html" in lowered or stripped.startswith("<!doctype")
    return True


class GoogleDocsConverter:
    """
    Converts a shared Google Docs document to Markdown.

    Accepted URL shapes:
        docs.google.com/document/d/{id}/...
        drive.google.com/file/d/{id}/...
        drive.google.com/open?id={id}

    The document is exported as Markdown, falling back to plain text and then
    HTML. Only documents shared publicly (or readable with the client's
    credentials) can be exported.
    """

    name = "Google Docs"

    def __init__(
        self,
        client: HttpClient,
        output_config: OutputConfig | None = None,
        export_formats: tuple[str, ...] = EXPORT_FORMATS,
    ) -> None:
        self._client = client
        self._output = output_config or OutputConfig()
        self._export_formats = export_formats
        self._html = HtmlToMarkdown(max_consecutive_blank_lines=self._output.max_consecutive_blank_lines)
        self._frontmatter = FrontmatterBuilder(
            exporter=f"markdowndown-googledocs-{__version__}",
            extra_fields=self._output.custom_frontmatter_fields,
        )

    def extract_document_id(self, url: str) -> str:
        """
        Pull the document id out of a Google Docs or Drive URL.

        Raises:
            ValidationError: INVALID_URL if no id can be found
        """
        parsed = urlsplit(url.strip())
        for pattern in _PATH_PATTERNS:
            match = pattern.search(parsed.path)
            if match:
                return match.group(1)

        if parsed.path.rstrip("/") == "/open":
            ids = parse_qs(parsed.query).get("id")
            if ids and re.fullmatch(_DOCUMENT_ID, ids[0]):
                return ids[0]

        context = ErrorContext(url, "Extract document id", self.name).with_info(
            "Expected /document/d/{id}, /file/d/{id} or open?id={id}"
        )
        raise ValidationError(ValidationErrorKind.INVALID_URL, context)

    def build_export_url(self, document_id: str, export_format: str) -> str:
        return EXPORT_URL_TEMPLATE.format(document_id=document_id, format=export_format)

    async def _fetch_with_fallback(self, url: str, document_id: str) -> tuple[str, str]:
        """Return (content, format) for the first export format that works."""
        last_error: MarkdownError | None = None

        for export_format in self._export_formats:
            export_url = self.build_export_url(document_id, export_format)
            try:
                content = await self._client.get_text(export_url)
            except AuthError:
                # Private documents fail the same way for every format
                raise
            except MarkdownError as e:
                logger.debug(f"Export as {export_format} failed for {document_id}: {e}")
                last_error = e
                continue

            if is_valid_export(content, export_format):
                return content, export_format
            logger.debug(f"Export as {export_format} returned an error page for {document_id}")

        if last_error is not None:
            raise last_error
        context = ErrorContext(url, "Export document", self.name).with_info(
            "All export formats failed to produce valid content"
        )
        raise ContentError(ContentErrorKind.PARSING_FAILED, context)

    async def _post_process(self, content: str, export_format: str, url: str) -> str:
        if export_format == "html":
            content = await asyncio.to_thread(self._html.convert, content, url)
        if not content.strip():
            return EMPTY_DOCUMENT_PLACEHOLDER
        return collapse_blank_lines(content, self._output.max_consecutive_blank_lines)

    async def convert(self, url: str) -> Markdown:
        """Export a document and convert it to Markdown."""
        document_id = self.extract_document_id(url)

        if "/export" in urlsplit(url).path:
            content = await self._client.get_text(url)
            export_format = "html" if is_valid_export(content, "html") else "md"
        else:
            content, export_format = await self._fetch_with_fallback(url, document_id)

        body = await self._post_process(content, export_format, url)
        logger.info(f"Exported Google Doc {document_id} as {export_format}")

        if not self._output.include_frontmatter:
            return Markdown.new(body, url, self.name)

        frontmatter = self._frontmatter.build(
            url,
            conversion_type="google_docs",
            document_id=document_id,
            export_format=export_format,
        )
        return Markdown.new(self._frontmatter.combine(frontmatter, body), url, self.name)
