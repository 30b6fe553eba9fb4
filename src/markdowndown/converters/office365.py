"""Office 365 (SharePoint / OneDrive / Office Online) converter."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlsplit

from .. import __version__
from ..errors import ContentError, ContentErrorKind, ErrorContext
from ..models.config import HtmlConfig, OutputConfig
from ..models.types import Markdown
from .html import HtmlConverter

if TYPE_CHECKING:
    from ..http.protocols import HttpClient

logger = logging.getLogger(__name__)


class DocumentType(str, Enum):
    """Office document types recognised from the URL path."""

    WORD = "docx"
    POWERPOINT = "pptx"
    EXCEL = "xlsx"
    PDF = "pdf"
    UNKNOWN = "unknown"

    @classmethod
    def from_path(cls, path: str) -> DocumentType:
        """Detect the document type from a path's file extension."""
        name = unquote(path).rstrip("/").rsplit("/", 1)[-1]
        if "." not in name:
            return cls.UNKNOWN
        extension = name.rsplit(".", 1)[-1].lower()
        for member in cls:
            if member.value == extension:
                return member
        return cls.UNKNOWN


class Office365Converter:
    """
    Converts Office 365 links to Markdown.

    Links whose path names a .docx, .pptx, .xlsx or .pdf file are rejected as
    UNSUPPORTED_FORMAT since binary document conversion is not available.
    Anything else is fetched as a web page and converted like HTML. A
    configured token is sent as a Bearer credential.
    """

    name = "Office 365"

    def __init__(
        self,
        client: HttpClient,
        token: str | None = None,
        html_config: HtmlConfig | None = None,
        output_config: OutputConfig | None = None,
    ) -> None:
        self._client = client
        self._token = token.strip() if token and token.strip() else None
        self._html = HtmlConverter(
            client,
            html_config=html_config,
            output_config=output_config,
            exporter=f"markdowndown-office365-{__version__}",
        )

    def detect_document_type(self, url: str) -> DocumentType:
        return DocumentType.from_path(urlsplit(url).path)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": HtmlConverter.ACCEPT}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def convert(self, url: str) -> Markdown:
        """
        Fetch and convert an Office 365 page.

        Raises:
            ContentError: UNSUPPORTED_FORMAT for binary Office documents and PDFs
        """
        document_type = self.detect_document_type(url)
        if document_type != DocumentType.UNKNOWN:
            context = ErrorContext(url, "Office 365 conversion", self.name).with_info(
                f"Cannot convert .{document_type.value} documents"
            )
            raise ContentError(ContentErrorKind.UNSUPPORTED_FORMAT, context)

        html = await self._client.get_text_with_headers(url, self._headers())
        logger.debug(f"Converting Office 365 page {url}")
        return await self._html.convert_html(html, url, conversion_type="office365")
