"""Core value types: URL type tags and validated Markdown."""

from __future__ import annotations

from enum import Enum

from ..errors import ContentError, ContentErrorKind, ErrorContext


class UrlType(str, Enum):
    """Content-source classification used to route a URL to its converter."""

    HTML = "html"
    GOOGLE_DOCS = "google_docs"
    OFFICE365 = "office365"
    GITHUB_ISSUE = "github_issue"

    @property
    def display_name(self) -> str:
        """Human-readable name (e.g. 'GoogleDocs')."""
        return _DISPLAY_NAMES[self]

    def __str__(self) -> str:
        return self.display_name


_DISPLAY_NAMES = {
    UrlType.HTML: "Html",
    UrlType.GOOGLE_DOCS: "GoogleDocs",
    UrlType.OFFICE365: "Office365",
    UrlType.GITHUB_ISSUE: "GitHubIssue",
}


class Markdown(str):
    """
    Validated, non-empty Markdown text.

    Markdown is a plain ``str`` subclass so it can be written, printed and
    compared directly. Use ``Markdown.new()`` to build one with validation.

    Example:
        markdown = Markdown.new("# Title\\n\\nBody")
        print(markdown.content_only())
    """

    FRONTMATTER_DELIMITER = "---"

    @classmethod
    def new(cls, text: str, url: str = "", source_component: str = "Markdown") -> Markdown:
        """
        Create Markdown, rejecting empty or whitespace-only text.

        Args:
            text: Markdown text
            url: Source URL, used for error context
            source_component: Component creating the value, used for error context

        Raises:
            ContentError: If the text is empty after stripping whitespace
        """
        if not text or not text.strip():
            context = ErrorContext(url, "Markdown validation", source_component).with_info(
                "Markdown content cannot be empty or whitespace-only"
            )
            raise ContentError(ContentErrorKind.EMPTY_CONTENT, context)
        return cls(text)

    def _split_frontmatter(self) -> tuple[str | None, str]:
        if not self.startswith(self.FRONTMATTER_DELIMITER + "\n"):
            return None, str(self)
        end = self.find("\n" + self.FRONTMATTER_DELIMITER, len(self.FRONTMATTER_DELIMITER))
        if end == -1:
            return None, str(self)
        closing = end + len(self.FRONTMATTER_DELIMITER) + 1
        return str(self[:closing]) + "\n", str(self[closing:]).lstrip("\n")

    def frontmatter(self) -> str | None:
        """Return the leading YAML frontmatter block (with delimiters), if any."""
        return self._split_frontmatter()[0]

    def content_only(self) -> str:
        """Return the Markdown body without frontmatter."""
        return self._split_frontmatter()[1]
