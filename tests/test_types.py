"""Tests for core value types."""

import pytest
from markdowndown.errors import ContentError, ContentErrorKind
from markdowndown.models.types import Markdown, UrlType


class TestUrlType:
    """Tests for UrlType."""

    def test_display_names(self):
        """Test the human-readable names."""
        assert str(UrlType.HTML) == "Html"
        assert str(UrlType.GOOGLE_DOCS) == "GoogleDocs"
        assert str(UrlType.OFFICE365) == "Office365"
        assert str(UrlType.GITHUB_ISSUE) == "GitHubIssue"

    def test_value_lookup(self):
        """Test construction from the serialized value."""
        assert UrlType("github_issue") is UrlType.GITHUB_ISSUE

    def test_hashable_as_dict_key(self):
        """Test that UrlType can key a mapping."""
        mapping = {UrlType.HTML: 1, UrlType.OFFICE365: 2}
        assert mapping[UrlType.OFFICE365] == 2


class TestMarkdown:
    """Tests for the Markdown value type."""

    def test_new_accepts_text(self):
        """Test that non-empty text is accepted unchanged."""
        markdown = Markdown.new("# Title\n\nBody")
        assert markdown == "# Title\n\nBody"
        assert isinstance(markdown, str)

    @pytest.mark.parametrize("text", ["", "   ", "\n\t\n"])
    def test_new_rejects_blank_text(self, text):
        """Test that empty or whitespace-only text is rejected."""
        with pytest.raises(ContentError) as exc_info:
            Markdown.new(text, url="https://example.com")

        assert exc_info.value.kind == ContentErrorKind.EMPTY_CONTENT
        assert exc_info.value.context.url == "https://example.com"

    def test_frontmatter_and_content(self):
        """Test splitting frontmatter from the body."""
        markdown = Markdown.new("---\nsource_url: https://example.com\n---\n\n# Title\n")

        assert markdown.frontmatter() == "---\nsource_url: https://example.com\n---\n"
        assert markdown.content_only() == "# Title\n"

    def test_no_frontmatter(self):
        """Test a document without frontmatter."""
        markdown = Markdown.new("# Title\n")

        assert markdown.frontmatter() is None
        assert markdown.content_only() == "# Title\n"

    def test_unterminated_frontmatter_is_content(self):
        """Test that an unclosed block is treated as content."""
        markdown = Markdown.new("---\nkey: value\n# Title\n")

        assert markdown.frontmatter() is None
        assert markdown.content_only() == str(markdown)
