"""Tests for HTML extraction, Markdown conversion and frontmatter."""

from datetime import datetime, timezone

import yaml
from markdowndown.conversion import (
    FrontmatterBuilder,
    HtmlToMarkdown,
    MainContentExtractor,
    collapse_blank_lines,
)

LONG_TEXT = "This paragraph is long enough to count as the main content of the page. " * 3


class TestMainContentExtractor:
    """Tests for MainContentExtractor."""

    def test_extracts_from_article_tag(self):
        """Test extraction from article tag."""
        html = f"""
        <html><body>
            <div>Outside</div>
            <article><h1>Title</h1><p>{LONG_TEXT}</p></article>
        </body></html>
        """
        content = MainContentExtractor().extract(html, "https://example.com")

        assert "Title" in content
        assert "Outside" not in content

    def test_falls_back_to_body(self):
        """Test that short pages use the whole body."""
        html = "<html><body><h1>Hello</h1><p>World</p></body></html>"
        content = MainContentExtractor().extract(html, "https://example.com")

        assert "Hello" in content
        assert "World" in content

    def test_removes_navigation_and_scripts(self):
        """Test removal of page chrome."""
        html = """
        <html><body>
            <nav>Menu</nav><header>Site header</header>
            <p>Body text</p>
            <script>alert(1)</script>
            <footer>Copyright</footer>
        </body></html>
        """
        content = MainContentExtractor().extract(html, "https://example.com")

        assert "Body text" in content
        for removed in ("Menu", "Site header", "alert", "Copyright"):
            assert removed not in content

    def test_keeps_navigation_when_disabled(self):
        """Test that remove_navigation=False keeps nav elements."""
        html = "<html><body><nav>Menu</nav><p>Body text</p></body></html>"
        content = MainContentExtractor(remove_navigation=False).extract(html, "https://example.com")
        assert "Menu" in content

    def test_scripts_always_removed(self):
        """Test that scripts go even with every option off."""
        extractor = MainContentExtractor(remove_navigation=False, remove_sidebars=False, remove_ads=False)
        assert "script" in extractor.remove_selectors
        assert "nav" not in extractor.remove_selectors

    def test_resolves_relative_links(self):
        """Test that relative hrefs and srcs become absolute."""
        html = '<html><body><a href="/docs/page">Docs</a><img src="img/logo.png"></body></html>'
        content = MainContentExtractor().extract(html, "https://example.com/base/")

        assert 'href="https://example.com/docs/page"' in content
        assert 'src="https://example.com/base/img/logo.png"' in content

    def test_empty_page(self):
        """Test that a page with only chrome yields nothing."""
        html = "<html><body><nav>Menu</nav><script>x()</script></body></html>"
        assert MainContentExtractor().extract(html, "https://example.com") == ""

    def test_extract_title(self):
        """Test <title> extraction."""
        extractor = MainContentExtractor()
        assert extractor.extract_title("<html><head><title> My Page </title></head></html>") == "My Page"
        assert extractor.extract_title("<html><body>No title</body></html>") is None


class TestHtmlToMarkdown:
    """Tests for HtmlToMarkdown."""

    def test_converts_headings_and_paragraphs(self):
        """Test basic structure conversion."""
        markdown = HtmlToMarkdown().convert("<h1>Title</h1><p>Paragraph</p>", "https://example.com")

        assert markdown.startswith("# Title")
        assert "Paragraph" in markdown
        assert markdown.endswith("\n")

    def test_inline_absolute_links(self):
        """Test that links are inline and absolute."""
        markdown = HtmlToMarkdown().convert('<p><a href="/about">About</a></p>', "https://example.com/x")
        assert "[About](https://example.com/about)" in markdown

    def test_absolute_links_unchanged(self):
        """Test that already absolute links are left alone."""
        markdown = HtmlToMarkdown().convert(
            '<p><a href="https://other.org/docs">Docs</a> and <a href="#top">top</a></p>',
            "https://example.com/x",
        )

        assert "[Docs](https://other.org/docs)" in markdown
        assert "[top](#top)" in markdown
        assert "<" not in markdown

    def test_angle_bracket_targets_unwrapped(self):
        """Test that <url> link targets are resolved and unwrapped."""
        converter = HtmlToMarkdown()
        fixed = converter._fix_relative_links(
            "[a](</about>) [b](<https://example.com/docs>)", "https://example.com/x"
        )

        assert fixed == "[a](https://example.com/about) [b](https://example.com/docs)"

    def test_code_blocks_fenced(self):
        """Test that preformatted code becomes a fenced block."""
        markdown = HtmlToMarkdown().convert("<pre><code>x = 1</code></pre>", "https://example.com")

        assert "```" in markdown
        assert "[code]" not in markdown

    def test_empty_html(self):
        """Test that empty input gives an empty string."""
        assert HtmlToMarkdown().convert("", "https://example.com") == ""

    def test_blank_lines_collapsed(self):
        """Test the blank-line limit."""
        html = "<p>One</p><br><br><br><br><br><p>Two</p>"
        markdown = HtmlToMarkdown(max_consecutive_blank_lines=1).convert(html, "https://example.com")
        assert "\n\n\n" not in markdown


class TestCollapseBlankLines:
    """Tests for collapse_blank_lines()."""

    def test_limits_runs(self):
        """Test that long runs of blank lines are shortened."""
        assert collapse_blank_lines("a\n\n\n\n\nb", 2) == "a\n\n\nb"
        assert collapse_blank_lines("a\n\n\n\n\nb", 1) == "a\n\nb"

    def test_strips_trailing_whitespace(self):
        """Test per-line and document trimming."""
        assert collapse_blank_lines("\na  \nb\t\n\n") == "a\nb"

    def test_normalizes_crlf(self):
        """Test Windows line endings."""
        assert collapse_blank_lines("a\r\nb") == "a\nb"


class TestFrontmatterBuilder:
    """Tests for FrontmatterBuilder."""

    def _parse(self, frontmatter):
        assert frontmatter.startswith("---\n")
        assert frontmatter.endswith("---\n")
        return yaml.safe_load(frontmatter[4:-4])

    def test_required_fields_first(self):
        """Test that the standard fields lead the block."""
        date = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
        frontmatter = FrontmatterBuilder(exporter="markdowndown-test").build(
            "https://example.com/page", date_downloaded=date, title="Page"
        )
        data = self._parse(frontmatter)

        assert list(data)[:3] == ["source_url", "exporter", "date_downloaded"]
        assert data["source_url"] == "https://example.com/page"
        assert data["exporter"] == "markdowndown-test"
        assert data["date_downloaded"] == "2024-01-15T10:30:00+00:00"
        assert data["title"] == "Page"

    def test_none_values_skipped(self):
        """Test that None fields are omitted."""
        data = self._parse(FrontmatterBuilder().build("https://example.com", title=None))
        assert "title" not in data

    def test_configured_extra_fields(self):
        """Test fields added to every block."""
        builder = FrontmatterBuilder(extra_fields={"project": "docs"})
        data = self._parse(builder.build("https://example.com"))
        assert data["project"] == "docs"

    def test_extra_fields_cannot_replace_required(self):
        """Test that source_url cannot be overridden."""
        builder = FrontmatterBuilder(extra_fields={"source_url": "https://other.example"})
        data = self._parse(builder.build("https://example.com"))
        assert data["source_url"] == "https://example.com"

    def test_special_characters_are_escaped(self):
        """Test that YAML-significant characters survive a round trip."""
        data = self._parse(FrontmatterBuilder().build("https://example.com", title='Colon: "quoted" # hash'))
        assert data["title"] == 'Colon: "quoted" # hash'

    def test_combine(self):
        """Test joining frontmatter and content."""
        builder = FrontmatterBuilder()
        assert builder.combine("---\na: b\n---\n", "# Body\n") == "---\na: b\n---\n\n# Body\n"
