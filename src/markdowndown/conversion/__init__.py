"""Content conversion for markdowndown (HTML to Markdown, frontmatter)."""

from .extractor import MainContentExtractor
from .markdown import FrontmatterBuilder, HtmlToMarkdown, collapse_blank_lines
from .protocols import ContentExtractor, MarkdownConverter

__all__ = [
    # Protocols
    "ContentExtractor",
    "MarkdownConverter",
    # Implementations
    "MainContentExtractor",
    "HtmlToMarkdown",
    "FrontmatterBuilder",
    "collapse_blank_lines",
]
