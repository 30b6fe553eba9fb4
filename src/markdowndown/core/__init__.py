"""Top-level conversion API."""

from .markdowndown import MarkdownDown, convert_url_blocking

__all__ = ["MarkdownDown", "convert_url_blocking"]
