"""Concurrency control for batch conversion."""

from .batch import BatchCoordinator, output_filename, read_url_file, write_markdown

__all__ = [
    "BatchCoordinator",
    "output_filename",
    "read_url_file",
    "write_markdown",
]
