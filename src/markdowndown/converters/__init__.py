"""Converters and the UrlType -> Converter registry."""

from .base import Converter, ConverterRegistry, build_default_registry
from .github import GitHubIssueConverter, GitHubResource, render_issue
from .google_docs import GoogleDocsConverter
from .html import HtmlConverter
from .office365 import DocumentType, Office365Converter

__all__ = [
    "Converter",
    "ConverterRegistry",
    "DocumentType",
    "GitHubIssueConverter",
    "GitHubResource",
    "GoogleDocsConverter",
    "HtmlConverter",
    "Office365Converter",
    "build_default_registry",
    "render_issue",
]
