"""Main content extraction from HTML pages."""

import logging
import re
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

# Elements that typically contain main content
CONTENT_SELECTORS = [
    "article",
    "main",
    '[role="main"]',
    ".content",
    ".main-content",
    ".post-content",
    ".article-content",
    ".markdown-body",
    "#content",
    "#main-content",
]

# Always removed
SCRIPT_SELECTORS = ["script", "style", "noscript", "iframe", "svg", "template"]

NAVIGATION_SELECTORS = [
    "nav",
    "header",
    "footer",
    ".nav",
    ".navbar",
    ".header",
    ".footer",
    ".menu",
    ".breadcrumb",
    '[role="navigation"]',
    '[role="banner"]',
    '[role="contentinfo"]',
]

SIDEBAR_SELECTORS = [
    "aside",
    ".sidebar",
    ".toc",
    ".table-of-contents",
    '[role="complementary"]',
]

AD_SELECTORS = [
    ".advertisement",
    ".ads",
    ".ad-banner",
    ".sponsored",
    ".social-share",
    ".cookie-banner",
    ".popup",
    ".newsletter-signup",
    ".related-posts",
]


class MainContentExtractor:
    """
    Extracts main content from HTML documents.

    Uses heuristics to find the main content area and removes
    navigation, sidebars, ads, and other non-content elements.

    Example:
        extractor = MainContentExtractor(remove_sidebars=False)
        content = extractor.extract(html, "https://example.com/page")
    """

    def __init__(
        self,
        remove_navigation: bool = True,
        remove_sidebars: bool = True,
        remove_ads: bool = True,
        content_selectors: Optional[list[str]] = None,
        min_content_length: int = 100,
    ):
        """
        Initialize the content extractor.

        Args:
            remove_navigation: Strip nav, header, footer and menu elements
            remove_sidebars: Strip aside and sidebar elements
            remove_ads: Strip ad, cookie-banner and popup elements
            content_selectors: CSS selectors for main content (overrides defaults)
            min_content_length: Minimum text length for a selector match to count
        """
        self._content_selectors = content_selectors or CONTENT_SELECTORS
        self._min_content_length = min_content_length

        self._remove_selectors = list(SCRIPT_SELECTORS)
        if remove_navigation:
            self._remove_selectors.extend(NAVIGATION_SELECTORS)
        if remove_sidebars:
            self._remove_selectors.extend(SIDEBAR_SELECTORS)
        if remove_ads:
            self._remove_selectors.extend(AD_SELECTORS)

    @property
    def remove_selectors(self) -> list[str]:
        return list(self._remove_selectors)

    def _find_main_content(self, soup: BeautifulSoup) -> Optional[Tag]:
        """Find the main content element using selectors."""
        for selector in self._content_selectors:
            element = soup.select_one(selector)
            if element and len(element.get_text(strip=True)) > self._min_content_length:
                return element

        body = soup.find("body")
        if isinstance(body, Tag):
            return body
        return None

    def _remove_unwanted(self, element: BeautifulSoup) -> None:
        """Remove navigation, ads, and other unwanted elements."""
        for selector in self._remove_selectors:
            for el in element.select(selector):
                el.decompose()

    def _resolve_links(self, element: BeautifulSoup, base_url: str) -> None:
        """Convert relative URLs to absolute URLs."""
        for tag in element.find_all("a", href=True):
            href = tag["href"]
            if href.startswith("#"):
                continue
            if not href.startswith(("http://", "https://", "//", "mailto:")):
                tag["href"] = urljoin(base_url, href)

        for tag in element.find_all(src=True):
            src = tag["src"]
            if not src.startswith(("http://", "https://", "//", "data:")):
                tag["src"] = urljoin(base_url, src)

    def extract_title(self, html: str) -> Optional[str]:
        """Return the stripped <title> text, if present and non-empty."""
        soup = BeautifulSoup(html, "html.parser")
        if soup.title and soup.title.string:
            title = soup.title.string.strip()
            return title or None
        return None

    def extract(self, html: str, url: str) -> str:
        """
        Extract main content from HTML.

        Args:
            html: HTML document text
            url: Source URL for resolving relative links

        Returns:
            Cleaned HTML content as string (empty if nothing usable was found)
        """
        soup = BeautifulSoup(html, "html.parser")

        main_content = self._find_main_content(soup)
        if main_content is None:
            # Fragments without <body> are used as-is
            main_content = soup

        content = BeautifulSoup(str(main_content), "html.parser")
        self._remove_unwanted(content)
        self._resolve_links(content, url)

        if not content.get_text(strip=True) and not content.find("img"):
            logger.debug(f"No text content found for {url}")
            return ""

        result = str(content).replace("\r\n", "\n").replace("\r", "\n")
        return re.sub(r"\n{3,}", "\n\n", result).strip()
