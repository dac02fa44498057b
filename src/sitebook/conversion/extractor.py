"""Main content extraction from HTML pages."""

import logging
import re
from typing import Optional, Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from ..discovery.urls import title_from_url
from ..errors import ParseError
from ..models.document import UNTITLED_PAGE, PageContent
from .codeblocks import normalize_code_blocks

logger = logging.getLogger(__name__)

# Elements that typically contain main content, in priority order
CONTENT_SELECTORS = [
    ".markdown-body",
    ".content",
    "main",
    "article",
    ".main-content",
    ".doc-content",
    ".post-content",
    "#content",
    ".container .row",
    ".container",
    ".book-body .page-inner",  # GitBook
    ".theme-container .page",  # VuePress
    "#main",  # Docsify
]

# Elements removed from the chosen content
REMOVE_SELECTORS = [
    "script",
    "style",
    "noscript",
    ".ads",
    ".advertisement",
    ".social-share",
    ".comments",
    ".popup",
    ".modal",
    ".overlay",
    ".sidebar-toggle",
    ".search-box",
    ".edit-page",
]

# Elements that are meaningful without children or text
VOID_CONTENT_TAGS = frozenset({"img", "br", "hr", "input"})

MIN_SELECTOR_TEXT = 100
MIN_DIV_TEXT = 200

_UNRESOLVED_PREFIXES = ("#", "data:", "mailto:", "javascript:", "tel:")


def clean_title(title: Optional[str]) -> str:
    """Strip markdown-remnant ``#`` characters from a title."""
    if not title:
        return UNTITLED_PAGE
    title = re.sub(r"^#+\s*", "", title)
    title = re.sub(r"\s*#+\s*$", "", title)
    return title.strip() or UNTITLED_PAGE


def _text_length(element: Union[BeautifulSoup, Tag]) -> int:
    return len(element.get_text().strip())


class MainContentExtractor:
    """
    Extracts main content from HTML documents.

    Picks the content container with the most text, removes ads, widgets
    and empty elements, normalizes code blocks and makes image and link
    references absolute.

    Example:
        extractor = MainContentExtractor()
        content = extractor.extract(html, "https://docs.example.com/page")
        print(content.title, content.text_length)
    """

    def __init__(
        self,
        content_selectors: Optional[list[str]] = None,
        remove_selectors: Optional[list[str]] = None,
        number_code_lines: bool = True,
    ):
        """
        Initialize the content extractor.

        Args:
            content_selectors: CSS selectors for main content (overrides defaults)
            remove_selectors: CSS selectors for elements to remove (extends defaults)
            number_code_lines: Whether to renumber code block lines
        """
        self._content_selectors = content_selectors or CONTENT_SELECTORS
        self._remove_selectors = list(REMOVE_SELECTORS)
        if remove_selectors:
            self._remove_selectors.extend(remove_selectors)
        self._number_code_lines = number_code_lines

    def _parse_html(self, html: Union[str, bytes]) -> BeautifulSoup:
        """Parse HTML text or bytes to BeautifulSoup."""
        return BeautifulSoup(html, "html.parser")

    def _resolve_references(self, soup: BeautifulSoup, base_url: str) -> None:
        """
        Convert relative image sources and link targets to absolute URLs.

        A lazy-loaded image (``data-src`` with no ``src`` or an inline
        placeholder ``src``) gets its ``data-src`` promoted to ``src``.
        """
        for tag in soup.find_all("img"):
            lazy = tag.get("data-src")
            if isinstance(lazy, str) and lazy.strip():
                src = tag.get("src")
                if not isinstance(src, str) or not src.strip() or src.strip().lower().startswith("data:"):
                    tag["src"] = lazy
            for attr in ("src", "data-src"):
                value = tag.get(attr)
                if not isinstance(value, str):
                    continue
                value = value.strip()
                if value and not value.lower().startswith(_UNRESOLVED_PREFIXES):
                    tag[attr] = urljoin(base_url, value)

        for tag in soup.find_all("a", href=True):
            href = tag["href"].strip()
            if href and not href.lower().startswith(_UNRESOLVED_PREFIXES):
                tag["href"] = urljoin(base_url, href)

    def _find_main_content(self, soup: BeautifulSoup) -> Union[BeautifulSoup, Tag]:
        """Find the main content element, preferring the longest selector match."""
        best: Optional[Tag] = None
        best_length = 0

        for selector in self._content_selectors:
            for element in soup.select(selector):
                length = _text_length(element)
                if length > best_length and length > MIN_SELECTOR_TEXT:
                    best, best_length = element, length

        if best is not None:
            return best

        # Fallback: largest text block
        for div in soup.find_all("div"):
            length = _text_length(div)
            if length > best_length and length > MIN_DIV_TEXT:
                best, best_length = div, length

        if best is not None:
            return best

        body = soup.find("body")
        if isinstance(body, Tag):
            logger.debug("No content container found, using <body>")
            return body

        return soup

    def _remove_unwanted(self, element: Union[BeautifulSoup, Tag]) -> None:
        """Remove scripts, ads, popups and other unwanted elements."""
        for selector in self._remove_selectors:
            for el in element.select(selector):
                if not el.decomposed:
                    el.decompose()

    def _remove_empty(self, root: Tag) -> None:
        """Remove childless, textless elements (except img, br, hr, input)."""
        for el in root.find_all(True):
            if el is root or el.decomposed:
                continue
            if el.name in VOID_CONTENT_TAGS:
                continue
            if el.find(True) is None and not el.get_text().strip():
                el.decompose()

    def _clean_headings(self, root: Union[BeautifulSoup, Tag]) -> None:
        """Strip leftover ``#`` markers from headings and leaf elements."""
        for heading in root.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
            text = heading.get_text()
            if not text:
                continue
            cleaned = re.sub(r"^#+\s*", "", text)
            cleaned = re.sub(r"\s*#+\s*$", "", cleaned).strip()
            if cleaned != text:
                heading.string = cleaned

        for el in root.find_all(True):
            if el.decomposed or el.find(True) is not None:
                continue
            if el.name in ("pre", "code") or el.find_parent(["pre", "code"]):
                continue
            text = el.get_text()
            if "#" not in text:
                continue
            cleaned = re.sub(r"^#+\s+", "", text)
            cleaned = re.sub(r"\s+#+\s*$", "", cleaned)
            if cleaned != text:
                el.string = cleaned

    def _collect_styles(self, soup: BeautifulSoup, base_url: str) -> str:
        """Collect inline style blocks and import rules for external stylesheets."""
        parts: list[str] = []

        for style in soup.find_all("style"):
            css = style.get_text()
            if css and "@import" not in css:
                parts.append(css)

        for link in soup.find_all("link", href=True):
            rel = link.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            if "stylesheet" not in [r.lower() for r in rel]:
                continue
            parts.append(f'@import url("{urljoin(base_url, link["href"].strip())}");')

        return "\n".join(parts)

    def _page_title(self, soup: BeautifulSoup, url: str) -> str:
        title_tag = soup.find("title")
        if isinstance(title_tag, Tag) and title_tag.get_text().strip():
            return clean_title(title_tag.get_text().strip())
        return clean_title(title_from_url(url))

    def extract(self, html: Union[str, bytes], url: str) -> PageContent:
        """
        Extract main content from HTML.

        Args:
            html: Raw HTML text or bytes
            url: Source URL for resolving relative references

        Returns:
            PageContent with the sanitized subtree, title, styles and text length

        Raises:
            ParseError: If the markup cannot be processed
        """
        try:
            soup = self._parse_html(html)
            self._resolve_references(soup, url)

            main_content = self._find_main_content(soup)

            # Work on a copy so the source tree stays intact
            content = BeautifulSoup(str(main_content), "html.parser")
            root = content.find(True)
            if not isinstance(root, Tag):
                logger.warning(f"Could not find main content for {url}")
                return PageContent(html="", title=self._page_title(soup, url), text_length=0)

            self._remove_unwanted(content)
            if self._number_code_lines:
                normalize_code_blocks(content)
            self._remove_empty(root)
            self._clean_headings(content)

            return PageContent(
                html=str(content),
                title=self._page_title(soup, url),
                styles=self._collect_styles(soup, url),
                text_length=_text_length(content),
            )
        except ParseError:
            raise
        except Exception as e:
            raise ParseError(url, f"Failed to extract content: {e}") from e
