"""Navigation-driven page discovery."""

from __future__ import annotations

import logging
import re
from typing import Optional, Union

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from ..errors import LinkResolutionError
from ..models.document import PageRef, clamp_level
from .urls import host_of, is_document_link, resolve_url, strip_fragment, title_from_url

logger = logging.getLogger(__name__)

# Anchors inside menu, sidebar and table-of-contents regions, in priority order
NAV_LINK_SELECTORS = [
    "nav a[href]",
    ".sidebar a[href]",
    ".menu a[href]",
    ".navigation a[href]",
    ".toc a[href]",
    ".table-of-contents a[href]",
    ".nav-list a[href]",
    ".summary a[href]",  # GitBook
    ".sidebar-links a[href]",  # VuePress
    ".sidebar-nav a[href]",  # Docsify
]

# Containers at which the nesting-depth walk stops
NAV_ROOT_SELECTOR = (
    "nav, .sidebar, .menu, .navigation, .toc, .table-of-contents, .summary, .sidebar-links, .sidebar-nav"
)

_LEVEL_CLASS = re.compile(r"^(?:level|lvl|depth)-?(\d+)$")


class LinkDiscoverer:
    """
    Finds the pages of a documentation site from the seed page's navigation.

    Scans navigation regions for in-site links, assigns each a hierarchy
    level from its list nesting, and returns them deduplicated by absolute
    URL and stable-sorted by level.

    Example:
        discoverer = LinkDiscoverer()
        pages = discoverer.discover(soup, "https://docs.example.com/intro")
        for page in pages:
            print(page.level, page.title, page.url)
    """

    def __init__(
        self,
        nav_selectors: Optional[list[str]] = None,
        allowed_host: Optional[str] = None,
    ):
        """
        Initialize the discoverer.

        Args:
            nav_selectors: CSS selectors for navigation anchors (overrides defaults)
            allowed_host: Host that counts as in-site (default: the page's host)
        """
        self._nav_selectors = nav_selectors or NAV_LINK_SELECTORS
        self._allowed_host = allowed_host

    def discover(
        self,
        root: Union[BeautifulSoup, Tag, str],
        page_url: str,
        seen: Optional[set[str]] = None,
    ) -> list[PageRef]:
        """
        Discover the ordered, leveled page list.

        Args:
            root: Parsed seed page (or its raw HTML)
            page_url: URL of the seed page, used to resolve relative hrefs
            seen: Per-run set of already discovered URLs; updated in place

        Returns:
            PageRefs sorted by level, ties kept in discovery order. Empty if
            the page has no usable navigation.
        """
        if isinstance(root, str):
            root = BeautifulSoup(root, "html.parser")

        seen = seen if seen is not None else set()
        allowed_host = self._allowed_host or host_of(page_url)
        pages: list[PageRef] = []

        for selector in self._nav_selectors:
            try:
                anchors = root.select(selector)
            except SelectorSyntaxError as e:
                logger.warning(f"Ignoring invalid navigation selector {selector!r}: {e}")
                continue

            for anchor in anchors:
                href = anchor.get("href")
                if isinstance(href, list):
                    href = href[0] if href else None
                if not is_document_link(href, page_url, allowed_host):
                    continue

                try:
                    url = strip_fragment(resolve_url(href, page_url))
                except LinkResolutionError as e:
                    logger.debug(f"Skipping nav link: {e}")
                    continue

                if url in seen:
                    continue
                seen.add(url)

                pages.append(
                    PageRef(
                        url=url,
                        title=self._link_title(anchor, url),
                        level=self.link_level(anchor),
                        discovery_index=len(pages),
                    )
                )

        # Sort by level only; sorted() is stable so discovery order breaks ties
        pages = sorted(pages, key=lambda page: page.level)

        logger.info(f"Discovered {len(pages)} pages from {page_url}")
        return pages

    @staticmethod
    def link_level(anchor: Tag) -> int:
        """
        Compute the hierarchy level of a navigation anchor.

        The level is the number of enclosing list items (``li`` or
        ``.nav-item``) between the anchor and its navigation root, at
        least 1. A link in a top-level ``li`` is level 1 and a link
        directly in the navigation root, outside any list, is level 1 too;
        levels count list nesting, they are not offset by one. Class hints
        on the anchor (``level-3``, ``sub``, ``subsub``) override the
        computed depth. The result is clamped to 1..6.
        """
        depth = 0
        for parent in anchor.parents:
            if isinstance(parent, BeautifulSoup):
                break
            if parent.name == "li" or "nav-item" in (parent.get("class") or []):
                depth += 1
            if parent.css.match(NAV_ROOT_SELECTOR):
                break

        level = max(1, depth)

        hinted = LinkDiscoverer._class_hint_level(anchor.get("class") or [])
        if hinted is not None:
            level = hinted

        return clamp_level(level)

    @staticmethod
    def _class_hint_level(classes: list[str]) -> Optional[int]:
        """Level named by class hints, or None if there are none."""
        tokens = [c.lower() for c in classes]
        for token in tokens:
            match = _LEVEL_CLASS.match(token)
            if match:
                return int(match.group(1))
        if any("subsub" in token for token in tokens):
            return 3
        if any(token == "sub" or token.startswith("sub-") for token in tokens):
            return 2
        return None

    @staticmethod
    def _link_title(anchor: Tag, url: str) -> str:
        """Visible link text, else its title attribute, else a title from the URL."""
        text = " ".join(anchor.get_text(" ", strip=True).split())
        if text:
            return text
        title_attr = anchor.get("title")
        if isinstance(title_attr, str) and title_attr.strip():
            return title_attr.strip()
        return title_from_url(url)
