"""Image reference collection across a run's pages."""

import logging
from typing import Optional, Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from ..models.document import DocumentSection, ImageReference

logger = logging.getLogger(__name__)

CONTEXT_CHARS = 50


def _image_source(img: Tag) -> Optional[str]:
    for attr in ("src", "data-src"):
        value = img.get(attr)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _context_snippet(img: Tag, limit: int = CONTEXT_CHARS) -> str:
    """Text surrounding an image: the nearest ancestor with any, shortened."""
    for parent in img.parents:
        if isinstance(parent, BeautifulSoup):
            break
        text = " ".join(parent.get_text(" ", strip=True).split())
        if text:
            return text if len(text) <= limit else text[:limit].rstrip() + "..."
    return ""


def collect_page_images(
    html: Union[str, BeautifulSoup],
    page_url: str,
    page_title: str,
) -> list[ImageReference]:
    """
    Find every remote image referenced by one page's content.

    Sources are resolved against the page URL; inline ``data:`` images are
    skipped.
    """
    soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html, "html.parser")
    refs: list[ImageReference] = []

    for img in soup.find_all("img"):
        src = _image_source(img)
        if not src or src.lower().startswith("data:"):
            continue

        url = urljoin(page_url, src)
        if not url.lower().startswith(("http://", "https://")):
            logger.debug(f"Skipping non-http image source {src!r} on {page_url}")
            continue

        alt = img.get("alt")
        refs.append(
            ImageReference(
                url=url,
                alt_text=alt.strip() if isinstance(alt, str) else "",
                context=_context_snippet(img),
                page_title=page_title,
                page_url=page_url,
            )
        )

    return refs


class ImageCollector:
    """
    Merges the image references of all pages into one map keyed by URL.

    Every URL appears once, in first-seen order, with every place it was
    referenced from.

    Example:
        collector = ImageCollector()
        unique = collector.collect(sections)
        print(f"{len(unique)} unique images")
    """

    def collect(self, sections: list[DocumentSection]) -> dict[str, list[ImageReference]]:
        unique: dict[str, list[ImageReference]] = {}
        total = 0

        for section in sections:
            if section.content.is_placeholder:
                continue
            for ref in collect_page_images(section.content.html, section.ref.url, section.title):
                unique.setdefault(ref.url, []).append(ref)
                total += 1

        logger.info(f"Collected {total} image references ({len(unique)} unique)")
        return unique
