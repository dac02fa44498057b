"""Link validation and resolution for in-site document links."""

import logging
import posixpath
from typing import Optional
from urllib.parse import unquote, urljoin, urlparse, urlunparse

from ..errors import LinkResolutionError

logger = logging.getLogger(__name__)

# Schemes that never point at a document page
SKIP_PREFIXES = ("javascript:", "mailto:", "tel:", "data:")

# Extensions of files that are not HTML documents
NON_DOCUMENT_EXTENSIONS = frozenset(
    {
        ".pdf",
        ".jpg",
        ".jpeg",
        ".png",
        ".gif",
        ".svg",
        ".webp",
        ".ico",
        ".zip",
        ".rar",
        ".7z",
        ".tar",
        ".gz",
        ".tgz",
        ".mp3",
        ".mp4",
        ".webm",
        ".exe",
        ".dmg",
        ".css",
        ".js",
        ".json",
        ".xml",
    }
)


def strip_fragment(url: str) -> str:
    """Remove the ``#fragment`` part of a URL."""
    parsed = urlparse(url)
    return urlunparse(parsed._replace(fragment=""))


def resolve_url(href: str, base_url: str) -> str:
    """
    Resolve an href against a base URL.

    The result depends only on the two arguments, so resolving the same
    pair always yields the same URL.

    Args:
        href: Raw href attribute value
        base_url: URL of the page the href appears on

    Returns:
        Absolute URL

    Raises:
        LinkResolutionError: If the href is malformed (e.g. a broken IPv6 host)
    """
    href = href.strip()
    try:
        resolved = urljoin(base_url, href)
        # Accessing the port validates it
        urlparse(resolved).port
    except ValueError as e:
        raise LinkResolutionError(href, base_url, str(e)) from e
    return resolved


def host_of(url: str) -> str:
    """Lowercased host (netloc) of a URL."""
    return urlparse(url).netloc.lower()


def has_non_document_extension(url: str) -> bool:
    """True for links to images, archives and other non-HTML files."""
    path = urlparse(url).path
    ext = posixpath.splitext(path)[1].lower()
    return ext in NON_DOCUMENT_EXTENSIONS


def is_document_link(href: Optional[str], base_url: str, allowed_host: str) -> bool:
    """
    Decide whether an href points at another page of the same site.

    Rejects empty and anchor-only hrefs, non-page schemes, external hosts
    and links to non-document files.

    Args:
        href: Raw href attribute value
        base_url: URL of the page the href appears on
        allowed_host: Host that counts as in-site

    Returns:
        True if the link should be followed
    """
    if not href:
        return False

    href = href.strip()
    if not href or href.startswith("#"):
        return False

    if href.lower().startswith(SKIP_PREFIXES):
        return False

    try:
        resolved = resolve_url(href, base_url)
    except LinkResolutionError as e:
        logger.debug(f"Skipping link: {e}")
        return False

    parsed = urlparse(resolved)
    if parsed.scheme not in ("http", "https"):
        return False

    if parsed.netloc.lower() != allowed_host.lower():
        return False

    return not has_non_document_extension(resolved)


def title_from_url(url: str, default: str = "Untitled page") -> str:
    """
    Derive a page title from the last path segment of a URL.

    ``/guide/getting%20started.html`` becomes ``getting started``.
    """
    segments = [s for s in urlparse(url).path.split("/") if s]
    if not segments:
        return default
    stem = posixpath.splitext(segments[-1])[0]
    title = unquote(stem).strip()
    return title or default
