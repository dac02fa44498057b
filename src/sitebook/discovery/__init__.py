"""Page discovery for sitebook (navigation scanning, link filtering)."""

from .navigation import NAV_LINK_SELECTORS, LinkDiscoverer
from .urls import (
    has_non_document_extension,
    host_of,
    is_document_link,
    resolve_url,
    strip_fragment,
    title_from_url,
)

__all__ = [
    "LinkDiscoverer",
    "NAV_LINK_SELECTORS",
    "has_non_document_extension",
    "host_of",
    "is_document_link",
    "resolve_url",
    "strip_fragment",
    "title_from_url",
]
