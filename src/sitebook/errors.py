"""Exception hierarchy for sitebook.

Only ``NoPagesDiscoveredError`` ends a run. The others are raised at page or
image granularity and turned into placeholder records where they occur.
"""

from __future__ import annotations

from typing import Optional

from .models.document import ImageFailureKind


class SitebookError(Exception):
    """Base class for all sitebook errors."""


class LinkResolutionError(SitebookError):
    """An href could not be resolved to an absolute URL."""

    def __init__(self, href: str, base_url: str, reason: str = "") -> None:
        self.href = href
        self.base_url = base_url
        message = f"Cannot resolve {href!r} against {base_url}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class FetchError(SitebookError):
    """A page or binary could not be retrieved."""

    def __init__(
        self,
        url: str,
        message: str,
        status_code: Optional[int] = None,
        timed_out: bool = False,
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.timed_out = timed_out
        super().__init__(message)


class ParseError(SitebookError):
    """Markup could not be parsed or its content extracted."""

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(message)


class ImageDownloadError(SitebookError):
    """An image download failed; ``kind`` is the heuristic classification."""

    def __init__(
        self,
        url: str,
        message: str,
        kind: ImageFailureKind = ImageFailureKind.OTHER,
        status_code: Optional[int] = None,
    ) -> None:
        self.url = url
        self.kind = kind
        self.status_code = status_code
        super().__init__(message)


class NoPagesDiscoveredError(SitebookError):
    """The seed page's navigation yielded no pages to fetch."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"No pages discovered from {url}; check that the page has a navigation menu or sidebar")
