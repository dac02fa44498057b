"""The capabilities sitebook needs from its host environment."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

from bs4 import BeautifulSoup

from ..http.protocols import HttpResponse
from ..models.document import Artifact


@dataclass
class SeedContext:
    """
    The page a run starts from: its URL, title and already-loaded markup.

    The parsed tree is built on first access and shared by discovery and
    by the seed page's own extraction.
    """

    url: str
    html: str
    title: str = ""
    _soup: Optional[BeautifulSoup] = field(default=None, repr=False, compare=False)

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.html, "html.parser")
        return self._soup

    @property
    def page_title(self) -> str:
        """Explicit title, else the document's ``<title>``."""
        if self.title:
            return self.title
        if self.soup.title and self.soup.title.string:
            return self.soup.title.string.strip()
        return ""


@runtime_checkable
class HostBridge(Protocol):
    """
    Protocol for the host environment a run executes in.

    The pipeline depends only on this interface. Fetch methods raise
    ``FetchError`` on failure; ``report_progress`` must never raise.

    Example implementation:
        class InMemoryHost:
            async def fetch_html(self, url: str) -> str:
                return PAGES[url]
            ...
    """

    async def fetch_html(self, url: str) -> str:
        """Best-effort direct retrieval of a page's HTML."""
        ...

    async def privileged_fetch_html(self, url: str) -> str:
        """Fallback retrieval with elevated cross-origin permission."""
        ...

    async def fetch_binary(self, url: str, timeout: Optional[float] = None) -> HttpResponse:
        """Retrieve binary content (images); returns only successful responses."""
        ...

    def report_progress(self, label: str, current: int, total: int) -> None:
        """Fire-and-forget progress sink."""
        ...

    async def deliver_artifact(self, artifact: Artifact) -> None:
        """Hand a finished artifact to saving/display logic."""
        ...
