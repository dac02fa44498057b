"""Shared fixtures: an in-memory host and documentation page builders."""

from typing import Optional, Union

import pytest

from sitebook.errors import FetchError
from sitebook.http.protocols import HttpResponse

FILLER = (
    "This paragraph pads the page so the content container is clearly the longest "
    "block of text on the page, the way real documentation pages are."
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeHost:
    """
    HostBridge backed by dictionaries.

    ``pages`` answers the direct fetch, ``privileged_pages`` the privileged
    one. An int value is an HTTP error status; a missing URL is a 404.
    ``images`` maps URL to (content type, bytes) or an int status.
    """

    def __init__(
        self,
        pages: Optional[dict[str, Union[str, int]]] = None,
        privileged_pages: Optional[dict[str, Union[str, int]]] = None,
        images: Optional[dict[str, Union[tuple[str, bytes], int]]] = None,
    ):
        self.pages = dict(pages or {})
        self.privileged_pages = dict(privileged_pages or {})
        self.images = dict(images or {})
        self.html_calls: list[str] = []
        self.privileged_calls: list[str] = []
        self.binary_calls: list[str] = []
        self.progress: list[tuple[str, int, int]] = []
        self.delivered: list = []

    @staticmethod
    def _lookup(table: dict, url: str):
        value = table.get(url, 404)
        if isinstance(value, int):
            raise FetchError(url, f"HTTP {value} for {url}", status_code=value)
        return value

    async def fetch_html(self, url: str) -> str:
        self.html_calls.append(url)
        return self._lookup(self.pages, url)

    async def privileged_fetch_html(self, url: str) -> str:
        self.privileged_calls.append(url)
        return self._lookup(self.privileged_pages, url)

    async def fetch_binary(self, url: str, timeout: Optional[float] = None) -> HttpResponse:
        self.binary_calls.append(url)
        content_type, data = self._lookup(self.images, url)
        return HttpResponse(status_code=200, content=data, content_type=content_type, headers={}, url=url)

    def report_progress(self, label: str, current: int, total: int) -> None:
        self.progress.append((label, current, total))

    async def deliver_artifact(self, artifact) -> None:
        self.delivered.append(artifact)


def build_page(title: str, body: str = "", nav: str = "") -> str:
    """A documentation page with a navigation block and a <main> content area."""
    return (
        "<!DOCTYPE html><html><head>"
        f"<title>{title}</title>"
        "</head><body>"
        f"{nav}"
        f"<main><h1>{title}</h1>{body}<p>{FILLER}</p></main>"
        "</body></html>"
    )


def build_nav(links: list[tuple[str, str]]) -> str:
    """A flat sidebar listing (href, text) pairs."""
    items = "".join(f'<li><a href="{href}">{text}</a></li>' for href, text in links)
    return f'<nav class="sidebar"><ul>{items}</ul></nav>'


@pytest.fixture
def fake_host():
    """Factory for FakeHost instances."""
    return FakeHost


@pytest.fixture
def page():
    """Builder for documentation page HTML."""
    return build_page


@pytest.fixture
def nav():
    """Builder for flat navigation HTML."""
    return build_nav


@pytest.fixture
def png_bytes():
    """Bytes with a PNG signature."""
    return PNG_BYTES
