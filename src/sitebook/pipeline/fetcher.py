"""Sequential, failure-tolerant page fetching."""

from __future__ import annotations

import asyncio
import html
import logging
from typing import Awaitable, Callable, Optional

from ..conversion.extractor import MainContentExtractor
from ..conversion.protocols import ContentExtractor
from ..discovery.urls import strip_fragment
from ..errors import ParseError
from ..host.protocols import HostBridge, SeedContext
from ..models.document import DocumentSection, PageContent
from ..models.events import EventType, ProgressEvent
from .context import EventEmitter, RunContext, emit_event

logger = logging.getLogger(__name__)

FETCH_FAILED_TITLE = "Page fetch failed"
PARSE_FAILED_TITLE = "Page parse failed"
EMPTY_CONTENT_MESSAGE = "This page's content could not be retrieved."


def fetch_failure_placeholder(url: str, error: Optional[BaseException]) -> PageContent:
    """Placeholder content for a page no strategy could retrieve."""
    reason = html.escape(str(error) if error else "unknown error")
    return PageContent(
        html=(
            '<div class="fetch-error">'
            f"<h3>{FETCH_FAILED_TITLE}</h3>"
            f"<p>URL: {html.escape(url)}</p>"
            f"<p>Error: {reason}</p>"
            "<p>Possible cause: the site blocks cross-origin requests, or a network problem.</p>"
            "</div>"
        ),
        title=FETCH_FAILED_TITLE,
        text_length=0,
    )


def parse_failure_placeholder(url: str, error: BaseException) -> PageContent:
    """Placeholder content for a page whose markup could not be processed."""
    return PageContent(
        html=(
            '<div class="parse-error">'
            f"<h3>{PARSE_FAILED_TITLE}</h3>"
            f"<p>URL: {html.escape(url)}</p>"
            f"<p>Error: {html.escape(str(error))}</p>"
            "</div>"
        ),
        title=PARSE_FAILED_TITLE,
        text_length=0,
    )


def empty_content_placeholder(title: str) -> PageContent:
    """Placeholder content for a page that was fetched but had no text."""
    return PageContent(html=f"<p>{EMPTY_CONTENT_MESSAGE}</p>", title=title, text_length=0)


class PageFetcher:
    """
    Fetches and extracts pages one at a time.

    Strategy chain per page:
    1. The seed page is read from the already-loaded markup
    2. Direct fetch through the host
    3. Privileged fetch through the host
    4. Placeholder content

    ``fetch`` never raises; every failure becomes placeholder content so each
    discovered page keeps a section.

    Example:
        fetcher = PageFetcher(host, page_delay=0.3)
        content = await fetcher.fetch("https://docs.example.com/setup")
        if content.is_placeholder:
            print("fetch failed")
    """

    def __init__(
        self,
        host: HostBridge,
        extractor: Optional[ContentExtractor] = None,
        page_delay: float = 0.3,
    ):
        """
        Initialize the fetcher.

        Args:
            host: Host environment supplying page HTML
            extractor: Main content extractor (default: MainContentExtractor)
            page_delay: Seconds to wait after each network fetch
        """
        self._host = host
        self._extractor = extractor or MainContentExtractor()
        self._page_delay = page_delay

    def _strategies(self) -> list[tuple[str, Callable[[str], Awaitable[str]]]]:
        return [
            ("direct", self._host.fetch_html),
            ("privileged", self._host.privileged_fetch_html),
        ]

    def _extract(self, raw_html: str, url: str) -> PageContent:
        try:
            content = self._extractor.extract(raw_html, url)
        except ParseError as e:
            logger.warning(f"Failed to parse {url}: {e}")
            return parse_failure_placeholder(url, e)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Unexpected error extracting {url}: {e}")
            return parse_failure_placeholder(url, e)

        if content.text_length == 0:
            logger.warning(f"No content extracted from {url}")
            return empty_content_placeholder(content.title)
        return content

    async def _retrieve(self, url: str) -> tuple[Optional[str], Optional[BaseException]]:
        """Run the network strategies in order; return (html, last error)."""
        last_error: Optional[BaseException] = None
        for name, strategy in self._strategies():
            try:
                raw_html = await strategy(url)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                last_error = e
                logger.warning(f"{name.capitalize()} fetch failed for {url}: {e}")
                continue
            logger.debug(f"Fetched {url} via {name} strategy ({len(raw_html)} chars)")
            return raw_html, None
        return None, last_error

    async def fetch(self, url: str, seed: Optional[SeedContext] = None) -> PageContent:
        """
        Fetch one page and extract its main content.

        Args:
            url: Absolute page URL
            seed: The run's seed page, served without a network round trip

        Returns:
            Extracted content, or placeholder content on any failure
        """
        if seed is not None and strip_fragment(url) == strip_fragment(seed.url):
            logger.debug(f"Using already loaded markup for seed page {url}")
            return self._extract(seed.html, url)

        raw_html, error = await self._retrieve(url)
        if raw_html is None:
            logger.warning(f"All fetch strategies failed for {url}")
            return fetch_failure_placeholder(url, error)
        return self._extract(raw_html, url)

    async def fetch_all(self, ctx: RunContext, emit: Optional[EventEmitter] = None) -> list[DocumentSection]:
        """
        Fetch every discovered page of a run, strictly one at a time.

        Sections are appended to ``ctx.sections`` in page order and the run's
        stats are updated as pages complete.
        """
        total = len(ctx.pages)

        for position, ref in enumerate(ctx.pages, start=1):
            self._host.report_progress(f"Fetching: {ref.title}", position, total)
            emit_event(
                emit,
                ProgressEvent(
                    type=EventType.FETCH_PROGRESS,
                    url=ref.url,
                    message=ref.title,
                    current=position,
                    total=total,
                ),
            )

            is_seed = strip_fragment(ref.url) == strip_fragment(ctx.seed.url)
            content = await self.fetch(ref.url, ctx.seed)
            ctx.sections.append(DocumentSection(ref=ref, content=content))

            if content.is_placeholder:
                ctx.stats.pages_failed += 1
                emit_event(
                    emit,
                    ProgressEvent(
                        type=EventType.FETCH_FAILED,
                        url=ref.url,
                        error=content.title,
                        current=position,
                        total=total,
                    ),
                )
            else:
                ctx.stats.pages_fetched += 1
                emit_event(
                    emit,
                    ProgressEvent(type=EventType.FETCH_COMPLETED, url=ref.url, current=position, total=total),
                )

            if not is_seed and self._page_delay > 0:
                await asyncio.sleep(self._page_delay)

        logger.info(f"Fetched {ctx.stats.pages_fetched}/{total} pages ({ctx.stats.pages_failed} failed)")
        return ctx.sections
