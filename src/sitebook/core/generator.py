"""Top-level generation API: discover, fetch, convert and package a site."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Literal, Optional

from ..assembly.composite import CompositeAssembler
from ..assembly.markdown import MarkdownAssembler
from ..assembly.toc import build_toc
from ..conversion.extractor import MainContentExtractor
from ..conversion.markdown import HtmlToMarkdown
from ..conversion.protocols import ContentExtractor, MarkdownConverter
from ..discovery.navigation import LinkDiscoverer
from ..errors import NoPagesDiscoveredError
from ..host.protocols import HostBridge, SeedContext
from ..images.collector import ImageCollector
from ..images.downloader import ImageDownloader
from ..models.config import SitebookConfig
from ..models.document import Artifact, CompositeDocument, Document, MarkdownBundle, PageRef
from ..models.events import EventType, ProgressEvent
from ..pipeline.context import EventEmitter, RunContext, emit_event
from ..pipeline.fetcher import PageFetcher

logger = logging.getLogger(__name__)

OutputFormat = Literal["markdown", "composite"]


@dataclass
class SitePreview:
    """What a run would cover, computed without fetching any page."""

    title: str
    url: str
    pages: list[PageRef] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)


class Generator:
    """
    Primary API: turns a documentation site into one portable document.

    Each ``generate_*`` call is one independent run with its own
    ``RunContext``: discovery from the seed page's navigation, sequential
    page fetching, image download, assembly and delivery to the host.

    Example:
        async with LocalHostBridge(config) as host:
            seed = await host.load_seed(config.url)
            generator = Generator(host, config)
            bundle = await generator.generate_markdown(seed)

        print(f"Stats: {bundle.stats.to_dict()}")
    """

    def __init__(
        self,
        host: HostBridge,
        config: Optional[SitebookConfig] = None,
        discoverer: Optional[LinkDiscoverer] = None,
        extractor: Optional[ContentExtractor] = None,
        converter: Optional[MarkdownConverter] = None,
        on_event: Optional[EventEmitter] = None,
    ):
        """
        Initialize the Generator.

        Args:
            host: Host environment (page and image fetching, progress, delivery)
            config: Run configuration (default: SitebookConfig())
            discoverer: Navigation link discoverer (default: from config)
            extractor: Main content extractor
            converter: HTML to Markdown converter
            on_event: Callback receiving ProgressEvents
        """
        self.config = config or SitebookConfig()
        self._host = host
        self._discoverer = discoverer or LinkDiscoverer(
            nav_selectors=self.config.crawl.nav_selectors,
            allowed_host=self.config.crawl.allowed_host,
        )
        self._extractor = extractor or MainContentExtractor()
        self._converter = converter or HtmlToMarkdown()
        self._on_event = on_event

    def _emit(self, event: ProgressEvent) -> None:
        emit_event(self._on_event, event)

    def discover(self, seed: SeedContext, ctx: Optional[RunContext] = None) -> list[PageRef]:
        """
        Discover the pages a run covers, honoring ``crawl.max_pages``.

        Args:
            seed: The page to start from
            ctx: Run context whose seen-URL set is used (default: a fresh one)
        """
        ctx = ctx or RunContext(seed=seed, config=self.config)
        pages = self._discoverer.discover(seed.soup, seed.url, seen=ctx.seen_urls)

        max_pages = self.config.crawl.max_pages
        if max_pages is not None and len(pages) > max_pages:
            logger.info(f"Limiting {len(pages)} discovered pages to {max_pages}")
            pages = pages[:max_pages]

        return pages

    def preview(self, seed: SeedContext) -> SitePreview:
        """Title, URL and page list of the site, without fetching anything."""
        ctx = RunContext(seed=seed, config=self.config)
        return SitePreview(title=ctx.title, url=seed.url, pages=self.discover(seed, ctx))

    async def _run(self, seed: SeedContext) -> tuple[RunContext, Document]:
        """Discover, fetch and download images; everything before assembly."""
        start = time.monotonic()
        ctx = RunContext(seed=seed, config=self.config)
        self._emit(ProgressEvent(type=EventType.STARTED, url=seed.url))

        ctx.pages = self.discover(seed, ctx)
        ctx.stats.pages_discovered = len(ctx.pages)
        if not ctx.pages:
            error = NoPagesDiscoveredError(seed.url)
            self._emit(ProgressEvent(type=EventType.FAILED, url=seed.url, error=str(error)))
            raise error

        self._emit(
            ProgressEvent(
                type=EventType.DISCOVERY_COMPLETE,
                message=f"Discovered {len(ctx.pages)} pages",
                total=len(ctx.pages),
            )
        )

        fetcher = PageFetcher(self._host, self._extractor, page_delay=self.config.crawl.page_delay)
        await fetcher.fetch_all(ctx, emit=self._on_event)

        if self.config.images.enabled:
            await self._download_images(ctx)

        ctx.stats.duration_seconds = time.monotonic() - start
        document = Document(
            title=ctx.title,
            sections=list(ctx.sections),
            toc=build_toc(ctx.sections),
            images=dict(ctx.images),
            failed_images=list(ctx.failed_images),
        )
        return ctx, document

    async def _download_images(self, ctx: RunContext) -> None:
        unique = ImageCollector().collect(ctx.sections)
        ctx.stats.images_total = len(unique)
        if not unique:
            return

        self._emit(ProgressEvent(type=EventType.IMAGES_STARTED, total=len(unique)))

        def on_batch(done: int, total: int) -> None:
            self._host.report_progress("Downloading images", done, total)
            self._emit(ProgressEvent(type=EventType.IMAGE_BATCH_COMPLETE, current=done, total=total))

        images = self.config.images
        downloader = ImageDownloader(
            self._host,
            batch_size=images.batch_size,
            batch_delay=images.batch_delay,
            max_image_size=images.max_image_size,
            timeout=images.timeout,
        )
        result = await downloader.download_all(unique, ctx.next_image_index, on_batch=on_batch)

        ctx.images.update(result.images)
        ctx.failed_images.extend(result.failed)
        ctx.stats.images_downloaded = len(result.images)
        ctx.stats.images_failed = len(result.failed)
        ctx.stats.bytes_downloaded += result.bytes_downloaded

    async def _deliver(self, artifact: Artifact) -> None:
        await self._host.deliver_artifact(artifact)
        self._emit(ProgressEvent(type=EventType.ARTIFACT_DELIVERED, message=artifact.filename))

    def _complete(self, ctx: RunContext, document: Document) -> None:
        self._emit(ProgressEvent(type=EventType.COMPLETED, message=f"{len(document.sections)} sections"))
        logger.info(
            f"Run complete: {ctx.stats.pages_fetched} pages fetched, {ctx.stats.pages_failed} failed, "
            f"{ctx.stats.images_downloaded} images downloaded, {ctx.stats.images_failed} failed"
        )

    async def generate(
        self,
        seed: SeedContext,
        formats: Optional[list[OutputFormat]] = None,
    ) -> list[Artifact]:
        """
        Run once and deliver the requested artifacts.

        All formats share one discovery, fetch and image pass.

        Args:
            seed: The page to start from
            formats: Artifacts to produce (default: from ``output.format``)

        Returns:
            The delivered artifacts, in the order requested

        Raises:
            NoPagesDiscoveredError: If the seed page's navigation has no pages
            ValueError: On an unknown format
        """
        if formats is None:
            fmt = self.config.output.format
            formats = ["markdown", "composite"] if fmt == "both" else [fmt]
        for fmt in formats:
            if fmt not in ("markdown", "composite"):
                raise ValueError(f"Unknown output format: {fmt}")

        ctx, document = await self._run(seed)

        artifacts: list[Artifact] = []
        for fmt in formats:
            artifact: Artifact
            if fmt == "markdown":
                artifact = MarkdownAssembler(self._converter).assemble(document, ctx.stats)
            else:
                artifact = CompositeAssembler().assemble(document, ctx.stats)
            await self._deliver(artifact)
            artifacts.append(artifact)

        self._complete(ctx, document)
        return artifacts

    async def generate_markdown(self, seed: SeedContext) -> MarkdownBundle:
        """Produce and deliver the Markdown bundle."""
        ctx, document = await self._run(seed)
        bundle = MarkdownAssembler(self._converter).assemble(document, ctx.stats)
        await self._deliver(bundle)
        self._complete(ctx, document)
        return bundle

    async def generate_composite(self, seed: SeedContext) -> CompositeDocument:
        """Produce and deliver the composite print document."""
        ctx, document = await self._run(seed)
        composite = CompositeAssembler().assemble(document, ctx.stats)
        await self._deliver(composite)
        self._complete(ctx, document)
        return composite
