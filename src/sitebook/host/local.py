"""Host bridge for running sitebook from the command line."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from types import TracebackType
from typing import Callable, Optional

import aiohttp

from ..assembly.archive import write_markdown_archive
from ..assembly.toc import file_stem
from ..errors import FetchError
from ..http.client import BROWSER_USER_AGENT, HTML_ACCEPT, AsyncHttpClient
from ..http.protocols import HttpClient, HttpResponse
from ..models.config import SitebookConfig
from ..models.document import Artifact, CompositeDocument, MarkdownBundle
from .protocols import SeedContext

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


def _log_progress(label: str, current: int, total: int) -> None:
    logger.debug(f"{label} ({current}/{total})")


class LocalHostBridge:
    """
    HostBridge backed by aiohttp and the local filesystem.

    - ``fetch_html``: single plain GET, no retries
    - ``privileged_fetch_html``: browser-like User-Agent with retries
    - ``fetch_binary``: image GET through the privileged client
    - ``deliver_artifact``: writes files into the output directory

    Example:
        async with LocalHostBridge(config) as host:
            seed = await host.load_seed("https://docs.example.com/intro")
            bundle = await Generator(host, config).generate_markdown(seed)
        print(host.delivered)
    """

    def __init__(
        self,
        config: Optional[SitebookConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Initialize the host.

        Args:
            config: Configuration (network settings and output directory)
            on_progress: Progress sink (default: debug logging)
        """
        self.config = config or SitebookConfig()
        self._on_progress = on_progress or _log_progress
        self.delivered: list[Path] = []

        network = self.config.network
        self._direct = AsyncHttpClient(
            max_retries=0,
            user_agent=network.user_agent,
            proxy=network.proxy,
            default_timeout=float(network.read_timeout),
        )
        self._privileged = AsyncHttpClient(
            max_retries=network.max_retries,
            user_agent=network.privileged_user_agent or BROWSER_USER_AGENT,
            proxy=network.proxy,
            default_timeout=float(network.read_timeout),
            max_content_size=max(self.config.images.max_image_size, 50 * 1024 * 1024),
        )

    async def __aenter__(self) -> LocalHostBridge:
        await self._direct.__aenter__()
        await self._privileged.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self._direct.__aexit__(exc_type, exc_val, exc_tb)
        await self._privileged.__aexit__(exc_type, exc_val, exc_tb)

    async def _get(
        self,
        client: HttpClient,
        url: str,
        timeout: Optional[float] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> HttpResponse:
        """GET a URL, turning every failure into FetchError."""
        try:
            response = await client.get(url, timeout=timeout, headers=headers)
        except asyncio.TimeoutError as e:
            raise FetchError(url, f"Timed out fetching {url}", timed_out=True) from e
        except aiohttp.ClientResponseError as e:
            raise FetchError(url, f"HTTP {e.status} for {url}", status_code=e.status) from e
        except (aiohttp.ClientError, ConnectionError, ValueError) as e:
            raise FetchError(url, f"Error fetching {url}: {e}") from e

        if not response.ok:
            raise FetchError(url, f"HTTP {response.status_code} for {url}", status_code=response.status_code)
        return response

    async def fetch_html(self, url: str) -> str:
        response = await self._get(self._direct, url, headers={"Accept": HTML_ACCEPT})
        return self._direct.decode_content(response)

    async def privileged_fetch_html(self, url: str) -> str:
        response = await self._get(self._privileged, url, headers={"Accept": HTML_ACCEPT})
        return self._privileged.decode_content(response)

    async def fetch_binary(self, url: str, timeout: Optional[float] = None) -> HttpResponse:
        return await self._get(self._privileged, url, timeout=timeout, headers={"Accept": "image/*,*/*;q=0.8"})

    def report_progress(self, label: str, current: int, total: int) -> None:
        try:
            self._on_progress(label, current, total)
        except Exception as e:
            logger.debug(f"Progress callback failed: {e}")

    async def load_seed(self, url: str, title: str = "") -> SeedContext:
        """
        Fetch the seed page, trying the direct then the privileged client.

        Raises:
            FetchError: If neither client can retrieve the page
        """
        try:
            raw_html = await self.fetch_html(url)
        except FetchError as e:
            logger.warning(f"Direct fetch of seed page failed ({e}), retrying with privileged fetch")
            raw_html = await self.privileged_fetch_html(url)
        return SeedContext(url=url, html=raw_html, title=title)

    def _write_failure_report(self, stem: str, report: Optional[str], directory: Path) -> None:
        if not report or not self.config.output.write_failure_report:
            return
        path = directory / f"{stem}-image-failures.txt"
        path.write_text(report, encoding="utf-8")
        self.delivered.append(path)
        logger.info(f"Wrote image failure report: {path}")

    async def deliver_artifact(self, artifact: Artifact) -> None:
        directory = Path(self.config.output.directory)
        directory.mkdir(parents=True, exist_ok=True)
        stem = file_stem(artifact.title)

        if isinstance(artifact, MarkdownBundle):
            path = write_markdown_archive(artifact, directory / f"{stem}.zip")
        elif isinstance(artifact, CompositeDocument):
            path = directory / f"{stem}.html"
            path.write_text(artifact.html, encoding="utf-8")
            if artifact.images:
                image_dir = directory / "images"
                image_dir.mkdir(exist_ok=True)
                for image in artifact.images:
                    (image_dir / image.local_filename).write_bytes(image.data)
            logger.info(f"Wrote composite document: {path}")
        else:
            raise TypeError(f"Unsupported artifact type: {type(artifact).__name__}")

        self.delivered.append(path)
        self._write_failure_report(stem, artifact.failure_report, directory)
