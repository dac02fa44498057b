"""Batched image downloading with per-image failure records."""

from __future__ import annotations

import asyncio
import logging
import posixpath
import zlib
from dataclasses import dataclass, field
from typing import Callable, Optional
from urllib.parse import urlparse

from filetype import guess

from ..errors import FetchError, ImageDownloadError
from ..host.protocols import HostBridge
from ..models.document import FailedImageRecord, ImageFailureKind, ImageRecord, ImageReference

logger = logging.getLogger(__name__)

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/pjpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "image/bmp": "bmp",
    "image/x-icon": "ico",
    "image/vnd.microsoft.icon": "ico",
    "image/avif": "avif",
    "image/tiff": "tiff",
}

URL_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "ico", "avif", "tiff"})

DEFAULT_EXTENSION = "png"


def image_filename(index: int, url: str, extension: str) -> str:
    """``img_<index>_<crc32 of url as 8 hex chars>.<ext>``"""
    digest = zlib.crc32(url.encode("utf-8")) & 0xFFFFFFFF
    return f"img_{index}_{digest:08x}.{extension}"


def detect_extension(content_type: str, url: str, data: bytes = b"") -> str:
    """
    Pick a file extension for downloaded image bytes.

    Fallback chain:
    1. Declared Content-Type
    2. Extension in the URL path
    3. File signature sniffing
    4. png
    """
    mime = content_type.split(";")[0].strip().lower()
    if mime in CONTENT_TYPE_EXTENSIONS:
        return CONTENT_TYPE_EXTENSIONS[mime]

    ext = posixpath.splitext(urlparse(url).path)[1].lstrip(".").lower()
    if ext in URL_EXTENSIONS:
        return "jpg" if ext == "jpeg" else ext

    if data:
        kind = guess(data)
        if kind and kind.mime.startswith("image/"):
            return "jpg" if kind.extension == "jpeg" else kind.extension.lower()

    return DEFAULT_EXTENSION


def classify_failure(status_code: Optional[int] = None, timed_out: bool = False) -> ImageFailureKind:
    """Heuristic reason for a failed image download."""
    if timed_out:
        return ImageFailureKind.TIMEOUT
    if status_code in (404, 410):
        return ImageFailureKind.NOT_FOUND
    if status_code in (401, 403, 451):
        return ImageFailureKind.BLOCKED
    return ImageFailureKind.OTHER


@dataclass
class DownloadResult:
    """Outcome of downloading every unique image of a run."""

    images: dict[str, ImageRecord] = field(default_factory=dict)
    failed: list[FailedImageRecord] = field(default_factory=list)
    bytes_downloaded: int = 0


class ImageDownloader:
    """
    Downloads unique images in fixed-size concurrent batches.

    Each batch runs its downloads concurrently; batches run one after
    another with a short pause between them. A failed image becomes a
    ``FailedImageRecord`` and never stops the batch.

    Example:
        downloader = ImageDownloader(host, batch_size=5)
        result = await downloader.download_all(unique_refs, next_index)
        print(len(result.images), len(result.failed))
    """

    def __init__(
        self,
        host: HostBridge,
        batch_size: int = 5,
        batch_delay: float = 0.2,
        max_image_size: int = 20 * 1024 * 1024,
        timeout: Optional[float] = None,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self._host = host
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._max_image_size = max_image_size
        self._timeout = timeout

    async def download(self, url: str, index: int) -> ImageRecord:
        """
        Download one image.

        Raises:
            ImageDownloadError: If the fetch fails or the body is not a usable image
        """
        try:
            response = await self._host.fetch_binary(url, timeout=self._timeout)
        except FetchError as e:
            raise ImageDownloadError(
                url,
                str(e),
                kind=classify_failure(e.status_code, e.timed_out),
                status_code=e.status_code,
            ) from e
        except asyncio.TimeoutError as e:
            raise ImageDownloadError(url, "Request timed out", kind=ImageFailureKind.TIMEOUT) from e

        data = response.content
        if not data:
            raise ImageDownloadError(url, "Empty response body", status_code=response.status_code)
        if len(data) > self._max_image_size:
            raise ImageDownloadError(
                url,
                f"Image too large: {len(data)} bytes (limit {self._max_image_size})",
                status_code=response.status_code,
            )
        if response.content_type.lower().startswith("text/"):
            raise ImageDownloadError(
                url,
                f"Not an image (Content-Type: {response.content_type})",
                status_code=response.status_code,
            )

        extension = detect_extension(response.content_type, url, data)
        return ImageRecord(
            original_url=url,
            local_filename=image_filename(index, url, extension),
            data=data,
            extension=extension,
        )

    async def download_all(
        self,
        unique: dict[str, list[ImageReference]],
        next_index: Callable[[], int],
        on_batch: Optional[Callable[[int, int], None]] = None,
    ) -> DownloadResult:
        """
        Download every unique image URL once.

        Args:
            unique: Image URL to the references that use it
            next_index: Supplies the run's monotonic image counter
            on_batch: Called with (images done, total) after each batch

        Returns:
            DownloadResult with records keyed by original URL and the failures
        """
        result = DownloadResult()
        urls = list(unique)
        total = len(urls)

        for start in range(0, total, self._batch_size):
            batch = urls[start : start + self._batch_size]
            # Indices are assigned in URL order before the batch runs
            tasks = [self.download(url, next_index()) for url in batch]
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)

            for url, outcome in zip(batch, outcomes):
                if isinstance(outcome, ImageRecord):
                    result.images[url] = outcome
                    result.bytes_downloaded += len(outcome.data)
                    logger.debug(f"Downloaded image {url} -> {outcome.local_filename}")
                    continue

                if isinstance(outcome, ImageDownloadError):
                    error: Exception = outcome
                    kind = outcome.kind
                elif isinstance(outcome, Exception):
                    error, kind = outcome, ImageFailureKind.OTHER
                else:
                    # CancelledError and friends are not image failures
                    raise outcome

                first = unique[url][0]
                logger.warning(f"Image download failed for {url}: {error}")
                result.failed.append(
                    FailedImageRecord(
                        url=url,
                        error_reason=str(error) or type(error).__name__,
                        page_title=first.page_title,
                        alt_text=first.alt_text,
                        context_snippet=first.context,
                        kind=kind,
                    )
                )

            done = min(start + self._batch_size, total)
            if on_batch is not None:
                on_batch(done, total)

            if done < total and self._batch_delay > 0:
                await asyncio.sleep(self._batch_delay)

        logger.info(f"Downloaded {len(result.images)}/{total} images ({len(result.failed)} failed)")
        return result
