"""Image collection, download, rewriting and failure reporting."""

from .collector import ImageCollector, collect_page_images
from .downloader import (
    DownloadResult,
    ImageDownloader,
    classify_failure,
    detect_extension,
    image_filename,
)
from .report import build_failure_report
from .rewriter import html_warning, markdown_warning, rewrite_html, rewrite_markdown

__all__ = [
    "DownloadResult",
    "ImageCollector",
    "ImageDownloader",
    "build_failure_report",
    "classify_failure",
    "collect_page_images",
    "detect_extension",
    "html_warning",
    "image_filename",
    "markdown_warning",
    "rewrite_html",
    "rewrite_markdown",
]
