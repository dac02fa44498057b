"""Zip packaging of the Markdown bundle."""

import io
import logging
import zipfile
from pathlib import Path

from ..models.document import MarkdownBundle

logger = logging.getLogger(__name__)


def build_markdown_archive(bundle: MarkdownBundle, compression: int = zipfile.ZIP_DEFLATED) -> bytes:
    """
    Pack a Markdown bundle into zip bytes.

    The Markdown file sits at the archive root and images under
    ``images/``, matching the ``./images/<file>`` references in the text.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression) as zf:
        zf.writestr(bundle.filename, bundle.markdown.encode("utf-8"))
        for image in bundle.images:
            zf.writestr(image.archive_path, image.data)

    data = buffer.getvalue()
    logger.debug(f"Packed {len(bundle.images)} images into {len(data)} byte archive")
    return data


def write_markdown_archive(bundle: MarkdownBundle, archive_path: Path) -> Path:
    """Write a Markdown bundle as a zip archive.

    Args:
        bundle: Markdown text and images
        archive_path: Destination ``.zip`` path

    Returns:
        Path to created archive
    """
    archive_path = Path(archive_path)
    archive_path.parent.mkdir(parents=True, exist_ok=True)
    archive_path.write_bytes(build_markdown_archive(bundle))

    size_mb = archive_path.stat().st_size / 1024 / 1024
    logger.info(f"Created archive: {archive_path} ({size_mb:.1f} MB)")

    return archive_path
