"""Document assembly (table of contents, Markdown, composite HTML, archive)."""

from .archive import build_markdown_archive, write_markdown_archive
from .composite import BASE_STYLES, PRINT_STYLES, CompositeAssembler
from .markdown import MarkdownAssembler
from .toc import build_toc, file_stem, markdown_toc_lines, slugify

__all__ = [
    "BASE_STYLES",
    "PRINT_STYLES",
    "CompositeAssembler",
    "MarkdownAssembler",
    "build_markdown_archive",
    "build_toc",
    "file_stem",
    "markdown_toc_lines",
    "slugify",
    "write_markdown_archive",
]
