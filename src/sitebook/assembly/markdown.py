"""Assembly of the single-file Markdown document."""

import logging
from typing import Optional

from ..conversion.markdown import HtmlToMarkdown
from ..conversion.protocols import MarkdownConverter
from ..images.report import build_failure_report
from ..images.rewriter import rewrite_markdown
from ..models.document import Document, MarkdownBundle
from ..models.events import RunStats
from .toc import build_toc, file_stem, markdown_toc_lines

logger = logging.getLogger(__name__)

SECTION_SEPARATOR = "---"


class MarkdownAssembler:
    """
    Renders a Document as one Markdown text with a leading table of contents.

    The document starts with ``# <title>``. A ``## Table of Contents`` list
    follows when there is more than one page. Each page is rendered under
    its own top-level heading and pages are separated by ``---``.

    Example:
        assembler = MarkdownAssembler()
        bundle = assembler.assemble(document, stats)
        print(bundle.markdown)
    """

    def __init__(self, converter: Optional[MarkdownConverter] = None):
        self._converter = converter or HtmlToMarkdown()

    def render(self, document: Document) -> str:
        """Render the Markdown text, with image references rewritten."""
        toc = document.toc or build_toc(document.sections)
        parts = [f"# {document.title}", ""]

        if len(document.sections) > 1:
            parts.extend(["## Table of Contents", "", *markdown_toc_lines(toc), ""])

        for section in document.sections:
            body = self._converter.convert(section.content.html, section.ref.url).strip()
            parts.extend([f"# {section.title}", "", body, "", SECTION_SEPARATOR, ""])

        markdown = "\n".join(parts)
        markdown = rewrite_markdown(markdown, document.images, document.failed_images)
        return markdown.strip() + "\n"

    def assemble(self, document: Document, stats: Optional[RunStats] = None) -> MarkdownBundle:
        """Build the Markdown bundle (text, images and failure report)."""
        markdown = self.render(document)
        report = build_failure_report(
            document.failed_images,
            document.title,
            total_images=len(document.images) + len(document.failed_images),
        )

        logger.info(f"Assembled Markdown document with {len(document.sections)} sections")
        return MarkdownBundle(
            title=document.title,
            filename=f"{file_stem(document.title)}.md",
            markdown=markdown,
            images=list(document.images.values()),
            failure_report=report,
            stats=stats or RunStats(),
        )
