"""Assembly of the composite, print-ready HTML document."""

import html
import json
import logging
from typing import Optional

from ..images.report import build_failure_report
from ..images.rewriter import rewrite_html
from ..models.document import CompositeDocument, Document, DocumentSection, TocEntry
from ..models.events import RunStats
from .toc import build_toc, file_stem

logger = logging.getLogger(__name__)

TOC_INDENT_PX = 20

BASE_STYLES = """
body {
  font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Helvetica, Arial, sans-serif;
  line-height: 1.6;
  color: #24292e;
  max-width: 960px;
  margin: 0 auto;
  padding: 20px;
}
img { max-width: 100%; height: auto; }
pre {
  background: #f6f8fa;
  border-radius: 4px;
  padding: 12px;
  overflow-x: auto;
}
code { font-family: "SFMono-Regular", Consolas, "Liberation Mono", Menlo, monospace; }
table { border-collapse: collapse; }
th, td { border: 1px solid #dfe2e5; padding: 6px 13px; }
.line-numbers-simple-fixed {
  font-family: "SFMono-Regular", Consolas, "Liberation Mono", Menlo, Courier, monospace !important;
  white-space: pre !important;
  overflow-x: auto;
  background: #f8f9fa;
  border: 1px solid #e9ecef;
  border-radius: 4px;
  padding: 12px;
  line-height: 1.4;
  font-size: 14px;
}
.line-numbers-simple-fixed code {
  white-space: pre !important;
  display: block !important;
  padding: 0 !important;
  background: transparent !important;
}
.table-of-contents .toc-list { list-style: none; padding-left: 0; }
.table-of-contents .toc-number { color: #666; margin-right: 6px; }
.chapter-title { color: #2c3e50; border-bottom: 2px solid #3498db; padding-bottom: 10px; }
.page-meta .page-url { color: #888; font-size: 12px; word-break: break-all; }
.fetch-error, .parse-error, .image-warning {
  border: 1px solid #f5c2c7;
  background: #f8d7da;
  color: #842029;
  border-radius: 4px;
  padding: 8px 12px;
  margin: 8px 0;
}
"""

PRINT_STYLES = """
@media print {
  body { max-width: none; padding: 0; }
  .page-break { page-break-after: always; break-after: page; }
  .chapter-title { page-break-after: avoid; break-after: avoid; }
  pre, table, img { page-break-inside: avoid; break-inside: avoid; }
  a { color: inherit; text-decoration: none; }
}
"""


def merge_styles(sections: list[DocumentSection]) -> str:
    """Concatenate the pages' collected styles, each distinct block once."""
    seen: set[str] = set()
    blocks: list[str] = []
    for section in sections:
        styles = section.content.styles.strip()
        if styles and styles not in seen:
            seen.add(styles)
            blocks.append(styles)
    return "\n".join(blocks)


def bookmark_data(sections: list[DocumentSection]) -> list[dict]:
    """Chapter outline for print tooling that builds PDF bookmarks."""
    return [
        {"index": index, "level": section.ref.level, "title": section.title, "url": section.ref.url}
        for index, section in enumerate(sections)
    ]


class CompositeAssembler:
    """
    Renders a Document as one HTML document embedding every page.

    Each page sits under a heading whose level equals its hierarchy level,
    preceded by a numbered table of contents. Styles from all pages are
    merged into the head. Rendering to paper or PDF is left to the output
    collaborator.

    Example:
        assembler = CompositeAssembler()
        composite = assembler.assemble(document, stats)
        Path(composite.filename).write_text(composite.html)
    """

    def _render_toc(self, toc: list[TocEntry]) -> str:
        items = []
        for index, entry in enumerate(toc):
            indent = (entry.level - 1) * TOC_INDENT_PX
            items.append(
                f'<li class="toc-item toc-level-{entry.level}" style="margin-left: {indent}px;">'
                f'<a href="#chapter-{index}" class="toc-link">'
                f'<span class="toc-number">{entry.number}.</span>'
                f'<span class="toc-title">{html.escape(entry.title)}</span>'
                "</a></li>"
            )
        return (
            '<div class="table-of-contents">\n'
            "<h1>Table of Contents</h1>\n"
            f'<p class="toc-description">{len(toc)} chapters</p>\n'
            '<ul class="toc-list">\n' + "\n".join(items) + "\n</ul>\n</div>\n"
            '<div class="page-break"></div>'
        )

    def _render_section(self, index: int, section: DocumentSection) -> str:
        level = section.ref.level
        url = html.escape(section.ref.url)
        return (
            f'<div class="page-section" id="chapter-{index}">\n'
            f'<h{level} class="chapter-title" id="bookmark-{index}">'
            f"{index + 1}. {html.escape(section.title)}</h{level}>\n"
            f'<div class="page-meta"><p class="page-url">Source: <a href="{url}">{url}</a></p></div>\n'
            f'<div class="page-content">\n{section.content.html}\n</div>\n'
            "</div>\n"
            '<div class="page-break"></div>'
        )

    def render(self, document: Document) -> str:
        """Render the complete HTML document, with image references rewritten."""
        toc = document.toc or build_toc(document.sections)
        bookmarks = json.dumps(bookmark_data(document.sections), ensure_ascii=False, indent=2)
        # A literal "</" would end the script element early
        bookmarks = bookmarks.replace("</", "<\\/")

        body = [self._render_toc(toc)]
        body.extend(self._render_section(index, section) for index, section in enumerate(document.sections))

        page = (
            "<!DOCTYPE html>\n"
            '<html lang="en">\n'
            "<head>\n"
            '<meta charset="UTF-8">\n'
            '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
            f"<title>{html.escape(document.title)}</title>\n"
            '<meta name="pdf-bookmarks" content="enabled">\n'
            f'<script type="application/json" id="bookmark-data">\n{bookmarks}\n</script>\n'
            f"<style>\n{merge_styles(document.sections)}\n{BASE_STYLES}\n{PRINT_STYLES}\n</style>\n"
            "</head>\n"
            "<body>\n" + "\n".join(body) + "\n</body>\n</html>\n"
        )
        return rewrite_html(page, document.images, document.failed_images)

    def assemble(self, document: Document, stats: Optional[RunStats] = None) -> CompositeDocument:
        """Build the composite document and its failure report."""
        page = self.render(document)
        report = build_failure_report(
            document.failed_images,
            document.title,
            total_images=len(document.images) + len(document.failed_images),
        )

        logger.info(f"Assembled composite document with {len(document.sections)} chapters")
        return CompositeDocument(
            title=document.title,
            filename=f"{file_stem(document.title)}.html",
            html=page,
            images=list(document.images.values()),
            failure_report=report,
            stats=stats or RunStats(),
        )
