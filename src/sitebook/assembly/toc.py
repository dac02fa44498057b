"""Numbered table of contents and heading anchors."""

import re

from ..models.document import UNTITLED_PAGE, DocumentSection, TocEntry

_NON_WORD = re.compile(r"[\s\W]+")


def slugify(title: str) -> str:
    """
    Anchor for a heading title.

    Lowercased, runs of whitespace and non-word characters collapsed to a
    single hyphen, leading and trailing hyphens trimmed.
    """
    return _NON_WORD.sub("-", title.strip().lower()).strip("-")


def build_toc(sections: list[DocumentSection]) -> list[TocEntry]:
    """One numbered entry per section, in document order."""
    return [
        TocEntry(
            number=number,
            level=section.ref.level,
            title=section.title or UNTITLED_PAGE,
            anchor=slugify(section.title or UNTITLED_PAGE),
        )
        for number, section in enumerate(sections, start=1)
    ]


def markdown_toc_lines(toc: list[TocEntry]) -> list[str]:
    """TOC as a nested Markdown list, two spaces of indent per level."""
    return [f"{'  ' * (entry.level - 1)}* [{entry.number}. {entry.title}](#{entry.anchor})" for entry in toc]


def file_stem(title: str, default: str = "sitebook") -> str:
    """Filesystem-safe base name for an artifact titled ``title``."""
    return slugify(title)[:80].strip("-") or default
