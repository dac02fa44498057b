"""Data model for pages, images and assembled documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .events import RunStats

MIN_LEVEL = 1
MAX_LEVEL = 6

UNTITLED_PAGE = "Untitled page"


def clamp_level(level: int) -> int:
    """Clamp a hierarchy level into the 1..6 range."""
    return max(MIN_LEVEL, min(MAX_LEVEL, level))


@dataclass(frozen=True)
class PageRef:
    """
    A page discovered in the site navigation, before it is fetched.

    Identity is the absolute URL; a run never holds two refs for one URL.

    Attributes:
        url: Absolute URL of the page (fragment removed)
        title: Link text from the navigation
        level: Hierarchy level (1..6)
        discovery_index: Position in navigation order
    """

    url: str
    title: str
    level: int = 1
    discovery_index: int = 0

    def __post_init__(self) -> None:
        if not MIN_LEVEL <= self.level <= MAX_LEVEL:
            raise ValueError(f"level must be between {MIN_LEVEL} and {MAX_LEVEL}, got {self.level}")


@dataclass(frozen=True)
class PageContent:
    """
    Sanitized main content of one page.

    A placeholder (fetch or parse failure) always has ``text_length == 0``.
    """

    html: str
    title: str
    styles: str = ""
    text_length: int = 0

    @property
    def is_placeholder(self) -> bool:
        return self.text_length == 0


@dataclass(frozen=True)
class DocumentSection:
    """A fetched page: its navigation ref paired with its content."""

    ref: PageRef
    content: PageContent

    @property
    def title(self) -> str:
        return self.ref.title or self.content.title or UNTITLED_PAGE


class ImageFailureKind(str, Enum):
    """Heuristic classification of an image download failure."""

    BLOCKED = "blocked"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    OTHER = "other"


@dataclass(frozen=True)
class ImageReference:
    """An image reference found in a page, before download."""

    url: str
    alt_text: str
    context: str
    page_title: str
    page_url: str


@dataclass(frozen=True)
class ImageRecord:
    """A successfully downloaded image, keyed by its original URL."""

    original_url: str
    local_filename: str
    data: bytes
    extension: str

    @property
    def relative_path(self) -> str:
        return f"./images/{self.local_filename}"

    @property
    def archive_path(self) -> str:
        return f"images/{self.local_filename}"


@dataclass(frozen=True)
class FailedImageRecord:
    """An image whose download failed; rendered in-band and in the failure report."""

    url: str
    error_reason: str
    page_title: str
    alt_text: str = ""
    context_snippet: str = ""
    kind: ImageFailureKind = ImageFailureKind.OTHER


@dataclass(frozen=True)
class TocEntry:
    """One numbered table-of-contents line."""

    number: int
    level: int
    title: str
    anchor: str


@dataclass
class Document:
    """
    Everything a run produced, before it is rendered to an artifact.

    Sections keep the order the pages were fetched in.
    """

    title: str
    sections: list[DocumentSection]
    toc: list[TocEntry] = field(default_factory=list)
    images: dict[str, ImageRecord] = field(default_factory=dict)
    failed_images: list[FailedImageRecord] = field(default_factory=list)


@dataclass
class MarkdownBundle:
    """Markdown text plus the downloaded images, packaged as one archive."""

    title: str
    filename: str
    markdown: str
    images: list[ImageRecord] = field(default_factory=list)
    failure_report: Optional[str] = None
    stats: RunStats = field(default_factory=RunStats)


@dataclass
class CompositeDocument:
    """A single print-ready HTML document embedding every page."""

    title: str
    filename: str
    html: str
    images: list[ImageRecord] = field(default_factory=list)
    failure_report: Optional[str] = None
    stats: RunStats = field(default_factory=RunStats)


Artifact = Union[MarkdownBundle, CompositeDocument]
