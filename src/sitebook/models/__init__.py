"""Sitebook configuration, document and event models."""

from .config import (
    ByteSize,
    CrawlConfig,
    ImageConfig,
    NetworkConfig,
    OutputConfig,
    SitebookConfig,
)
from .document import (
    Artifact,
    CompositeDocument,
    Document,
    DocumentSection,
    FailedImageRecord,
    ImageFailureKind,
    ImageRecord,
    ImageReference,
    MarkdownBundle,
    PageContent,
    PageRef,
    TocEntry,
    clamp_level,
)
from .events import EventType, ProgressEvent, RunStats

__all__ = [
    # Config
    "ByteSize",
    "CrawlConfig",
    "ImageConfig",
    "NetworkConfig",
    "OutputConfig",
    "SitebookConfig",
    # Document
    "Artifact",
    "CompositeDocument",
    "Document",
    "DocumentSection",
    "FailedImageRecord",
    "ImageFailureKind",
    "ImageRecord",
    "ImageReference",
    "MarkdownBundle",
    "PageContent",
    "PageRef",
    "TocEntry",
    "clamp_level",
    # Events
    "EventType",
    "ProgressEvent",
    "RunStats",
]
