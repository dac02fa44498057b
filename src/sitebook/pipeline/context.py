"""Per-run state shared by the pipeline stages."""

from dataclasses import dataclass, field
from typing import Callable, Optional

from ..host.protocols import SeedContext
from ..models.config import SitebookConfig
from ..models.document import DocumentSection, FailedImageRecord, ImageRecord, PageRef
from ..models.events import ProgressEvent, RunStats

# Type alias for event emitter function
EventEmitter = Callable[[ProgressEvent], None]


@dataclass
class RunContext:
    """
    Mutable state of one generation run.

    Created fresh at the start of each top-level generation call and passed
    through every stage, so nothing leaks from one run into the next.

    Attributes:
        seed: The page the run started from
        config: Run configuration
        seen_urls: Absolute URLs already discovered
        pages: Discovered pages, in final order
        sections: Fetched pages paired with their content
        images: Downloaded images keyed by original URL
        failed_images: Images whose download failed
        stats: Counters for the run
    """

    seed: SeedContext
    config: SitebookConfig = field(default_factory=SitebookConfig)

    seen_urls: set[str] = field(default_factory=set)
    pages: list[PageRef] = field(default_factory=list)
    sections: list[DocumentSection] = field(default_factory=list)
    images: dict[str, ImageRecord] = field(default_factory=dict)
    failed_images: list[FailedImageRecord] = field(default_factory=list)
    stats: RunStats = field(default_factory=RunStats)

    _image_counter: int = 0

    def next_image_index(self) -> int:
        """Next value of the run's monotonic image counter, starting at 1."""
        self._image_counter += 1
        return self._image_counter

    @property
    def title(self) -> str:
        """Document title: configured title, else the seed page title."""
        return self.config.output.title or self.seed.page_title or "Documentation"


def emit_event(emit: Optional[EventEmitter], event: ProgressEvent) -> None:
    """Send an event to the emitter, if one is set."""
    if emit is not None:
        emit(event)
