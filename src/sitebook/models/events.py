"""Event types for progress reporting during a generation run."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class EventType(str, Enum):
    """Types of events emitted during a generation run."""

    # Lifecycle events
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"

    # Discovery phase
    DISCOVERY_COMPLETE = "discovery_complete"

    # Fetch phase
    FETCH_PROGRESS = "fetch_progress"
    FETCH_COMPLETED = "fetch_completed"
    FETCH_FAILED = "fetch_failed"

    # Image phase
    IMAGES_STARTED = "images_started"
    IMAGE_BATCH_COMPLETE = "image_batch_complete"

    # Output phase
    ARTIFACT_DELIVERED = "artifact_delivered"


@dataclass
class ProgressEvent:
    """
    Event emitted while a run progresses.

    Example:
        def on_event(event: ProgressEvent) -> None:
            if event.type == EventType.FETCH_PROGRESS:
                print(f"Progress: {event.current}/{event.total}")
            elif event.type == EventType.FETCH_FAILED:
                print(f"Error: {event.url} - {event.error}")
    """

    type: EventType

    # Timestamp (always UTC)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Common fields
    url: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    # Progress tracking
    current: Optional[int] = None
    total: Optional[int] = None

    @property
    def progress_percent(self) -> Optional[float]:
        """Calculate progress percentage if current and total are set."""
        if self.current is not None and self.total and self.total > 0:
            return (self.current / self.total) * 100
        return None

    @property
    def is_error(self) -> bool:
        """Check if this is an error event."""
        return self.type in (EventType.FAILED, EventType.FETCH_FAILED)


@dataclass
class RunStats:
    """
    Cumulative statistics for one generation run.

    Created fresh with each run and attached to the artifact it produced.
    """

    pages_discovered: int = 0
    pages_fetched: int = 0
    pages_failed: int = 0
    images_total: int = 0
    images_downloaded: int = 0
    images_failed: int = 0
    bytes_downloaded: int = 0
    duration_seconds: float = 0.0

    @property
    def success_rate(self) -> float:
        """Calculate page success rate as a percentage."""
        total = self.pages_fetched + self.pages_failed
        if total == 0:
            return 0.0
        return (self.pages_fetched / total) * 100

    def to_dict(self) -> dict:
        """Convert stats to dictionary for serialization."""
        return {
            "pages_discovered": self.pages_discovered,
            "pages_fetched": self.pages_fetched,
            "pages_failed": self.pages_failed,
            "images_total": self.images_total,
            "images_downloaded": self.images_downloaded,
            "images_failed": self.images_failed,
            "bytes_downloaded": self.bytes_downloaded,
            "duration_seconds": round(self.duration_seconds, 2),
            "success_rate": round(self.success_rate, 1),
        }
