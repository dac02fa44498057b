"""Per-run pipeline state and page fetching."""

from .context import EventEmitter, RunContext, emit_event
from .fetcher import (
    PageFetcher,
    empty_content_placeholder,
    fetch_failure_placeholder,
    parse_failure_placeholder,
)

__all__ = [
    "EventEmitter",
    "PageFetcher",
    "RunContext",
    "emit_event",
    "empty_content_placeholder",
    "fetch_failure_placeholder",
    "parse_failure_placeholder",
]
