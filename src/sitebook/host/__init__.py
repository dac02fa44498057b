"""Host environment abstraction and the local (CLI) host."""

from .local import LocalHostBridge, ProgressCallback
from .protocols import HostBridge, SeedContext

__all__ = [
    "HostBridge",
    "LocalHostBridge",
    "ProgressCallback",
    "SeedContext",
]
