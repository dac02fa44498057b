"""
sitebook - Turn a multi-page documentation site into one portable document.

Usage:
    from sitebook import Generator, LocalHostBridge, SitebookConfig

    config = SitebookConfig(url="https://docs.example.com/intro")

    async with LocalHostBridge(config) as host:
        seed = await host.load_seed(config.url)
        bundle = await Generator(host, config).generate_markdown(seed)
        print(bundle.stats.to_dict())
"""

__version__ = "1.0.0"

from .core.generator import Generator, SitePreview
from .errors import (
    FetchError,
    ImageDownloadError,
    LinkResolutionError,
    NoPagesDiscoveredError,
    ParseError,
    SitebookError,
)
from .host import HostBridge, LocalHostBridge, SeedContext
from .models.config import (
    CrawlConfig,
    ImageConfig,
    NetworkConfig,
    OutputConfig,
    SitebookConfig,
)
from .models.document import (
    CompositeDocument,
    Document,
    DocumentSection,
    FailedImageRecord,
    ImageRecord,
    MarkdownBundle,
    PageContent,
    PageRef,
)
from .models.events import EventType, ProgressEvent, RunStats

__all__ = [
    "__version__",
    # Core
    "Generator",
    "SitePreview",
    # Host
    "HostBridge",
    "LocalHostBridge",
    "SeedContext",
    # Config
    "SitebookConfig",
    "CrawlConfig",
    "ImageConfig",
    "NetworkConfig",
    "OutputConfig",
    # Document model
    "PageRef",
    "PageContent",
    "DocumentSection",
    "Document",
    "ImageRecord",
    "FailedImageRecord",
    "MarkdownBundle",
    "CompositeDocument",
    # Events
    "EventType",
    "ProgressEvent",
    "RunStats",
    # Errors
    "SitebookError",
    "LinkResolutionError",
    "FetchError",
    "ParseError",
    "ImageDownloadError",
    "NoPagesDiscoveredError",
]
