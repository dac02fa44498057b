"""Content conversion for sitebook (main content extraction, HTML to Markdown)."""

from .codeblocks import normalize_code_blocks
from .extractor import MainContentExtractor, clean_title
from .markdown import HtmlToMarkdown, NodeKind, RenderState
from .protocols import ContentExtractor, MarkdownConverter

__all__ = [
    # Protocols
    "ContentExtractor",
    "MarkdownConverter",
    # Implementations
    "MainContentExtractor",
    "HtmlToMarkdown",
    "NodeKind",
    "RenderState",
    "clean_title",
    "normalize_code_blocks",
]
