"""Protocol definitions for content conversion."""

from typing import Optional, Protocol, Union

from ..models.document import PageContent


class ContentExtractor(Protocol):
    """
    Protocol for extracting main content from HTML.

    Implementations select the main documentation content of a page,
    remove chrome and widgets, and make references absolute.
    """

    def extract(self, html: Union[str, bytes], url: str) -> PageContent:
        """
        Extract main content from HTML.

        Args:
            html: Raw HTML text or bytes
            url: Source URL (for relative reference resolution)

        Returns:
            PageContent with the sanitized subtree, title and styles

        Raises:
            ParseError: If the markup cannot be processed
        """
        ...


class MarkdownConverter(Protocol):
    """
    Protocol for converting HTML to Markdown.

    Implementations are total: malformed input degrades the output but
    never raises.
    """

    def convert(self, html: str, url: Optional[str] = None) -> str:
        """
        Convert HTML to Markdown.

        Args:
            html: HTML content string
            url: Source URL, used only for log messages

        Returns:
            Markdown string
        """
        ...
