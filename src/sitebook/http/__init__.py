"""HTTP client for sitebook."""

from .client import BROWSER_USER_AGENT, DEFAULT_USER_AGENT, HTML_ACCEPT, AsyncHttpClient
from .protocols import HttpClient, HttpResponse

__all__ = [
    "AsyncHttpClient",
    "BROWSER_USER_AGENT",
    "DEFAULT_USER_AGENT",
    "HTML_ACCEPT",
    "HttpClient",
    "HttpResponse",
]
