"""aiohttp client used by the local host for pages and images."""

from __future__ import annotations

import asyncio
import logging
import random
from types import TracebackType

import aiohttp
from charset_normalizer import from_bytes as detect_encoding

from .protocols import HttpResponse

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; sitebook/1.0)"
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
)
HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

# Server answers worth asking again for
RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})
RETRY_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ConnectionError)

CHUNK_SIZE = 8192


def _declared_charset(content_type: str) -> str | None:
    for part in content_type.split(";"):
        key, _, value = part.strip().partition("=")
        if key.lower() == "charset" and value:
            return value.strip().strip("\"'")
    return None


class AsyncHttpClient:
    """
    GET-only aiohttp client with a size cap and backoff on transient errors.

    A status in ``RETRY_STATUSES`` or a network error is retried up to
    ``max_retries`` times; any other status is returned for the caller to
    check with ``response.ok``.

    Example:
        async with AsyncHttpClient(max_retries=2) as client:
            response = await client.get("https://docs.example.com/intro")
            html = client.decode_content(response)
    """

    def __init__(
        self,
        max_retries: int = 2,
        retry_base_delay: float = 1.0,
        max_content_size: int = 50 * 1024 * 1024,
        user_agent: str | None = None,
        proxy: str | None = None,
        default_timeout: float = 30.0,
    ) -> None:
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._max_content_size = max_content_size
        self._user_agent = user_agent or DEFAULT_USER_AGENT
        self._proxy = proxy
        self._default_timeout = default_timeout
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> AsyncHttpClient:
        self._session = aiohttp.ClientSession(headers={"User-Agent": self._user_agent})
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    def retry_delay(self, attempt: int) -> float:
        """Seconds to wait before retry ``attempt`` (0-indexed): doubling base plus up to 1s jitter."""
        return self._retry_base_delay * (2**attempt) + random.uniform(0, 1)

    async def _back_off(self, url: str, attempt: int, reason: str) -> None:
        delay = self.retry_delay(attempt)
        logger.warning(f"{reason} for {url}, retry {attempt + 1}/{self._max_retries} in {delay:.1f}s")
        await asyncio.sleep(delay)

    async def _read_body(self, response: aiohttp.ClientResponse) -> bytes:
        """Read the body, raising ValueError once it passes the size cap."""
        declared = response.headers.get("Content-Length", "")
        if declared.isdigit() and int(declared) > self._max_content_size:
            raise ValueError(f"Content too large: {declared} bytes")

        body = bytearray()
        async for chunk in response.content.iter_chunked(CHUNK_SIZE):
            body.extend(chunk)
            if len(body) > self._max_content_size:
                raise ValueError(f"Content size limit exceeded: >{self._max_content_size} bytes")
        return bytes(body)

    async def get(
        self,
        url: str,
        *,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        """
        GET a URL.

        Raises:
            aiohttp.ClientError: Network error, or a retryable status on the last attempt
            asyncio.TimeoutError: Timeout on the last attempt
            ValueError: Body larger than ``max_content_size``
        """
        if self._session is None:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        client_timeout = aiohttp.ClientTimeout(total=timeout or self._default_timeout)
        attempt = 0
        while True:
            last_attempt = attempt >= self._max_retries
            try:
                async with self._session.get(
                    url, timeout=client_timeout, headers=headers, proxy=self._proxy
                ) as response:
                    if response.status in RETRY_STATUSES and not last_attempt:
                        await self._back_off(url, attempt, f"HTTP {response.status}")
                        attempt += 1
                        continue
                    if response.status in RETRY_STATUSES:
                        response.raise_for_status()

                    return HttpResponse(
                        status_code=response.status,
                        content=await self._read_body(response),
                        content_type=response.headers.get("Content-Type", ""),
                        headers=dict(response.headers),
                        url=str(response.url),
                    )
            except RETRY_ERRORS as e:
                if last_attempt:
                    logger.debug(f"Giving up on {url} after {attempt + 1} attempts: {e!r}")
                    raise
                await self._back_off(url, attempt, repr(e))
                attempt += 1

    def decode_content(self, response: HttpResponse) -> str:
        """
        Decode a text body.

        Tries the declared charset, then charset-normalizer detection, then
        UTF-8 with replacement characters.
        """
        charset = _declared_charset(response.content_type)
        if charset:
            try:
                return response.content.decode(charset)
            except (UnicodeDecodeError, LookupError):
                logger.debug(f"Declared charset {charset!r} failed for {response.url}")

        best = detect_encoding(response.content).best()
        if best is not None:
            return str(best)
        return response.content.decode("utf-8", errors="replace")
