"""HTTP page fetching.

WHY: Web pages are read completely before tokenizing (markers, resume
positions and link extraction all work on the whole page), and with
link following many pages come from the same site, so one connection
pool is reused for the whole run.

HOW: PageFetcher wraps httpx.Client. fetch() streams the body into a
ByteBuffer, which doubles its capacity as data arrives. Use it as a
context manager so the pool is closed at the end of the run.

RULES:
- Use as: with PageFetcher() as fetcher: data = fetcher.fetch(url)
- Redirects are followed, at most MAX_REDIRECTS of them
- Transport failures and non-2xx responses raise FetchError
- An empty body is a FetchError
- A buffer allocation failure raises BufferMemoryError; nothing partial
  is returned
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from morsefeed.config import FETCH_TIMEOUT_S, FIRST_BUFFER_SIZE, MAX_REDIRECTS, USER_AGENT
from morsefeed.core.source import ByteBuffer
from morsefeed.errors import FetchError

logger = logging.getLogger(__name__)


class PageFetcher:
    """Synchronous page fetcher over one httpx connection pool.

    Args:
        user_agent: User-Agent header value.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._user_agent = user_agent or USER_AGENT
        self._timeout = FETCH_TIMEOUT_S if timeout is None else timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> PageFetcher:
        self._client = httpx.Client(
            headers={"User-Agent": self._user_agent},
            timeout=httpx.Timeout(self._timeout),
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
            transport=self._transport,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def _ensure_client(self) -> httpx.Client:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "PageFetcher must be used as a context manager: "
                "with PageFetcher() as fetcher: ..."
            )
        return self._client

    def fetch(self, url: str) -> bytes:
        """Download url and return the complete body.

        Args:
            url: Absolute http or https URL.

        Returns:
            The response body bytes (never empty).

        Raises:
            FetchError: On transport failure, non-2xx status or empty body.
        """
        client = self._ensure_client()
        buffer = ByteBuffer(FIRST_BUFFER_SIZE)

        try:
            with client.stream("GET", url) as resp:
                logger.info("response code %d for %s", resp.status_code, url)
                if not resp.is_success:
                    raise FetchError(url, resp.reason_phrase, resp.status_code)
                for chunk in resp.iter_bytes():
                    buffer.extend(chunk)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(url, str(exc) or type(exc).__name__) from exc

        if not len(buffer):
            raise FetchError(url, "empty response")
        return buffer.getvalue()
