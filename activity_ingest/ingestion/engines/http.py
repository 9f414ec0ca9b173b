"""
Plain HTTP fetching for source pages and feeds.

The fetcher never raises: transport errors and non-2xx responses come back as
a ``PageFetchResult`` with ``ok=False`` so callers can treat them as empty
pages. No retries are attempted.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class PageFetchResult:
    """Result of fetching a single page."""

    ok: bool
    url: str
    final_url: str
    status_code: int | None
    html: str | None
    error: str | None = None
    elapsed_s: float = 0.0

    @property
    def text(self) -> str:
        return self.html or ""


class HttpFetcher:
    """Async GET with a browser-like User-Agent."""

    def __init__(self, timeout_s: float = 30.0, headers: dict[str, str] | None = None):
        self.timeout_s = timeout_s
        self.headers = headers or {}
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            headers = {
                "User-Agent": BROWSER_USER_AGENT,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.9",
                **self.headers,
            }
            self._client = httpx.AsyncClient(
                headers=headers,
                timeout=self.timeout_s,
                follow_redirects=True,
            )
        return self._client

    async def get(self, url: str, params: dict | None = None) -> PageFetchResult:
        start_time = time.time()
        try:
            response = await self._get_client().get(url, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"Request to {url} failed: {e}")
            return PageFetchResult(
                ok=False,
                url=url,
                final_url=url,
                status_code=None,
                html=None,
                error=str(e) or type(e).__name__,
                elapsed_s=time.time() - start_time,
            )

        elapsed = time.time() - start_time
        ok = 200 <= response.status_code < 300
        if not ok:
            logger.warning(f"{url} returned HTTP {response.status_code}")
        return PageFetchResult(
            ok=ok,
            url=url,
            final_url=str(response.url),
            status_code=response.status_code,
            html=response.text if ok else None,
            error=None if ok else f"HTTP {response.status_code}",
            elapsed_s=elapsed,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
