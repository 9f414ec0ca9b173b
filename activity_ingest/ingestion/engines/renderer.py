"""
Headless-browser rendering for client-side rendered pages.

Adapters depend on the ``PageRenderer`` protocol only, so their extraction
logic can be exercised against static HTML.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from activity_ingest.ingestion.engines.http import BROWSER_USER_AGENT
from activity_ingest.ingestion.errors import FetchError

if TYPE_CHECKING:
    from playwright.async_api import Browser, Playwright

logger = logging.getLogger(__name__)

NAVIGATION_TIMEOUT_S = 30.0
SETTLE_DELAY_MS = 3000


class PageRenderer(Protocol):
    """Render a URL and return the post-render DOM as HTML."""

    async def render(self, url: str) -> str: ...

    async def close(self) -> None: ...


class PlaywrightRenderer:
    """
    PageRenderer backed by async Playwright Chromium.

    Each render waits for network idle plus a fixed settle delay. A navigation
    that exceeds the timeout raises ``FetchError`` for that item only.
    """

    def __init__(
        self,
        headless: bool = True,
        timeout_s: float = NAVIGATION_TIMEOUT_S,
        settle_ms: int = SETTLE_DELAY_MS,
    ):
        self.headless = headless
        self.timeout_s = timeout_s
        self.settle_ms = settle_ms
        self._browser: Browser | None = None
        self._playwright: Playwright | None = None

    async def _ensure_browser(self) -> None:
        """Ensure browser is started."""
        if self._browser is not None:
            return

        from playwright.async_api import async_playwright

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.headless)
        logger.info("Browser started")

    async def render(self, url: str) -> str:
        await self._ensure_browser()
        assert self._browser is not None

        context = await self._browser.new_context(
            user_agent=BROWSER_USER_AGENT,
            viewport={"width": 1920, "height": 1080},
            locale="en-US",
            timezone_id="America/Los_Angeles",
        )
        try:
            page = await context.new_page()
            page.set_default_timeout(self.timeout_s * 1000)
            await page.goto(url, wait_until="networkidle", timeout=self.timeout_s * 1000)
            await page.wait_for_timeout(self.settle_ms)
            return await page.content()
        except Exception as e:
            raise FetchError(url, str(e)) from e
        finally:
            await context.close()

    async def close(self) -> None:
        """Close browser and release resources."""
        if self._browser:
            try:
                await self._browser.close()
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
            self._browser = None

        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping playwright: {e}")
            self._playwright = None
