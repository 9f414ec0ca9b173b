"""
Unit tests for the HttpFetcher and PlaywrightRenderer engines.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from activity_ingest.ingestion.engines.http import BROWSER_USER_AGENT, HttpFetcher
from activity_ingest.ingestion.engines.renderer import PlaywrightRenderer
from activity_ingest.ingestion.errors import FetchError

# =============================================================================
# FIXTURES
# =============================================================================


def _fetcher_with(handler):
    """HttpFetcher whose client is routed through a mock transport."""
    fetcher = HttpFetcher()
    fetcher._client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        headers={"User-Agent": BROWSER_USER_AGENT},
    )
    return fetcher


# =============================================================================
# TEST CLASSES
# =============================================================================


class TestHttpFetcher:
    """Tests for HttpFetcher.get."""

    def test_ok_response(self):
        """Should return the page body for a 2xx response."""
        seen = {}

        def handler(request):
            seen["ua"] = request.headers["user-agent"]
            seen["page"] = request.url.params.get("page")
            return httpx.Response(200, text="<html>ok</html>")

        fetcher = _fetcher_with(handler)
        result = asyncio.run(fetcher.get("https://example.com/e", params={"page": 2}))

        assert result.ok
        assert result.status_code == 200
        assert result.text == "<html>ok</html>"
        assert seen == {"ua": BROWSER_USER_AGENT, "page": "2"}

    def test_http_error_status(self):
        """Should report a non-2xx response without raising."""
        fetcher = _fetcher_with(lambda request: httpx.Response(404, text="missing"))
        result = asyncio.run(fetcher.get("https://example.com/gone"))

        assert not result.ok
        assert result.html is None
        assert result.text == ""
        assert result.error == "HTTP 404"

    def test_transport_error(self):
        """Should turn transport failures into a failed result."""

        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        result = asyncio.run(_fetcher_with(handler).get("https://example.com/slow"))

        assert not result.ok
        assert result.status_code is None
        assert "timed out" in result.error

    def test_close_releases_client(self):
        """Should close and drop the client."""
        fetcher = _fetcher_with(lambda request: httpx.Response(200))
        asyncio.run(fetcher.close())
        assert fetcher._client is None


class TestPlaywrightRenderer:
    """Tests for PlaywrightRenderer with a mocked browser."""

    def _renderer(self, page):
        context = MagicMock()
        context.new_page = AsyncMock(return_value=page)
        context.close = AsyncMock()
        browser = MagicMock()
        browser.new_context = AsyncMock(return_value=context)
        renderer = PlaywrightRenderer(settle_ms=0)
        renderer._browser = browser
        return renderer, context

    def test_render_returns_content(self):
        """Should return the rendered DOM and close the context."""
        page = MagicMock()
        page.goto = AsyncMock()
        page.wait_for_timeout = AsyncMock()
        page.content = AsyncMock(return_value="<html>rendered</html>")
        renderer, context = self._renderer(page)

        html = asyncio.run(renderer.render("https://example.com"))

        assert html == "<html>rendered</html>"
        context.close.assert_awaited_once()

    def test_navigation_timeout_raises_fetch_error(self):
        """Should raise FetchError when navigation fails."""
        page = MagicMock()
        page.goto = AsyncMock(side_effect=TimeoutError("Timeout 30000ms exceeded"))
        renderer, context = self._renderer(page)

        with pytest.raises(FetchError, match="Timeout"):
            asyncio.run(renderer.render("https://example.com/slow"))
        context.close.assert_awaited_once()
