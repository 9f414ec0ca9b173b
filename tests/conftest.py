"""
Shared pytest fixtures for the activity ingestion test suite.

Provides an in-memory ListingStore, a canned-response fetcher, and a fixed
run clock so nothing touches the network or the real listings table.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from activity_ingest.ingestion.engines.http import PageFetchResult
from activity_ingest.ingestion.storage import ListingStore

FIXED_NOW = datetime(2026, 6, 1, 17, 0, tzinfo=timezone.utc)


class InMemoryListingStore(ListingStore):
    """ListingStore test double keeping rows in a dict keyed by id."""

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None):
        self.rows: Dict[int, Dict[str, Any]] = {}
        self.inserts: List[Dict[str, Any]] = []
        self.updates: List[tuple] = []
        self.lookups: List[tuple] = []
        self.hidden_batches: List[List[Any]] = []
        self._next_id = 1
        for row in rows or []:
            self._add(dict(row))

    def _add(self, row: Dict[str, Any]) -> int:
        listing_id = row.get("id") or self._next_id
        self._next_id = max(self._next_id, listing_id) + 1
        row["id"] = listing_id
        self.rows[listing_id] = row
        return listing_id

    def find_id(self, column: str, value: str) -> Any:
        self.lookups.append((column, value))
        for listing_id, row in self.rows.items():
            if row.get(column) == value:
                return listing_id
        return None

    def insert(self, row: Dict[str, Any]) -> Any:
        self.inserts.append(dict(row))
        return self._add(dict(row))

    def update(self, listing_id: Any, row: Dict[str, Any]) -> None:
        self.updates.append((listing_id, dict(row)))
        self.rows[listing_id].update(row)

    def used_photo_ids(self) -> set:
        return {r["unsplash_photo_id"] for r in self.rows.values() if r.get("unsplash_photo_id")}

    def listings_without_image(self, limit: int) -> List[Dict[str, Any]]:
        return [dict(r) for r in self.rows.values() if r.get("image") is None][:limit]

    def stale_listing_ids(self, now: datetime, offset: int, page_size: int) -> List[Any]:
        stale = [
            listing_id
            for listing_id, r in sorted(self.rows.items())
            if r.get("start_date") and datetime.fromisoformat(r["start_date"]) < now
            and not r.get("hidden")
        ]
        return stale[offset : offset + page_size]

    def hide(self, listing_ids: List[Any]) -> None:
        self.hidden_batches.append(list(listing_ids))
        for listing_id in listing_ids:
            self.rows[listing_id]["hidden"] = True


class FakeFetcher:
    """HttpFetcher stand-in serving canned HTML by URL."""

    def __init__(self, pages: Optional[Dict[str, str]] = None):
        self.pages = dict(pages or {})
        self.requests: List[tuple] = []
        self.closed = False

    async def get(self, url: str, params: Optional[dict] = None) -> PageFetchResult:
        self.requests.append((url, params))
        key = url
        if params and "page" in params:
            key = f"{url}?page={params['page']}"
        html = self.pages.get(key)
        if html is None:
            return PageFetchResult(
                ok=False, url=url, final_url=url, status_code=404, html=None, error="HTTP 404"
            )
        return PageFetchResult(ok=True, url=url, final_url=url, status_code=200, html=html)

    async def close(self) -> None:
        self.closed = True


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def store():
    """Return an empty in-memory listings store."""
    return InMemoryListingStore()


@pytest.fixture
def fixed_now():
    """Return the fixed run-start time used across tests (2026-06-01 10:00 PDT)."""
    return FIXED_NOW


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
