"""
Listings storage boundary.

The pipeline depends only on ``ListingStore``; ``SupabaseListingStore`` is
the production implementation over the shared ``listings`` table. Clients are
constructed by the caller and passed in.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from postgrest.exceptions import APIError
from supabase import Client, create_client

from activity_ingest.configs.settings import Settings, get_settings
from activity_ingest.ingestion.errors import StorageError

logger = logging.getLogger(__name__)

LISTINGS_TABLE = "listings"

T = TypeVar("T")


class ListingStore(ABC):
    """Minimal CRUD contract the ingestion and enrichment passes need."""

    @abstractmethod
    def find_id(self, column: str, value: str) -> Any | None:
        """Return the id of the single row whose ``column`` equals ``value``."""

    @abstractmethod
    def insert(self, row: dict[str, Any]) -> Any:
        """Insert a row and return its id."""

    @abstractmethod
    def update(self, listing_id: Any, row: dict[str, Any]) -> None:
        """Overwrite the given fields of one row."""

    @abstractmethod
    def used_photo_ids(self) -> set[str]:
        """All non-null ``unsplash_photo_id`` values."""

    @abstractmethod
    def listings_without_image(self, limit: int) -> list[dict[str, Any]]:
        """Listings whose ``image`` is null, with id, title, tags, type and description."""

    @abstractmethod
    def stale_listing_ids(self, now: datetime, offset: int, page_size: int) -> list[Any]:
        """Ids of visible listings whose start_date is before ``now``, one page at a time."""

    @abstractmethod
    def hide(self, listing_ids: list[Any]) -> None:
        """Set ``hidden = true`` on the given rows."""


class SupabaseListingStore(ListingStore):
    """ListingStore backed by a supabase-py client."""

    def __init__(self, client: Client, table: str = LISTINGS_TABLE):
        self.client = client
        self.table = table

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SupabaseListingStore":
        url, key = (settings or get_settings()).require_supabase()
        return cls(create_client(url, key))

    def _execute(self, action: str, build: Callable[[], T]) -> T:
        try:
            return build()
        except APIError as e:
            raise StorageError(f"{action} on {self.table} failed: {e.message}") from e

    def find_id(self, column: str, value: str) -> Any | None:
        resp = self._execute(
            "select",
            lambda: self.client.table(self.table)
            .select("id")
            .eq(column, value)
            .limit(1)
            .execute(),
        )
        return resp.data[0]["id"] if resp.data else None

    def insert(self, row: dict[str, Any]) -> Any:
        resp = self._execute(
            "insert", lambda: self.client.table(self.table).insert(row).execute()
        )
        if not resp.data:
            raise StorageError(f"insert on {self.table} returned no row")
        return resp.data[0].get("id")

    def update(self, listing_id: Any, row: dict[str, Any]) -> None:
        self._execute(
            "update",
            lambda: self.client.table(self.table).update(row).eq("id", listing_id).execute(),
        )

    def used_photo_ids(self) -> set[str]:
        resp = self._execute(
            "select",
            lambda: self.client.table(self.table)
            .select("unsplash_photo_id")
            .not_.is_("unsplash_photo_id", "null")
            .execute(),
        )
        return {r["unsplash_photo_id"] for r in resp.data or [] if r.get("unsplash_photo_id")}

    def listings_without_image(self, limit: int) -> list[dict[str, Any]]:
        resp = self._execute(
            "select",
            lambda: self.client.table(self.table)
            .select("id, title, tags, type, description")
            .is_("image", "null")
            .limit(limit)
            .execute(),
        )
        return list(resp.data or [])

    def stale_listing_ids(self, now: datetime, offset: int, page_size: int) -> list[Any]:
        resp = self._execute(
            "select",
            lambda: self.client.table(self.table)
            .select("id")
            .lt("start_date", now.isoformat())
            .or_("hidden.is.null,hidden.eq.false")
            .range(offset, offset + page_size - 1)
            .execute(),
        )
        return [r["id"] for r in resp.data or []]

    def hide(self, listing_ids: list[Any]) -> None:
        if not listing_ids:
            return
        self._execute(
            "update",
            lambda: self.client.table(self.table)
            .update({"hidden": True})
            .in_("id", listing_ids)
            .execute(),
        )
