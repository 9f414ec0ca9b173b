"""
Base Source Adapter.

Abstract base class defining the interface every ingestion source implements.
The run driver only ever talks to this interface, so each site's heuristics
stay inside its own adapter.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from activity_ingest.ingestion.engines.http import HttpFetcher
from activity_ingest.ingestion.normalization.dates import utc_now
from activity_ingest.schemas.listing import ListingType, NaturalKeyType

T = TypeVar("T")


class SourceKind(str, Enum):
    """Shape of the upstream content."""

    HTML = "html"
    ICAL = "ical"
    RSS = "rss"
    EMBEDDED_JSON = "embedded_json"
    CSV = "csv"


@dataclass
class SourceConfig:
    """
    Static per-source configuration.

    Supplies the defaults the normalizer falls back to when extraction comes
    up empty, and the one natural key type the source is matched on.
    """

    source_id: str
    name: str
    kind: SourceKind
    key_type: NaturalKeyType
    key_prefix: str | None = None
    organizer: str | None = None
    default_type: ListingType = ListingType.EVENT
    default_price: str | None = None
    default_age_range: str | None = None
    default_place_type: str | None = None
    default_location: dict[str, Any] = field(default_factory=dict)
    base_tags: list[str] = field(default_factory=list)
    source_tag: str | None = None
    item_delay_s: float = 2.0
    request_timeout: int = 30

    def __post_init__(self):
        if self.key_type == NaturalKeyType.GENERATED and not self.key_prefix:
            raise ValueError(f"{self.source_id}: generated keys require key_prefix")


@dataclass
class SourceItem:
    """
    One entry from a source's item list.

    ``payload`` carries whatever the listing step already knows (a feed entry,
    a search result, a listing card). ``start_hint`` lets the driver skip past
    events before any detail fetch. ``group`` buckets per-feed counts in the
    run summary.
    """

    url: str | None
    payload: dict[str, Any] = field(default_factory=dict)
    start_hint: datetime | None = None
    requires_fetch: bool = True
    group: str | None = None

    @property
    def label(self) -> str:
        return str(self.payload.get("title") or self.url or "<unnamed item>")


@dataclass
class ExtractedFields:
    """Best-effort bag of fields pulled from one item."""

    title: str | None = None
    description: str | None = None
    start_date: datetime | None = None
    price: str | None = None
    age_range: str | None = None
    image: str | None = None
    tags: list[str] = field(default_factory=list)
    organizer: str | None = None
    listing_type: ListingType | None = None

    # location
    location_name: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    phone: str | None = None
    rating: float | None = None
    place_id: str | None = None
    place_details: dict[str, Any] | None = None
    place_details_updated_at: datetime | None = None

    # natural key inputs
    website: str | None = None
    rss_guid: str | None = None
    source_ref: str | None = None

    # place classification inputs, highest priority first
    upstream_categories: list[str] = field(default_factory=list)
    legacy_type: str | None = None
    venue_name: str | None = None


class SourceAdapter(ABC):
    """
    Abstract base class for ingestion sources.

    Subclasses must implement:
        - static_config(): constants for organizer, defaults and key type
        - fetch_items(): the ordered item list for one run
        - extract_fields(): per-item field extraction, fetching detail pages as needed
    """

    def __init__(self, fetcher: HttpFetcher | None = None):
        """
        Initialize the adapter.

        Args:
            fetcher: HTTP fetcher to use; one is created and owned if omitted
        """
        self.config = self.static_config()
        self.logger = logging.getLogger(f"activity_ingest.source.{self.config.source_id}")
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or HttpFetcher(timeout_s=self.config.request_timeout)
        self.run_started_at: datetime | None = None
        self.sleep = asyncio.sleep

    @property
    def source_id(self) -> str:
        return self.config.source_id

    def now(self) -> datetime:
        """The run-start timestamp when driven by a run, otherwise the current time."""
        return self.run_started_at or utc_now()

    @abstractmethod
    def static_config(self) -> SourceConfig:
        """Return the source's static configuration."""

    @abstractmethod
    async def fetch_items(self) -> list[SourceItem]:
        """
        Retrieve the ordered list of items for this run.

        Raises:
            FetchError: If the initial item list cannot be acquired at all
        """

    @abstractmethod
    async def extract_fields(self, item: SourceItem) -> ExtractedFields:
        """
        Extract fields for one item.

        Missing fields come back as None. Only a total fetch failure raises.
        """

    def _safe(self, step: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T | None:
        """Run one extraction step, turning any failure into a missing field."""
        try:
            return func(*args, **kwargs)
        except Exception as e:
            self.logger.debug(f"Extraction step '{step}' failed: {e}")
            return None

    async def close(self) -> None:
        """Release resources held by the adapter."""
        if self._owns_fetcher:
            await self.fetcher.close()

    async def __aenter__(self) -> "SourceAdapter":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
