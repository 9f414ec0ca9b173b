"""
Farmers markets from a scraped Google Maps CSV export.

Rows carry name, address, coordinates and usually a Google ``place_id``.
With a places client attached, each row with a place id is enriched from the
Places details endpoint.
"""

from __future__ import annotations

import asyncio
import csv
from collections import Counter
from pathlib import Path
from typing import Any, Optional

from activity_ingest.enrichment.places import GooglePlacesClient
from activity_ingest.ingestion.adapters.base_adapter import (
    ExtractedFields,
    SourceAdapter,
    SourceConfig,
    SourceItem,
    SourceKind,
)
from activity_ingest.ingestion.engines.http import HttpFetcher
from activity_ingest.ingestion.errors import FetchError
from activity_ingest.ingestion.normalization.price import FREE
from activity_ingest.ingestion.normalization.text import slugify
from activity_ingest.ingestion.registry import register_source
from activity_ingest.schemas.listing import ListingType, NaturalKeyType

PLACES_DELAY_S = 0.05
TAGS = ["Farmers Market"]


def read_rows(path: str | Path) -> list[dict[str, str]]:
    """Read the CSV export, trimming every value and dropping blank rows."""
    with open(path, newline="", encoding="utf-8") as f:
        rows = []
        for row in csv.DictReader(f):
            cleaned = {(k or "").strip(): (v or "").strip() for k, v in row.items()}
            if any(cleaned.values()):
                rows.append(cleaned)
    return rows


def _col(row: dict[str, str], *names: str) -> Optional[str]:
    for name in names:
        value = row.get(name)
        if value:
            return value
    return None


def _float(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def market_ref(row: dict[str, str]) -> Optional[str]:
    """Place id when present, else a slug of the market name."""
    place_id = _col(row, "place_id")
    if place_id:
        return place_id
    name = _col(row, "name")
    return slugify(name) if name else None


def map_row(row: dict[str, str]) -> ExtractedFields:
    name = _col(row, "name")
    description = _col(row, "description", "about")
    if not description and row.get("reviews_tags"):
        description = f"Popular for: {row['reviews_tags']}"

    return ExtractedFields(
        title=name,
        description=description,
        image=_col(row, "photo"),
        tags=list(TAGS),
        organizer=_col(row, "owner_title"),
        location_name=name,
        street=_col(row, "street", "address"),
        city=_col(row, "city"),
        state=_col(row, "state_code", "state"),
        zip=_col(row, "postal_code", "zip"),
        latitude=_float(_col(row, "latitude", "lat")),
        longitude=_float(_col(row, "longitude", "lng")),
        phone=_col(row, "phone"),
        rating=_float(_col(row, "rating")),
        website=_col(row, "website"),
        place_id=_col(row, "place_id"),
        source_ref=market_ref(row),
    )


def summarize_by_city(rows: list[dict[str, str]]) -> Counter:
    return Counter(_col(row, "city") or "Unknown" for row in rows)


@register_source("farmers-markets")
class FarmersMarketsAdapter(SourceAdapter):
    """Farmers markets keyed by ``farmersmarket_<place id or name slug>``."""

    def __init__(
        self,
        fetcher: HttpFetcher | None = None,
        csv_path: str | Path | None = None,
        places: GooglePlacesClient | None = None,
    ):
        super().__init__(fetcher)
        self.csv_path = csv_path
        self.places = places
        if places is not None:
            self.config.item_delay_s = PLACES_DELAY_S

    def static_config(self) -> SourceConfig:
        return SourceConfig(
            source_id="farmers-markets",
            name="Farmers markets",
            kind=SourceKind.CSV,
            key_type=NaturalKeyType.GENERATED,
            key_prefix="farmersmarket",
            default_type=ListingType.ACTIVITY,
            default_price=FREE,
            default_age_range="All ages",
            default_place_type="Community",
            default_location={"state": "CA"},
            item_delay_s=0.0,
        )

    async def fetch_items(self) -> list[SourceItem]:
        if not self.csv_path:
            raise FetchError("<csv>", "no CSV path given for farmers markets")
        try:
            rows = read_rows(self.csv_path)
        except OSError as e:
            raise FetchError(str(self.csv_path), str(e)) from e

        self.logger.info(f"Found {len(rows)} records in {self.csv_path}")
        return [
            SourceItem(
                url=_col(row, "website"),
                payload={"row": row, "title": _col(row, "name")},
                requires_fetch=self.places is not None and bool(_col(row, "place_id")),
                group=_col(row, "city") or "Unknown",
            )
            for row in rows
        ]

    async def extract_fields(self, item: SourceItem) -> ExtractedFields:
        row = item.payload["row"]
        fields = map_row(row)
        place_id = _col(row, "place_id")
        if self.places is None or not place_id:
            return fields

        details = await asyncio.to_thread(self.places.details, place_id)
        if details is None:
            return fields
        fields.image = details.photo_url or fields.image
        fields.place_details = details.to_dict()
        fields.place_details_updated_at = self.now()
        fields.rating = details.rating if details.rating is not None else fields.rating
        fields.phone = details.phone or fields.phone
        fields.website = details.website or fields.website
        return fields

    async def close(self) -> None:
        await super().close()
        if self.places is not None:
            self.places.close()
