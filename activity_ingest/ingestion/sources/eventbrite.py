"""
Eventbrite kids events across Bay Area cities.

Search pages embed their results as a JSON assignment to ``__SERVER_DATA__``;
the same payload on each event page carries the long-form description and
structured offers used for pricing.
"""

from __future__ import annotations

import json
import re
from typing import Any

from activity_ingest.ingestion.adapters.base_adapter import (
    ExtractedFields,
    SourceAdapter,
    SourceConfig,
    SourceItem,
    SourceKind,
)
from activity_ingest.ingestion.normalization.dates import combine_date_time
from activity_ingest.ingestion.normalization.price import FREE, SEE_WEBSITE, PriceParser
from activity_ingest.ingestion.normalization.tags import infer_tags, rule
from activity_ingest.ingestion.normalization.text import html_to_text
from activity_ingest.ingestion.registry import register_source
from activity_ingest.schemas.listing import ListingType, NaturalKeyType

BAY_AREA_CITIES = [
    "san-francisco",
    "oakland",
    "san-jose",
    "berkeley",
    "palo-alto",
    "mountain-view",
    "sunnyvale",
    "santa-clara",
    "fremont",
    "hayward",
    "san-mateo",
    "redwood-city",
    "cupertino",
    "santa-cruz",
    "sausalito",
    "mill-valley",
]
SEARCH_URL = "https://www.eventbrite.com/d/ca--{city}/kids--events/"
PAGES_PER_CITY = 3
PAGE_DELAY_S = 2.0
CITY_DELAY_S = 3.0

SERVER_DATA_PATTERN = re.compile(r"__SERVER_DATA__\s*=\s*(?=\{)")
AGE_PATTERN = re.compile(
    r"ages?\s*(\d+)-(\d+)|(\d+)\+\s*years?|under\s*(\d+)|toddler|preschool|teen",
    re.IGNORECASE,
)
CATEGORY_PREFIXES = ("EventbriteCategory", "EventbriteSubCategory")

TAG_RULES = [
    rule(r"craft|art|paint|draw|create", "Arts & Crafts"),
    rule(r"music|concert|sing", "Music"),
    rule(r"workshop|class|learn", "Educational"),
    rule(r"outdoor|park|nature|hike", "Outdoor"),
    rule(r"storytime|story time|reading", "Storytime"),
    rule(r"holiday|christmas|halloween|easter", "Holiday"),
    rule(r"free", "Free"),
]


def extract_server_data(html: str) -> dict[str, Any] | None:
    """Decode the JSON object assigned to ``__SERVER_DATA__``, if present."""
    match = SERVER_DATA_PATTERN.search(html)
    if not match:
        return None
    try:
        data, _ = json.JSONDecoder().raw_decode(html, match.end())
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def age_range_for(text: str) -> str | None:
    lowered = text.lower()
    match = AGE_PATTERN.search(lowered)
    if not match:
        return None
    if "toddler" in lowered:
        return "1-3"
    if "preschool" in lowered:
        return "3-5"
    if "teen" in lowered:
        return "13-18"
    return match.group(0)


def description_from_server_data(data: dict[str, Any]) -> str | None:
    """Long-form description from structured content modules, else the page summary."""
    event_description = (data.get("components") or {}).get("eventDescription") or {}
    modules = (event_description.get("structuredContent") or {}).get("modules") or []
    rich = "".join(
        f"{m['text']}\n\n" for m in modules if m.get("type") == "text" and m.get("text")
    )
    if not rich:
        return event_description.get("summary") or None
    return html_to_text(rich)


@register_source("eventbrite")
class EventbriteAdapter(SourceAdapter):
    """Eventbrite search results for kids events, keyed by event URL."""

    def static_config(self) -> SourceConfig:
        return SourceConfig(
            source_id="eventbrite",
            name="Eventbrite",
            kind=SourceKind.EMBEDDED_JSON,
            key_type=NaturalKeyType.WEBSITE,
            organizer="Eventbrite",
            default_type=ListingType.EVENT,
            default_price=SEE_WEBSITE,
            default_location={"state": "CA"},
            source_tag="Eventbrite",
            item_delay_s=1.0,
        )

    async def fetch_items(self) -> list[SourceItem]:
        seen: set[str] = set()
        items: list[SourceItem] = []
        for index, city in enumerate(BAY_AREA_CITIES):
            if index > 0:
                await self.sleep(CITY_DELAY_S)
            for event in await self.search_city(city):
                url = event.get("url")
                if not url or url in seen:
                    continue
                seen.add(url)
                items.append(
                    SourceItem(
                        url=url,
                        payload=event,
                        start_hint=combine_date_time(
                            event.get("start_date"), event.get("start_time")
                        ),
                    )
                )
        self.logger.info(f"Unique events after deduplication: {len(items)}")
        return items

    async def search_city(self, city: str) -> list[dict[str, Any]]:
        """Walk search pages for one city until empty, the page count, or the cap."""
        events: list[dict[str, Any]] = []
        for page_number in range(1, PAGES_PER_CITY + 1):
            if page_number > 1:
                await self.sleep(PAGE_DELAY_S)
            page = await self.fetcher.get(SEARCH_URL.format(city=city), params={"page": page_number})
            if not page.ok:
                self.logger.warning(f"{city} page {page_number}: {page.error}")
                break

            data = extract_server_data(page.text)
            if data is None:
                self.logger.warning(f"{city} page {page_number}: no search data found")
                break

            results = ((data.get("search_data") or {}).get("events") or {})
            found = results.get("results") or []
            if not found:
                break
            events.extend(found)

            page_count = (results.get("pagination") or {}).get("page_count")
            if page_count is not None and page_number >= page_count:
                break
        self.logger.info(f"Total events from {city}: {len(events)}")
        return events

    async def extract_fields(self, item: SourceItem) -> ExtractedFields:
        detail_html = None
        page = await self.fetcher.get(item.url)
        if page.ok:
            detail_html = page.text
        else:
            self.logger.warning(f"Detail page unavailable, using search summary: {page.error}")
        return self.build_fields(item.payload, detail_html)

    def build_fields(self, event: dict[str, Any], detail_html: str | None) -> ExtractedFields:
        """Map a search result plus its optional detail page onto listing fields."""
        name = event.get("name") or ""
        summary = event.get("summary") or ""
        venue = event.get("primary_venue") or {}
        address = venue.get("address") or {}
        summary_text = f"{name} {summary}"

        description = None
        if detail_html:
            data = self._safe("server_data", extract_server_data, detail_html)
            if data:
                description = self._safe("description", description_from_server_data, data)
        description = description or summary or None

        price = None
        if detail_html:
            price = self._safe("price", PriceParser.from_structured, detail_html)
        if price is None:
            price = FREE if "free" in summary_text.lower() else SEE_WEBSITE

        categories = [
            t.get("display_name")
            for t in event.get("tags") or []
            if t.get("prefix") in CATEGORY_PREFIXES and t.get("display_name")
        ]
        tags = infer_tags(
            summary_text.lower(),
            TAG_RULES,
            base_tags=categories,
            source_tag=self.config.source_tag,
        )

        image = (event.get("image") or {}).get("url")
        venue_name = venue.get("name")

        return ExtractedFields(
            title=name or None,
            description=description,
            start_date=combine_date_time(event.get("start_date"), event.get("start_time")),
            price=price,
            age_range=age_range_for(summary_text),
            image=image,
            tags=tags,
            location_name=venue_name,
            street=address.get("address_1"),
            city=address.get("city"),
            state=address.get("region"),
            zip=address.get("postal_code"),
            latitude=_to_float(address.get("latitude")),
            longitude=_to_float(address.get("longitude")),
            website=event.get("url"),
            venue_name=venue_name,
            legacy_type="Online" if event.get("is_online_event") and not venue_name else None,
        )


def _to_float(value: Any) -> float | None:
    try:
        return float(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None
