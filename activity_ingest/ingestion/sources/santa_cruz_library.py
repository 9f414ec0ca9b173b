"""
Santa Cruz Public Libraries events.

The iCal feed supplies the item list and start times; each event's
libnet.info page supplies the richer title, description, address and tags.
"""

from __future__ import annotations

import json
import re
from typing import Any

from bs4 import BeautifulSoup
from ics import Calendar

from activity_ingest.ingestion.adapters.base_adapter import (
    ExtractedFields,
    SourceAdapter,
    SourceConfig,
    SourceItem,
    SourceKind,
)
from activity_ingest.ingestion.errors import FetchError
from activity_ingest.ingestion.normalization.dates import ensure_aware
from activity_ingest.ingestion.normalization.price import FREE
from activity_ingest.ingestion.normalization.tags import dedupe, infer_tags, rule
from activity_ingest.ingestion.normalization.text import paragraph_blocks
from activity_ingest.ingestion.registry import register_source
from activity_ingest.schemas.listing import ListingType, NaturalKeyType

ORIGIN = "https://santacruzpl.libnet.info"
ICAL_FEED_URL = (
    f"{ORIGIN}/feeds?data=eyJmZWVkVHlwZSI6ImljYWwiLCJmaWx0ZXJzIjp7ImxvY2F0aW9uIjpbImFsbCJdLCJh"
    "Z2VzIjpbIkZhbWlseSIsIkJhYnkgMC0yIHllYXJzIiwiS2lkcyAwLTMgeWVhcnMiLCJLaWRzIDMtNSB5ZWFycyIs"
    "IktpZHMgNi0xMSB5ZWFycnMiLCJUd2VlbnMgOC0xMiB5ZWFycyIsIlRlZW5zIDEyLTE4IHllYXJzIl0sInR5cGVz"
    "IjpbImFsbCJdLCJ0YWdzIjpbXSwidGVybSI6IiIsImRheXMiOjF9fQ"
)
EVENT_PAGE_URL = f"{ORIGIN}/event/{{uid}}"
DEFAULT_CITY = "Santa Cruz"

NAV_TEXT_PATTERN = re.compile(
    r"sign up|newsletter|donate|volunteer|email us|suggest a purchase|we're open|"
    r"today's hours|age group:|event type:",
    re.IGNORECASE,
)
ADDRESS_PATTERN = re.compile(r"^(.+?),\s*([^,]+?),\s*([A-Z]{2}),?\s*(\d{5})")
CITY_PATTERN = re.compile(r"Santa Cruz|Aptos|Capitola|Scotts Valley|Felton|Boulder Creek|Live Oak")
AGE_BLOCK_PATTERN = re.compile(r"(\d+)-(\d+)\s*years?|ages?\s*(\d+)-(\d+)|under\s*(\d+)|(\d+)\+", re.I)
AGE_DESCRIPTION_PATTERN = re.compile(
    r"for ages? (\d+)-(\d+)|ages? (\d+)-(\d+)|under (\d+)|(\d+)\+", re.I
)

TAG_RULES = [
    rule(r"storytime|story time", "Storytime"),
    rule(r"craft|art|make|create", "Arts & Crafts"),
    rule(r"teen|tween", "Teens"),
    rule(r"baby|babies|toddler|preschool", "Early Childhood"),
    rule(r"spanish|bilingual|russian|japanese", "Multilingual"),
    rule(r"book club|reading", "Book Club"),
    rule(r"tech|computer|digital", "Technology"),
    rule(r"game|gaming", "Games"),
    rule(r"music", "Music"),
    rule(r"yoga|fitness|exercise", "Wellness"),
]


def parse_feed(ical_text: str) -> list[dict[str, Any]]:
    """Flatten VEVENTs into plain dicts, ordered by start time then uid."""
    calendar = Calendar(ical_text)
    events = sorted(calendar.events, key=lambda e: (e.begin, e.uid or ""))
    entries = []
    for event in events:
        geo = getattr(event, "geo", None)
        entries.append(
            {
                "uid": event.uid,
                "title": event.name,
                "begin": event.begin.datetime if event.begin else None,
                "location": event.location,
                "description": event.description,
                "geo": tuple(geo) if geo else None,
            }
        )
    return entries


def _json_ld_blocks(soup: BeautifulSoup) -> list[dict[str, Any]]:
    blocks = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(script.string or "")
        except (json.JSONDecodeError, TypeError):
            continue
        if isinstance(data, dict):
            blocks.append(data)
    return blocks


def clean_branch_name(text: str | None) -> str | None:
    """Drop trailing dashes and a doubled "Branch - Branch" name."""
    if not text:
        return None
    cleaned = re.sub(r"\s*-\s*$", "", text.strip()).strip()
    parts = re.split(r"\s*-\s*", cleaned)
    if len(parts) >= 2 and parts[0] == parts[1]:
        cleaned = parts[0]
    return cleaned or None


@register_source("santa-cruz-library")
class SantaCruzLibraryAdapter(SourceAdapter):
    """Santa Cruz Public Libraries family events, keyed by event page URL."""

    def static_config(self) -> SourceConfig:
        return SourceConfig(
            source_id="santa-cruz-library",
            name="Santa Cruz Public Libraries",
            kind=SourceKind.ICAL,
            key_type=NaturalKeyType.WEBSITE,
            organizer="Santa Cruz Public Libraries",
            default_type=ListingType.EVENT,
            default_price=FREE,
            default_age_range="All",
            default_place_type="Library",
            default_location={"city": DEFAULT_CITY, "state": "CA"},
            source_tag="Library Events",
            item_delay_s=2.0,
        )

    async def fetch_items(self) -> list[SourceItem]:
        feed = await self.fetcher.get(ICAL_FEED_URL)
        if not feed.ok:
            raise FetchError(ICAL_FEED_URL, feed.error or "unknown error")
        try:
            entries = parse_feed(feed.text)
        except Exception as e:
            raise FetchError(ICAL_FEED_URL, f"unparseable iCal feed: {e}") from e

        self.logger.info(f"Found {len(entries)} events in iCal feed")
        return [
            SourceItem(
                url=EVENT_PAGE_URL.format(uid=entry["uid"]),
                payload=entry,
                start_hint=ensure_aware(entry["begin"]),
            )
            for entry in entries
            if entry.get("uid")
        ]

    async def extract_fields(self, item: SourceItem) -> ExtractedFields:
        page = await self.fetcher.get(item.url)
        html = page.text if page.ok else None
        if html is None:
            self.logger.warning(f"Event page unavailable, using feed fields only: {page.error}")
        return self.build_fields(item.payload, item.url, html)

    def build_fields(self, entry: dict[str, Any], url: str, html: str | None) -> ExtractedFields:
        """Merge feed entry fields with whatever the event page adds."""
        scraped: dict[str, Any] = {}
        if html:
            scraped = self._safe("event_page", self.parse_event_page, html) or {}

        feed_location = entry.get("location")
        if feed_location:
            feed_location = feed_location.split(" - ")[0].strip() or None

        latitude = longitude = None
        geo = entry.get("geo")
        if geo:
            latitude, longitude = float(geo[0]), float(geo[1])

        title = scraped.get("title") or entry.get("title")
        description = scraped.get("description") or entry.get("description")
        categories = scraped.get("categories")
        if categories:
            tags = dedupe([*categories, self.config.source_tag])
        else:
            tags = infer_tags(
                f"{title or ''} {description or ''}",
                TAG_RULES,
                source_tag=self.config.source_tag,
            )

        return ExtractedFields(
            title=title,
            description=description,
            start_date=ensure_aware(entry.get("begin")),
            age_range=scraped.get("age_range") or self._safe(
                "age_range", _age_from_description, description
            ),
            image=scraped.get("image"),
            tags=tags,
            location_name=scraped.get("location_name") or feed_location,
            street=scraped.get("street"),
            city=scraped.get("city"),
            state=scraped.get("state"),
            zip=scraped.get("zip"),
            latitude=latitude,
            longitude=longitude,
            phone=scraped.get("phone"),
            website=url,
        )

    def parse_event_page(self, html: str) -> dict[str, Any]:
        """
        Scrape one event page.

        Every field is read in its own step, so a page that breaks one reader
        still yields the others.
        """
        soup = BeautifulSoup(html, "lxml")
        json_ld = self._safe("json_ld", _json_ld_blocks, soup) or []
        data: dict[str, Any] = {}

        steps = (
            ("title", _page_title),
            ("description", _page_description),
            ("image", _page_image),
            ("location_name", _page_location),
            ("age_range", _page_age),
            ("categories", _page_categories),
            ("phone", _page_phone),
        )
        for name, step in steps:
            value = self._safe(name, step, soup, json_ld)
            if value:
                data[name] = value

        data.update(self._safe("address", _page_address, soup, json_ld) or {})
        return data


def _page_title(soup: BeautifulSoup, json_ld: list[dict[str, Any]]) -> str | None:
    for tag_name in ("h2", "h1"):
        heading = soup.find(tag_name)
        if heading and heading.get_text(strip=True):
            return heading.get_text(" ", strip=True)
    for block in json_ld:
        name = block.get("name")
        if isinstance(name, str) and name:
            return name.replace("&amp;", "&")
    return None


def _page_description(soup: BeautifulSoup, json_ld: list[dict[str, Any]]) -> str | None:
    paragraphs = paragraph_blocks(soup, min_length=50, exclude=(), exclude_pattern=NAV_TEXT_PATTERN)
    if paragraphs:
        return " ".join(paragraphs)
    for block in json_ld:
        text = block.get("description")
        if isinstance(text, str) and len(text) > 20:
            return text.replace("&amp;", "&")
    return None


def _page_image(soup: BeautifulSoup, json_ld: list[dict[str, Any]]) -> str | None:
    img = soup.select_one('img[src*="event"], img[src*="storytime"], .event-image img')
    if img is None or not img.get("src"):
        return None
    src = img["src"]
    return src if src.startswith("http") else f"{ORIGIN}{src}"


def _page_location(soup: BeautifulSoup, json_ld: list[dict[str, Any]]) -> str | None:
    location = soup.select_one('.location, .venue, [class*="location"]')
    if location is None:
        return None
    return clean_branch_name(location.get_text(" ", strip=True))


def _page_age(soup: BeautifulSoup, json_ld: list[dict[str, Any]]) -> str | None:
    age_el = soup.select('.age, [class*="age"]')
    age_text = " ".join(el.get_text(" ", strip=True) for el in age_el).strip()
    if age_text and AGE_BLOCK_PATTERN.search(age_text):
        return age_text
    return None


def _page_categories(soup: BeautifulSoup, json_ld: list[dict[str, Any]]) -> list[str]:
    return [
        el.get_text(" ", strip=True)
        for el in soup.select('.category, .tag, [class*="category"], [class*="tag"]')
        if el.get_text(strip=True)
    ]


def _page_phone(soup: BeautifulSoup, json_ld: list[dict[str, Any]]) -> str | None:
    phone = soup.select_one('a[href^="tel:"]')
    if phone is not None and phone.get_text(strip=True):
        return phone.get_text(strip=True)
    return None


def _page_address(soup: BeautifulSoup, json_ld: list[dict[str, Any]]) -> dict[str, Any]:
    """JSON-LD postal address, else the address block, else a known city name."""
    for block in json_ld:
        location = block.get("location")
        address = location.get("address") if isinstance(location, dict) else None
        if isinstance(address, dict) and address.get("streetAddress"):
            return {
                "street": address["streetAddress"].strip(),
                "city": (address.get("addressLocality") or DEFAULT_CITY).strip(),
                "state": (address.get("addressRegion") or "CA").strip(),
                "zip": (str(address["postalCode"]).strip() if address.get("postalCode") else None),
            }

    address_el = soup.select('.address, [class*="address"], a[href*="maps.google.com"]')
    full_address = " ".join(el.get_text(" ", strip=True) for el in address_el).strip()
    match = ADDRESS_PATTERN.search(full_address) if full_address else None
    if match:
        return {
            "street": match.group(1).strip(),
            "city": match.group(2).strip(),
            "state": match.group(3).strip(),
            "zip": match.group(4),
        }

    city = CITY_PATTERN.search(soup.get_text(" "))
    if city:
        return {"city": city.group(0), "state": "CA"}
    return {}


def _age_from_description(description: str | None) -> str | None:
    if not description:
        return None
    match = AGE_DESCRIPTION_PATTERN.search(description)
    return match.group(0) if match else None
