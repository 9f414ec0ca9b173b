"""
Bay Area Discovery Museum events.

Listing page links to one detail page per event; everything else comes from
the detail page HTML.
"""

from __future__ import annotations

from datetime import datetime
from typing import NamedTuple

from bs4 import BeautifulSoup

from activity_ingest.ingestion.adapters.base_adapter import (
    ExtractedFields,
    SourceAdapter,
    SourceConfig,
    SourceItem,
    SourceKind,
)
from activity_ingest.ingestion.engines.http import HttpFetcher
from activity_ingest.ingestion.errors import ExtractionError, FetchError
from activity_ingest.ingestion.normalization.dates import (
    parse_heading_date,
    parse_ticket_date,
)
from activity_ingest.ingestion.normalization.images import extract_image, resolve_url
from activity_ingest.ingestion.normalization.price import PriceParser
from activity_ingest.ingestion.normalization.tags import infer_tags, rule
from activity_ingest.ingestion.normalization.text import paragraph_blocks
from activity_ingest.ingestion.registry import register_source
from activity_ingest.schemas.listing import ListingType, NaturalKeyType

ORIGIN = "https://bayareadiscoverymuseum.org"
EVENTS_URL = f"{ORIGIN}/events/"
TITLE_SUFFIX = " - Bay Area Discovery Museum"


class PriceScan(NamedTuple):
    value: str | None
    page_mentions_free: bool


TAG_RULES = [
    rule(r"art", "Arts & Crafts"),
    rule(r"music", "Music"),
    rule(r"science", "STEM"),
]


@register_source("badm")
class BADMAdapter(SourceAdapter):
    """
    Scrapes bayareadiscoverymuseum.org event pages.

    The legacy importer's price scan read a page-text variable that was never
    assigned, so every item failed at that step. ``scan_page_text_for_price``
    defaults to False to keep that behavior: the price step raises and the
    item is counted as an error. Set it to True to scan the detail page's
    visible text instead.
    """

    def __init__(
        self,
        fetcher: HttpFetcher | None = None,
        scan_page_text_for_price: bool = False,
    ):
        super().__init__(fetcher)
        self.scan_page_text_for_price = scan_page_text_for_price

    def static_config(self) -> SourceConfig:
        return SourceConfig(
            source_id="badm",
            name="Bay Area Discovery Museum",
            kind=SourceKind.HTML,
            key_type=NaturalKeyType.WEBSITE,
            organizer="Bay Area Discovery Museum",
            default_type=ListingType.ACTIVITY,
            default_price="See website",
            default_age_range="0-10",
            default_place_type="Museum",
            default_location={
                "location_name": "Bay Area Discovery Museum",
                "street": "557 McReynolds Rd",
                "city": "Sausalito",
                "state": "CA",
                "zip": "94965",
            },
            base_tags=["Bay Area Discovery Museum", "Museum", "Educational"],
            item_delay_s=2.0,
        )

    async def fetch_items(self) -> list[SourceItem]:
        page = await self.fetcher.get(EVENTS_URL)
        if not page.ok:
            raise FetchError(EVENTS_URL, page.error or "unknown error")
        return [SourceItem(url=url) for url in self.parse_event_urls(page.text)]

    @staticmethod
    def parse_event_urls(html: str) -> list[str]:
        """Absolute detail-page URLs in page order, excluding the listing itself."""
        soup = BeautifulSoup(html, "lxml")
        urls: list[str] = []
        for a in soup.select('a[href*="/events/"]'):
            href = (a.get("href") or "").strip()
            if not href or href.endswith("/events/"):
                continue
            url = resolve_url(href, ORIGIN)
            if url and url not in urls:
                urls.append(url)
        return urls

    async def extract_fields(self, item: SourceItem) -> ExtractedFields:
        page = await self.fetcher.get(item.url)
        if not page.ok:
            raise FetchError(item.url, page.error or "unknown error")
        return self.parse_detail(page.text, item.url, now=self.now())

    def parse_detail(self, html: str, url: str, now: datetime) -> ExtractedFields:
        soup = BeautifulSoup(html, "lxml")

        title = self._safe("title", self._title, soup)
        description = self._safe("description", self._description, soup)
        start_date = self._safe("start_date", self._start_date, soup, now)
        image = self._safe("image", extract_image, soup, ORIGIN)

        price = self._price(soup)
        text = f"{title or ''} {description or ''}"
        tags = infer_tags(text, TAG_RULES, base_tags=self.config.base_tags)
        if price.page_mentions_free:
            tags.append("Free")

        return ExtractedFields(
            title=title,
            description=description,
            start_date=start_date,
            price=price.value,
            image=image,
            tags=tags,
            website=url,
        )

    @staticmethod
    def _title(soup: BeautifulSoup) -> str | None:
        h1 = soup.find("h1")
        if h1 and h1.get_text(strip=True):
            return h1.get_text(" ", strip=True)
        if soup.title and soup.title.string:
            return soup.title.string.replace(TITLE_SUFFIX, "").strip() or None
        return None

    @staticmethod
    def _description(soup: BeautifulSoup) -> str | None:
        blocks = paragraph_blocks(soup, min_length=50)[:3]
        return "\n\n".join(blocks) or None

    @staticmethod
    def _start_date(soup: BeautifulSoup, now: datetime) -> datetime | None:
        ticket = soup.select_one('a[href*="date="]')
        if ticket is not None:
            parsed = parse_ticket_date(ticket.get("href"))
            if parsed:
                return parsed

        for h3 in soup.find_all("h3"):
            parsed = parse_heading_date(h3.get_text(" ", strip=True), now)
            if parsed:
                return parsed
        return None

    def _price(self, soup: BeautifulSoup) -> PriceScan:
        if not self.scan_page_text_for_price:
            raise ExtractionError(
                "price scan has no page text to read; enable scan_page_text_for_price"
            )
        page_text = soup.get_text(" ", strip=True)
        return PriceScan(
            value=PriceParser.from_text(page_text),
            page_mentions_free="free" in page_text.lower(),
        )
