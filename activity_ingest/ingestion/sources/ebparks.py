"""
East Bay Regional Park District calendar.

Calendar pages are plain HTML; each card links to an ActiveCommunities
detail page that only renders client-side, so detail pages go through the
injected PageRenderer.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass

from bs4 import BeautifulSoup, Tag

from activity_ingest.ingestion.adapters.base_adapter import (
    ExtractedFields,
    SourceAdapter,
    SourceConfig,
    SourceItem,
    SourceKind,
)
from activity_ingest.ingestion.engines.http import HttpFetcher
from activity_ingest.ingestion.engines.renderer import PageRenderer, PlaywrightRenderer
from activity_ingest.ingestion.normalization.age import extract_age_range
from activity_ingest.ingestion.normalization.dates import parse_listing_date
from activity_ingest.ingestion.normalization.price import FREE, SEE_WEBSITE, PriceParser
from activity_ingest.ingestion.normalization.tags import infer_tags, rule
from activity_ingest.ingestion.normalization.text import container_text
from activity_ingest.ingestion.registry import register_source
from activity_ingest.schemas.listing import ListingType, NaturalKeyType

ORIGIN = "https://www.ebparks.org"
CALENDAR_URL = f"{ORIGIN}/calendar"
MAX_PAGES = 10
PAGE_DELAY_S = 2.0

CARD_SELECTOR = 'a[href*="activecommunities.com/ebparks/Activity_Search"]'
DESCRIPTION_SELECTOR = ".catalog-description__body"
ACTIVITY_ID_PATTERN = re.compile(r"Activity_Search/(\d+)")
WEEKDAY_PATTERN = re.compile(r"(?:Monday|Tuesday|Wednesday|Thursday|Friday|Saturday|Sunday)", re.I)
CITY_SUFFIX_PATTERN = re.compile(r",\s*[A-Z][a-z]+$")
FOOTER_PATTERN = re.compile(r"sign in|create an account|privacy policy|©", re.I)

DEFAULT_LOCATION = "East Bay Regional Park"
DEFAULT_CITY = "East Bay"
DROP_IN_DESCRIPTION = (
    "Drop-in program - no registration required. Visit the East Bay Regional "
    "Park District website for more details."
)
DEFAULT_DESCRIPTION = (
    "Visit the East Bay Regional Park District website for full event details "
    "and registration information."
)

TAG_RULES = [
    rule(r"hike|walk", "Hiking"),
    rule(r"bird|wildlife", "Wildlife"),
    rule(r"kids|family|children", "Family-Friendly"),
    rule(r"bike|cycling", "Biking"),
    rule(r"camp", "Camping"),
    rule(r"farm", "Farm", "Educational"),
    rule(r"art|craft", "Arts & Crafts"),
]


@dataclass
class CalendarCard:
    """One event card from a calendar listing page."""

    title: str
    url: str
    date_text: str = ""
    location_text: str = ""
    image: str | None = None
    is_drop_in: bool = False


def parse_location(location_text: str | None) -> tuple[str, str]:
    """Split "Park Name, City" into (park, city) with district-wide fallbacks."""
    if not location_text:
        return DEFAULT_LOCATION, DEFAULT_CITY
    parts = [p.strip() for p in location_text.split(",")]
    park = parts[0] or DEFAULT_LOCATION
    city = parts[1] if len(parts) > 1 and parts[1] else DEFAULT_CITY
    return park, city


def activity_id(url: str) -> str | None:
    match = ACTIVITY_ID_PATTERN.search(url)
    return match.group(1) if match else None


def parse_calendar_page(html: str) -> list[CalendarCard]:
    soup = BeautifulSoup(html, "lxml")
    cards = []
    for link in soup.select(CARD_SELECTOR):
        card = _parse_card(link)
        if card is not None:
            cards.append(card)
    return cards


def _parse_card(link: Tag) -> CalendarCard | None:
    url = link.get("href")
    h3 = link.find("h3")
    title = h3.get_text(" ", strip=True) if h3 else ""
    if not title or not url:
        return None

    date_text = location_text = ""
    for div in link.find_all("div"):
        text = div.get_text(" ", strip=True)
        if WEEKDAY_PATTERN.search(text):
            date_text = text
        elif CITY_SUFFIX_PATTERN.search(text):
            location_text = text

    if not date_text or not location_text:
        after_title = []
        seen_title = False
        for child in link.find_all(recursive=False):
            if child.name == "h3":
                seen_title = True
            elif seen_title and child.name == "div":
                text = child.get_text(" ", strip=True)
                if text and text != "Drop-in Program":
                    after_title.append(text)
        if after_title and not date_text:
            date_text = after_title[0]
        if len(after_title) > 1 and not location_text:
            location_text = after_title[1]

    image = None
    img = link.find("img")
    if img is not None:
        src = img.get("src") or ""
        if src and "drop-in_icon" not in src:
            image = src if src.startswith("http") else f"{ORIGIN}{src}"

    is_drop_in = any(
        "drop-in" in (i.get("alt") or "").lower() or "drop-in_icon" in (i.get("src") or "")
        for i in link.find_all("img")
    )

    return CalendarCard(
        title=title,
        url=url,
        date_text=date_text,
        location_text=location_text,
        image=image,
        is_drop_in=is_drop_in,
    )


@register_source("ebparks")
class EBParksAdapter(SourceAdapter):
    """East Bay Regional Park District programs, keyed by ActiveCommunities activity id."""

    def __init__(
        self,
        fetcher: HttpFetcher | None = None,
        renderer: PageRenderer | None = None,
    ):
        super().__init__(fetcher)
        self._owns_renderer = renderer is None
        self.renderer = renderer or PlaywrightRenderer()

    def static_config(self) -> SourceConfig:
        return SourceConfig(
            source_id="ebparks",
            name="East Bay Regional Park District",
            kind=SourceKind.HTML,
            key_type=NaturalKeyType.GENERATED,
            key_prefix="ebparks",
            organizer="East Bay Regional Park District",
            default_type=ListingType.ACTIVITY,
            default_price=SEE_WEBSITE,
            default_place_type="Park",
            default_location={"state": "CA"},
            base_tags=["East Bay Regional Park District", "Outdoor", "Nature"],
            item_delay_s=2.0,
        )

    async def fetch_items(self) -> list[SourceItem]:
        items: list[SourceItem] = []
        for page_number in range(MAX_PAGES):
            if page_number > 0:
                await self.sleep(PAGE_DELAY_S)
            url = CALENDAR_URL if page_number == 0 else f"{CALENDAR_URL}?page={page_number}"
            page = await self.fetcher.get(url)
            if not page.ok:
                self.logger.warning(f"Calendar page {page_number + 1} failed: {page.error}")
                break

            cards = parse_calendar_page(page.text)
            self.logger.info(f"Found {len(cards)} events on page {page_number + 1}")
            if not cards:
                break

            for card in cards:
                items.append(
                    SourceItem(
                        url=card.url,
                        payload=asdict(card),
                        start_hint=parse_listing_date(card.date_text),
                    )
                )
        return items

    async def extract_fields(self, item: SourceItem) -> ExtractedFields:
        card = CalendarCard(**item.payload)
        html = await self.renderer.render(card.url)
        return self.parse_detail(card, html)

    def parse_detail(self, card: CalendarCard, html: str) -> ExtractedFields:
        """Combine calendar-card fields with the rendered detail page."""
        soup = BeautifulSoup(html, "lxml")
        body_text = soup.body.get_text("\n") if soup.body else soup.get_text("\n")

        description = self._safe("description", self._description, soup, card, body_text)
        if not description:
            description = DROP_IN_DESCRIPTION if card.is_drop_in else DEFAULT_DESCRIPTION

        park, city = parse_location(card.location_text)
        tags = infer_tags(
            f"{card.title} {description}",
            TAG_RULES,
            base_tags=self.config.base_tags + (["Drop-in", "Free"] if card.is_drop_in else []),
        )

        return ExtractedFields(
            title=card.title,
            description=description,
            start_date=parse_listing_date(card.date_text),
            price=self._safe("price", self._price, card, body_text),
            age_range=self._safe("age_range", extract_age_range, body_text),
            # images are assigned later by the image enrichment pass
            image=None,
            tags=tags,
            location_name=park,
            city=city,
            website=card.url,
            source_ref=activity_id(card.url),
        )

    @staticmethod
    def _description(soup: BeautifulSoup, card: CalendarCard, body_text: str) -> str | None:
        description = container_text(soup.select_one(DESCRIPTION_SELECTOR))
        if description and len(description) >= 50:
            return description

        lines = [line.strip() for line in body_text.split("\n") if line.strip()]
        collected: list[str] = []
        started = False
        for line in lines:
            if card.title in line or re.search(r"description", line, re.I):
                started = True
                continue
            if FOOTER_PATTERN.search(line):
                break
            if started and 30 < len(line) < 1000:
                collected.append(line)
                if len(collected) >= 10:
                    break
        return "\n\n".join(collected) or description

    @staticmethod
    def _price(card: CalendarCard, body_text: str) -> str:
        lowered = body_text.lower()
        if "free" in lowered and ("admission" in lowered or "no fee" in lowered):
            return FREE
        if "$" in body_text:
            amount = PriceParser.first_dollar_amount(body_text)
            if amount:
                return amount
        return FREE if card.is_drop_in else SEE_WEBSITE

    async def close(self) -> None:
        await super().close()
        if self._owns_renderer:
            await self.renderer.close()
