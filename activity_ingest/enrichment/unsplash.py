"""
Unsplash image enrichment.

Listings without an image get a stock photo chosen from progressively more
generic searches. Photo ids already assigned to a listing are avoided so the
same picture is not reused across listings while alternatives exist.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from activity_ingest.ingestion.errors import StorageError
from activity_ingest.ingestion.normalization.tags import split_tags
from activity_ingest.ingestion.storage import ListingStore

logger = logging.getLogger(__name__)

SEARCH_URL = "https://api.unsplash.com/search/photos"
PER_PAGE = 10
DEFAULT_BATCH_LIMIT = 50
LISTING_DELAY_S = 0.2
SEARCH_DELAY_S = 0.1

EXCLUDED_TAG_TERMS = ("years old", "Friendly", "English", "Spanish", "Bilingual", "All Ages")
STOP_WORDS = frozenset(
    ["the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"]
)
GENERIC_TERMS = ("kids activities", "children playing", "family events")

# first matching group wins
CATEGORY_PHRASES = [
    (("storytime", "reading", "book"), "children reading books"),
    (("yoga", "tai chi", "exercise"), "kids yoga exercise"),
    (("steam", "maker", "engineering", "science"), "kids science hands-on activities"),
    (("sewing", "craft", "art"), "kids arts crafts"),
    (("music", "sing", "dance"), "kids music dance"),
    (("game", "play"), "kids playing games"),
    (("food", "cooking", "meal"), "kids healthy food"),
    (("library",), "kids library activities"),
]


@dataclass
class UnsplashPhoto:
    id: str
    url: str
    photographer: Optional[str] = None


@dataclass
class EnrichmentResult:
    """Counts for one enrichment batch."""

    processed: int = 0
    updated: int = 0
    failed: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "updated": self.updated,
            "failed": self.failed,
            "errors": self.errors,
        }


def _tags_of(listing: dict[str, Any]) -> list[str]:
    tags = listing.get("tags")
    if isinstance(tags, list):
        return [t.strip() for t in tags if t and t.strip()]
    return split_tags(tags)


def _is_useful_tag(tag: str) -> bool:
    return not any(term in tag for term in EXCLUDED_TAG_TERMS)


def title_keywords(title: str | None) -> str:
    """Up to three significant words from the title."""
    if not title:
        return ""
    words = re.sub(r"[^\w\s]", " ", title.lower()).split()
    return " ".join([w for w in words if len(w) > 3 and w not in STOP_WORDS][:3])


def detect_category_phrase(listing: dict[str, Any]) -> str | None:
    text = f"{listing.get('title') or ''} {', '.join(_tags_of(listing))}".lower()
    for keywords, phrase in CATEGORY_PHRASES:
        if any(k in text for k in keywords):
            return phrase
    return None


def build_search_terms(listing: dict[str, Any]) -> list[str]:
    """Search queries from most to least specific, without repeats."""
    terms: list[str] = []
    all_tags = _tags_of(listing)
    useful = [t for t in all_tags if _is_useful_tag(t)]
    if useful:
        terms.append(" ".join(useful) + " kids")
    if all_tags and _is_useful_tag(all_tags[0]):
        terms.append(f"{all_tags[0]} kids")

    keywords = title_keywords(listing.get("title"))
    if keywords:
        terms.append(f"{keywords} kids")

    category = detect_category_phrase(listing)
    if category:
        terms.append(category)

    terms.extend(GENERIC_TERMS)
    return list(dict.fromkeys(terms))


class UnsplashClient:
    """Photo search against the Unsplash API."""

    def __init__(self, access_key: str, request_timeout: int = 30):
        if not access_key:
            raise ValueError("UnsplashClient requires an access key")
        self.access_key = access_key
        self.request_timeout = request_timeout
        self._session: Optional[requests.Session] = None

    def _get_session(self) -> requests.Session:
        """Get or create HTTP session."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({
                "Accept": "application/json",
                "Authorization": f"Client-ID {self.access_key}",
            })
        return self._session

    def search(self, query: str) -> list[UnsplashPhoto]:
        """
        Search landscape photos for ``query``.

        Returns an empty list on a non-2xx response. Transport errors and
        undecodable bodies propagate so the caller can record them per search.
        """
        response = self._get_session().get(
            SEARCH_URL,
            params={
                "query": query,
                "per_page": PER_PAGE,
                "orientation": "landscape",
                "content_filter": "high",
            },
            timeout=self.request_timeout,
        )
        if not response.ok:
            logger.warning(f"Unsplash search '{query}' returned {response.status_code}")
            return []

        photos = []
        for result in response.json().get("results") or []:
            url = (result.get("urls") or {}).get("regular")
            if result.get("id") and url:
                photos.append(
                    UnsplashPhoto(
                        id=result["id"],
                        url=url,
                        photographer=(result.get("user") or {}).get("name"),
                    )
                )
        return photos

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None


class ImageEnricher:
    """
    Assign Unsplash photos to listings that have no image.

    The set of used photo ids is loaded once per batch and grows as photos
    are assigned, so two listings in the same batch do not get the same photo
    unless a search returns nothing but used photos.
    """

    def __init__(
        self,
        store: ListingStore,
        client: UnsplashClient,
        sleep: Callable[[float], Any] = time.sleep,
    ):
        self.store = store
        self.client = client
        self.sleep = sleep

    def run(self, limit: int = DEFAULT_BATCH_LIMIT) -> EnrichmentResult:
        result = EnrichmentResult()
        used_ids = self.store.used_photo_ids()
        logger.info(f"Found {len(used_ids)} already-used Unsplash photos")

        listings = self.store.listings_without_image(limit)
        logger.info(f"Found {len(listings)} listings without images")

        for index, listing in enumerate(listings):
            if index > 0:
                self.sleep(LISTING_DELAY_S)
            result.processed += 1
            try:
                photo = self.find_photo(listing, used_ids)
                if photo is None:
                    result.failed += 1
                    result.errors.append({"id": listing.get("id"), "error": "All search attempts failed"})
                    continue
                self.store.update(listing["id"], {"image": photo.url, "unsplash_photo_id": photo.id})
            except StorageError as e:
                logger.error(f"Error updating listing {listing.get('id')}: {e}")
                result.failed += 1
                result.errors.append({"id": listing.get("id"), "error": str(e)})
                continue

            used_ids.add(photo.id)
            result.updated += 1
            logger.info(f"Image by {photo.photographer} ({photo.id}) added to: {listing.get('title')}")

        logger.info(
            f"Images added: {result.updated}, failed: {result.failed}, "
            f"unique photos used: {len(used_ids)}"
        )
        return result

    def find_photo(self, listing: dict[str, Any], used_ids: set[str]) -> UnsplashPhoto | None:
        """First unused photo across the search terms, else the first result of the first hit."""
        terms = build_search_terms(listing)
        for attempt, term in enumerate(terms, start=1):
            if attempt > 1:
                self.sleep(SEARCH_DELAY_S)
            try:
                photos = self.client.search(term)
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"Search '{term}' failed: {e}")
                continue
            if not photos:
                logger.debug(f"No results for '{term}', trying next term")
                continue
            for photo in photos:
                if photo.id not in used_ids:
                    return photo
            logger.debug(f"All {len(photos)} results for '{term}' already used, picking first")
            return photos[0]
        return None
