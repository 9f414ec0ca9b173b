"""
Google Places details lookup.

Used by the farmers-market pass to fill photo, rating, phone and website for
rows that carry a ``place_id``, and to store the details blob the app reads
from ``google_place_details``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
PHOTO_URL = "https://maps.googleapis.com/maps/api/place/photo"
DETAIL_FIELDS = "photos,opening_hours,rating,user_ratings_total,formatted_phone_number,website"
PHOTO_MAX_WIDTH = 800


@dataclass
class PlaceDetails:
    """The subset of a Places details response the listings table stores."""

    photo_url: Optional[str] = None
    rating: Optional[float] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    weekday_text: list[str] = field(default_factory=list)
    open_now: Optional[bool] = None
    user_ratings_total: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """Shape stored in the ``google_place_details`` column."""
        return {
            "photos": [{"url": self.photo_url}] if self.photo_url else [],
            "openingHours": (
                {"isOpen": self.open_now, "weekdayText": self.weekday_text}
                if self.weekday_text or self.open_now is not None
                else None
            ),
            "rating": self.rating,
            "userRatingsTotal": self.user_ratings_total,
        }


class GooglePlacesClient:
    """Thin synchronous client for the Places details endpoint."""

    def __init__(self, api_key: str, request_timeout: int = 30):
        if not api_key:
            raise ValueError("GooglePlacesClient requires an API key")
        self.api_key = api_key
        self.request_timeout = request_timeout
        self._session: Optional[requests.Session] = None

    def _get_session(self) -> requests.Session:
        """Get or create HTTP session."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({"Accept": "application/json"})
        return self._session

    def photo_url(self, photo_reference: str) -> str:
        return (
            f"{PHOTO_URL}?maxwidth={PHOTO_MAX_WIDTH}"
            f"&photo_reference={photo_reference}&key={self.api_key}"
        )

    def details(self, place_id: str) -> Optional[PlaceDetails]:
        """
        Fetch details for one place.

        Returns None when the request fails or the API status is not OK.
        """
        try:
            response = self._get_session().get(
                DETAILS_URL,
                params={"place_id": place_id, "fields": DETAIL_FIELDS, "key": self.api_key},
                timeout=self.request_timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Place details request failed for {place_id}: {e}")
            return None

        if data.get("status") != "OK":
            logger.debug(f"Place details for {place_id}: status {data.get('status')}")
            return None
        return self.parse_details(data.get("result") or {})

    def parse_details(self, result: dict[str, Any]) -> PlaceDetails:
        photos = result.get("photos") or []
        opening_hours = result.get("opening_hours") or {}
        weekday_text = list(opening_hours.get("weekday_text") or [])
        photo_ref = photos[0].get("photo_reference") if photos else None

        return PlaceDetails(
            photo_url=self.photo_url(photo_ref) if photo_ref else None,
            rating=result.get("rating"),
            phone=result.get("formatted_phone_number"),
            website=result.get("website"),
            weekday_text=weekday_text,
            open_now=opening_hours.get("open_now"),
            user_ratings_total=result.get("user_ratings_total"),
        )

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
