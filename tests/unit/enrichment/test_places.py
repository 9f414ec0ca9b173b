"""
Unit tests for the Google Places details client.
"""

from unittest.mock import MagicMock

import pytest
import requests

from activity_ingest.enrichment.places import GooglePlacesClient


def _client(payload=None, error=None):
    client = GooglePlacesClient("key")
    client._session = MagicMock()
    if error is not None:
        client._session.get.side_effect = error
    else:
        client._session.get.return_value.json.return_value = payload
    return client


class TestGooglePlacesClient:
    """Tests for details lookup."""

    def test_requires_key(self):
        """Should refuse an empty API key."""
        with pytest.raises(ValueError):
            GooglePlacesClient("")

    def test_details(self):
        """Should map photo, hours, rating, phone and website."""
        client = _client(
            {
                "status": "OK",
                "result": {
                    "photos": [{"photo_reference": "ref1"}],
                    "opening_hours": {"weekday_text": ["Monday: Closed", "Tuesday: 9 AM-1 PM"]},
                    "rating": 4.6,
                    "formatted_phone_number": "(510) 555-0100",
                    "website": "https://market.test",
                },
            }
        )

        details = client.details("place-1")

        assert details.photo_url.startswith("https://maps.googleapis.com/maps/api/place/photo")
        assert "photo_reference=ref1" in details.photo_url
        assert "maxwidth=800" in details.photo_url
        assert details.weekday_text == ["Monday: Closed", "Tuesday: 9 AM-1 PM"]
        assert details.rating == 4.6
        assert details.phone == "(510) 555-0100"
        assert details.website == "https://market.test"
        params = client._session.get.call_args.kwargs["params"]
        assert params["place_id"] == "place-1"

    def test_status_not_ok(self):
        """Should return None for a non-OK API status."""
        assert _client({"status": "NOT_FOUND"}).details("x") is None

    def test_request_failure(self):
        """Should return None when the request fails."""
        assert _client(error=requests.Timeout("slow")).details("x") is None

    def test_empty_result(self):
        """Should return empty details for a result with no fields."""
        details = _client({"status": "OK", "result": {}}).details("x")
        assert details.photo_url is None
        assert details.weekday_text == []
        assert details.to_dict()["openingHours"] is None

    def test_details_blob(self):
        """Should shape details for the google_place_details column."""
        details = _client(
            {
                "status": "OK",
                "result": {
                    "photos": [{"photo_reference": "ref1"}],
                    "opening_hours": {"open_now": True, "weekday_text": ["Monday: Closed"]},
                    "rating": 4.2,
                    "user_ratings_total": 88,
                },
            }
        ).details("x")

        blob = details.to_dict()

        assert blob["photos"][0]["url"] == details.photo_url
        assert blob["openingHours"] == {"isOpen": True, "weekdayText": ["Monday: Closed"]}
        assert blob["rating"] == 4.2
        assert blob["userRatingsTotal"] == 88
