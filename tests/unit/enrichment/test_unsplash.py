"""
Unit tests for Unsplash image enrichment.
"""

from unittest.mock import MagicMock

import pytest
import requests
from conftest import InMemoryListingStore

from activity_ingest.enrichment.unsplash import (
    GENERIC_TERMS,
    ImageEnricher,
    UnsplashClient,
    UnsplashPhoto,
    build_search_terms,
    title_keywords,
)
from activity_ingest.ingestion.errors import StorageError

# =============================================================================
# FIXTURES
# =============================================================================

P0 = UnsplashPhoto("p0", "https://images.unsplash.com/p0", "Ana")
P1 = UnsplashPhoto("p1", "https://images.unsplash.com/p1", "Ben")
P2 = UnsplashPhoto("p2", "https://images.unsplash.com/p2", "Cy")


@pytest.fixture
def art_store():
    return InMemoryListingStore(
        [
            {"id": 1, "title": "Art Hour", "tags": "Arts & Crafts"},
            {"id": 2, "title": "Art Hour Encore", "tags": "Arts & Crafts"},
            {"id": 3, "title": "Has image", "image": "https://x", "unsplash_photo_id": "p0"},
        ]
    )


# =============================================================================
# TEST CLASSES
# =============================================================================


class TestSearchTerms:
    """Tests for search term construction."""

    def test_terms_most_specific_first(self):
        """Should order tag, title, category and generic terms."""
        listing = {
            "title": "Toddler Storytime at the Library",
            "tags": "Storytime, All Ages, Library Events",
        }
        assert build_search_terms(listing) == [
            "Storytime Library Events kids",
            "Storytime kids",
            "toddler storytime library kids",
            "children reading books",
            *GENERIC_TERMS,
        ]

    def test_terms_without_tags(self):
        """Should fall back to generic terms."""
        assert build_search_terms({"title": "Fun", "tags": None}) == list(GENERIC_TERMS)

    def test_list_tags_accepted(self):
        """Should accept tags as a list."""
        terms = build_search_terms({"title": "x", "tags": ["Music"]})
        assert terms[:2] == ["Music kids", "kids music dance"]

    def test_title_keywords(self):
        """Should keep up to three long non-stop words."""
        assert title_keywords("The Big Family Science Fair!") == "family science fair"
        assert title_keywords(None) == ""


class TestImageEnricher:
    """Tests for the enrichment batch."""

    def test_assigns_unused_photos(self, art_store):
        """Should skip used photo ids, including ones assigned earlier in the batch."""
        client = MagicMock()
        client.search.return_value = [P0, P1, P2]
        sleeps = []

        result = ImageEnricher(art_store, client, sleep=sleeps.append).run(limit=50)

        assert result.to_dict() == {"processed": 2, "updated": 2, "failed": 0, "errors": []}
        assert art_store.rows[1]["unsplash_photo_id"] == "p1"
        assert art_store.rows[1]["image"] == P1.url
        assert art_store.rows[2]["unsplash_photo_id"] == "p2"
        assert sleeps == [0.2]

    def test_reuses_first_photo_when_all_used(self, art_store):
        """Should fall back to the first result when every photo is used."""
        client = MagicMock()
        client.search.return_value = [P0]

        ImageEnricher(art_store, client, sleep=lambda s: None).run()

        assert art_store.rows[1]["unsplash_photo_id"] == "p0"

    def test_no_results_counts_failure(self, art_store):
        """Should record a failure after every term comes back empty."""
        client = MagicMock()
        client.search.return_value = []
        sleeps = []

        result = ImageEnricher(art_store, client, sleep=sleeps.append).run(limit=1)

        assert result.failed == 1
        assert result.errors == [{"id": 1, "error": "All search attempts failed"}]
        assert "image" not in art_store.rows[1]
        assert sleeps.count(0.1) == client.search.call_count - 1

    def test_search_error_moves_to_next_term(self, art_store):
        """Should try the next term after a transport error."""
        client = MagicMock()
        client.search.side_effect = [requests.ConnectionError("reset"), [P1]]

        result = ImageEnricher(art_store, client, sleep=lambda s: None).run(limit=1)

        assert result.updated == 1
        assert art_store.rows[1]["unsplash_photo_id"] == "p1"

    def test_undecodable_body_counted_as_failure(self, art_store):
        """Should count a listing whose searches return non-JSON bodies and keep going."""
        response = MagicMock(ok=True, status_code=200)
        response.json.side_effect = ValueError("Expecting value")
        client = UnsplashClient("key")
        client._session = MagicMock()
        client._session.get.return_value = response

        result = ImageEnricher(art_store, client, sleep=lambda s: None).run(limit=2)

        assert result.processed == 2
        assert result.failed == 2
        assert result.updated == 0
        assert result.errors[0] == {"id": 1, "error": "All search attempts failed"}

    def test_decode_error_moves_to_next_term(self, art_store):
        """Should try the next term after an undecodable response."""
        client = MagicMock()
        client.search.side_effect = [ValueError("Expecting value"), [P1]]

        result = ImageEnricher(art_store, client, sleep=lambda s: None).run(limit=1)

        assert result.updated == 1
        assert art_store.rows[1]["unsplash_photo_id"] == "p1"

    def test_storage_error_counted(self):
        """Should count a rejected update as failed and continue."""
        store = MagicMock()
        store.used_photo_ids.return_value = set()
        store.listings_without_image.return_value = [{"id": 1, "title": "A"}, {"id": 2, "title": "B"}]
        store.update.side_effect = [StorageError("denied"), None]
        client = MagicMock()
        client.search.return_value = [P1, P2]

        result = ImageEnricher(store, client, sleep=lambda s: None).run()

        assert result.failed == 1
        assert result.updated == 1
        assert result.errors[0] == {"id": 1, "error": "denied"}


class TestUnsplashClient:
    """Tests for the search client."""

    def _client(self, response):
        client = UnsplashClient("key")
        client._session = MagicMock()
        client._session.get.return_value = response
        return client

    def test_requires_key(self):
        """Should refuse an empty access key."""
        with pytest.raises(ValueError):
            UnsplashClient("")

    def test_search_parses_results(self):
        """Should return photos with id, regular URL and photographer."""
        response = MagicMock(ok=True)
        response.json.return_value = {
            "results": [
                {"id": "a", "urls": {"regular": "https://u/a"}, "user": {"name": "Dee"}},
                {"id": "b", "urls": {}},
            ]
        }
        client = self._client(response)

        photos = client.search("kids yoga")

        assert photos == [UnsplashPhoto("a", "https://u/a", "Dee")]
        params = client._session.get.call_args.kwargs["params"]
        assert params["query"] == "kids yoga"
        assert params["orientation"] == "landscape"

    def test_search_non_ok(self):
        """Should return no photos for an error response."""
        assert self._client(MagicMock(ok=False, status_code=403)).search("x") == []

    def test_session_sends_client_id(self):
        """Should authorize with the access key."""
        session = UnsplashClient("abc")._get_session()
        assert session.headers["Authorization"] == "Client-ID abc"
