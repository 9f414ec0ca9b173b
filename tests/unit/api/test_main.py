"""
Unit tests for the scheduled-job HTTP routes.
"""

from unittest.mock import MagicMock, patch

import pytest
from conftest import FakeFetcher, InMemoryListingStore
from fastapi.testclient import TestClient

from activity_ingest.api.main import app, get_store
from activity_ingest.configs.settings import Settings, get_settings
from activity_ingest.enrichment.unsplash import UnsplashPhoto
from activity_ingest.ingestion.sources.bibliocommons_rss import BiblioCommonsRSSAdapter, LibraryFeed

AUTH = {"Authorization": "Bearer s3cret"}

RSS = """<?xml version="1.0"?>
<rss version="2.0"><channel><title>t</title><link>https://l</link><description>d</description>
<item><title>Lego Lab</title><link>https://lib/e/1</link><guid>g1</guid>
<pubDate>Fri, 01 Jan 2100 18:00:00 GMT</pubDate></item>
</channel></rss>
"""

# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def store():
    return InMemoryListingStore(
        [
            {"id": 1, "title": "Old", "start_date": "2020-01-01T00:00:00+00:00"},
            {"id": 2, "title": "No image", "tags": "Music", "image": None,
             "start_date": "2100-01-01T00:00:00+00:00"},
        ]
    )


@pytest.fixture
def client(store):
    settings = Settings(_env_file=None, CRON_SECRET="s3cret", UNSPLASH_ACCESS_KEY="unsplash")
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# TEST CLASSES
# =============================================================================


class TestAuth:
    """Tests for the cron secret check."""

    def test_health_is_public(self, client):
        """Should answer health checks without auth."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.parametrize("path", ["/ingest-rss", "/fetch-unsplash-images", "/hide-stale-events"])
    def test_missing_secret_rejected(self, client, path):
        """Should reject job routes without the bearer secret."""
        response = client.post(path)
        assert response.status_code == 401
        assert response.json() == {"detail": "Unauthorized"}

    def test_wrong_secret_rejected(self, client):
        """Should reject a wrong secret."""
        response = client.post("/hide-stale-events", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_unset_secret_rejects_everything(self, store):
        """Should reject all job calls when no secret is configured."""
        app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None)
        app.dependency_overrides[get_store] = lambda: store
        try:
            response = TestClient(app).post("/hide-stale-events", headers=AUTH)
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 401


class TestJobs:
    """Tests for the job routes."""

    def test_hide_stale_events(self, client, store):
        """Should hide past listings and report the count."""
        response = client.post("/hide-stale-events", headers=AUTH)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["hidden"] == 1
        assert store.rows[1]["hidden"] is True

    def test_ingest_rss(self, client, store):
        """Should run the feeds and report per-feed counts."""
        feed = LibraryFeed("Palo Alto Library", "https://feeds.test/pa")
        adapter = BiblioCommonsRSSAdapter(fetcher=FakeFetcher({feed.url: RSS}), feeds=[feed])

        with patch("activity_ingest.api.main.create_adapter", return_value=adapter):
            response = client.post("/ingest-rss", headers=AUTH)

        assert response.status_code == 200
        body = response.json()
        assert body["feeds"] == [{"feed": "Palo Alto Library", "created": 1}]
        assert body["totals"]["created"] == 1
        assert store.inserts[0]["rss_guid"] == "g1"

    def test_ingest_rss_all_feeds_failed(self, client):
        """Should return 500 when no feed can be fetched."""
        feed = LibraryFeed("Palo Alto Library", "https://feeds.test/pa")
        adapter = BiblioCommonsRSSAdapter(fetcher=FakeFetcher(), feeds=[feed])

        with patch("activity_ingest.api.main.create_adapter", return_value=adapter):
            response = client.post("/ingest-rss", headers=AUTH)

        assert response.status_code == 500

    def test_fetch_unsplash_images(self, client, store):
        """Should assign photos and return the batch counts."""
        unsplash = MagicMock()
        unsplash.search.return_value = [UnsplashPhoto("p1", "https://u/p1", "Ana")]

        with patch("activity_ingest.api.main.UnsplashClient", return_value=unsplash):
            response = client.post("/fetch-unsplash-images", headers=AUTH)

        assert response.status_code == 200
        body = response.json()
        assert body["processed"] == 2
        assert body["updated"] == 2
        assert store.rows[2]["unsplash_photo_id"] == "p1"
        unsplash.close.assert_called_once()

    def test_fetch_unsplash_requires_key(self, store):
        """Should return 500 without an Unsplash key."""
        app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, CRON_SECRET="s3cret")
        app.dependency_overrides[get_store] = lambda: store
        try:
            response = TestClient(app).post("/fetch-unsplash-images", headers=AUTH)
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 500
