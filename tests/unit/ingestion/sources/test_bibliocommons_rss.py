"""
Unit tests for the BiblioCommons RSS adapter.
"""

import asyncio
from datetime import datetime, timezone

import pytest
from conftest import FIXED_NOW, FakeFetcher, InMemoryListingStore

from activity_ingest.ingestion.errors import FetchError
from activity_ingest.ingestion.run_driver import RunDriver
from activity_ingest.ingestion.sources.bibliocommons_rss import (
    FEEDS,
    BiblioCommonsRSSAdapter,
    LibraryFeed,
    bc_field,
    entry_image,
    entry_start,
    map_entry,
)

# =============================================================================
# TEST DATA
# =============================================================================

PALO_ALTO = LibraryFeed("Palo Alto Library", "https://feeds.test/paloalto")
SAN_MATEO = LibraryFeed("San Mateo County Library", "https://feeds.test/smcl")

PALO_ALTO_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:bc="http://bibliocommons.com/rss/1.0/modules/event/">
<channel>
  <title>Palo Alto Library Events</title>
  <link>https://paloalto.bibliocommons.com/events</link>
  <description>Upcoming events</description>
  <item>
    <title>Family Storytime</title>
    <link>https://paloalto.bibliocommons.com/events/abc123</link>
    <guid isPermaLink="false">abc123</guid>
    <description><![CDATA[<p>Stories &amp; songs for families.</p>]]></description>
    <category>Storytime</category>
    <category>Kids</category>
    <enclosure url="https://img.bibliocommons.com/abc123.jpg" type="image/jpeg" length="0"/>
    <bc:start_date_local>2026-07-15T10:30:00</bc:start_date_local>
    <bc:location>
      <bc:name>Mitchell Park Library</bc:name>
      <bc:number>3700</bc:number>
      <bc:street>Middlefield Rd</bc:street>
      <bc:city>Palo Alto</bc:city>
      <bc:state>CA</bc:state>
      <bc:zip>94303</bc:zip>
    </bc:location>
  </item>
  <item>
    <title>Spring Book Sale</title>
    <link>https://paloalto.bibliocommons.com/events/old999</link>
    <guid isPermaLink="false">old999</guid>
    <bc:start_date_local>2026-04-01T10:00:00</bc:start_date_local>
  </item>
</channel>
</rss>
"""

FLAT_ENTRY = {
    "title": "Lego Lab",
    "link": "https://smcl.bibliocommons.com/events/lego",
    "id": "lego-1",
    "summary": "<p>Build &amp; play</p>",
    "tags": [{"term": "STEM"}, {"term": "STEM"}, {"term": "Kids"}],
    "bc_start_date_local": "2026-12-05T14:00:00",
    "bc_name": "Belmont Library",
    "bc_number": "1110",
    "bc_street": "Alameda de las Pulgas",
    "bc_city": "Belmont",
    "bc_state": "CA",
    "bc_zip": "94002",
    "bc_latitude": "37.52",
    "bc_longitude": "not-a-number",
    "links": [{"rel": "enclosure", "href": "https://img.test/lego.jpg"}],
}


# =============================================================================
# TEST CLASSES
# =============================================================================


class TestEntryMapping:
    """Tests for mapping feed entries onto fields."""

    def test_map_flat_entry(self):
        """Should read bc fields, address parts and the GUID."""
        fields = map_entry(FLAT_ENTRY, "San Mateo County Library")

        assert fields.title == "Lego Lab"
        assert fields.description == "Build & play"
        assert fields.organizer == "San Mateo County Library"
        assert fields.location_name == "Belmont Library"
        assert fields.street == "1110 Alameda de las Pulgas"
        assert fields.city == "Belmont"
        assert fields.zip == "94002"
        assert fields.latitude == pytest.approx(37.52)
        assert fields.longitude is None
        assert fields.tags == ["STEM", "Kids"]
        assert fields.image == "https://img.test/lego.jpg"
        assert fields.rss_guid == "lego-1"
        assert fields.website == "https://smcl.bibliocommons.com/events/lego"

    def test_nested_location(self):
        """Should read a nested bc_location mapping."""
        entry = {"bc_location": {"bc:name": "Main Library", "city": "San Jose"}}
        assert bc_field(entry, "name") == "Main Library"
        assert bc_field(entry, "city") == "San Jose"
        assert bc_field(entry, "zip") is None

    def test_local_start_is_pacific(self):
        """Should interpret the local start time in Pacific time."""
        start = entry_start({"bc_start_date_local": "2026-12-05T14:00:00"})
        assert start == datetime(2026, 12, 5, 22, 0, tzinfo=timezone.utc)
        assert start.utcoffset().total_seconds() == -8 * 3600

    def test_start_falls_back_to_published(self):
        """Should use the publish date without a local start."""
        start = entry_start({"published": "Wed, 15 Jul 2026 17:00:00 GMT"})
        assert start == datetime(2026, 7, 15, 17, 0, tzinfo=timezone.utc)

    def test_enclosure_image(self):
        """Should prefer enclosure hrefs."""
        assert entry_image({"enclosures": [{"href": "https://img.test/a.jpg"}]}) == "https://img.test/a.jpg"
        assert entry_image({}) is None


class TestFeedFetching:
    """Tests for feed download and parsing."""

    def test_parse_feed_entries(self):
        """Should parse items with their bc namespace fields."""
        adapter = BiblioCommonsRSSAdapter(
            fetcher=FakeFetcher({PALO_ALTO.url: PALO_ALTO_RSS}), feeds=[PALO_ALTO]
        )
        items = asyncio.run(adapter.fetch_items())

        assert [i.payload["title"] for i in items] == ["Family Storytime", "Spring Book Sale"]
        assert all(not i.requires_fetch and i.group == "Palo Alto Library" for i in items)

        fields = asyncio.run(adapter.extract_fields(items[0]))
        assert fields.rss_guid == "abc123"
        assert fields.description == "Stories & songs for families."
        assert fields.start_date == datetime(2026, 7, 15, 17, 30, tzinfo=timezone.utc)
        assert fields.image == "https://img.bibliocommons.com/abc123.jpg"
        assert fields.tags == ["Storytime", "Kids"]
        assert fields.location_name == "Mitchell Park Library"
        assert fields.street == "3700 Middlefield Rd"

    def test_one_failed_feed_skipped(self):
        """Should keep items from feeds that succeed."""
        adapter = BiblioCommonsRSSAdapter(
            fetcher=FakeFetcher({PALO_ALTO.url: PALO_ALTO_RSS}), feeds=[SAN_MATEO, PALO_ALTO]
        )
        items = asyncio.run(adapter.fetch_items())
        assert len(items) == 2

    def test_every_feed_failed(self):
        """Should raise when no feed can be fetched."""
        adapter = BiblioCommonsRSSAdapter(fetcher=FakeFetcher(), feeds=[SAN_MATEO, PALO_ALTO])
        with pytest.raises(FetchError):
            asyncio.run(adapter.fetch_items())

    def test_default_feeds(self):
        """Should ship the three library feeds."""
        assert [f.name for f in FEEDS] == [
            "Palo Alto Library",
            "San Mateo County Library",
            "Santa Clara County Library",
        ]
        assert "audiences=" in FEEDS[2].url


class TestRSSRun:
    """End-to-end runs keyed by GUID."""

    def test_guid_match_updates(self, recording_sleep):
        """Should update an existing GUID row and skip past items without pacing."""
        store = InMemoryListingStore([{"id": 5, "rss_guid": "abc123", "title": "Old title"}])
        adapter = BiblioCommonsRSSAdapter(
            fetcher=FakeFetcher({PALO_ALTO.url: PALO_ALTO_RSS}), feeds=[PALO_ALTO]
        )

        summary = asyncio.run(
            RunDriver(adapter, store, sleep=recording_sleep, clock=lambda: FIXED_NOW).run()
        )

        assert summary.updated == 1
        assert summary.skipped == 1
        assert summary.by_group["Palo Alto Library"] == {"updated": 1, "skipped": 1}
        assert store.rows[5]["title"] == "Family Storytime"
        assert store.rows[5]["organizer"] == "Palo Alto Library"
        assert store.rows[5]["place_type"] == "Library"
        assert recording_sleep.calls == []
