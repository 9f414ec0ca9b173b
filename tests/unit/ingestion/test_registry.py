"""
Unit tests for the source registry.
"""

import pytest
from conftest import FakeFetcher

from activity_ingest.ingestion.registry import available_sources, create_adapter
from activity_ingest.ingestion.sources.badm import BADMAdapter


class TestRegistry:
    """Tests for source lookup."""

    def test_all_sources_registered(self):
        """Should list every shipped source."""
        assert available_sources() == [
            "badm",
            "bibliocommons-rss",
            "ebparks",
            "eventbrite",
            "farmers-markets",
            "santa-cruz-library",
        ]

    def test_create_adapter_passes_kwargs(self):
        """Should instantiate the registered class with the given arguments."""
        fetcher = FakeFetcher()
        adapter = create_adapter("badm", fetcher=fetcher)
        assert isinstance(adapter, BADMAdapter)
        assert adapter.fetcher is fetcher
        assert adapter.source_id == "badm"

    def test_unknown_source(self):
        """Should raise KeyError naming the available sources."""
        with pytest.raises(KeyError, match="badm"):
            create_adapter("nope")
