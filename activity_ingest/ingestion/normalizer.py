"""
Record Normalizer.

Pure mapping from (extracted fields, static source config) to a canonical
``Listing``. Source constants fill whatever extraction could not determine;
the title is never defaulted.
"""

from __future__ import annotations

import hashlib

from activity_ingest.ingestion.adapters.base_adapter import ExtractedFields, SourceConfig
from activity_ingest.ingestion.normalization.place_type import determine_category
from activity_ingest.ingestion.normalization.tags import dedupe
from activity_ingest.ingestion.normalization.text import clean_whitespace
from activity_ingest.schemas.listing import Listing, NaturalKeyType


def generated_key(prefix: str, source_ref: str | None = None, url: str | None = None) -> str | None:
    """
    Build ``<prefix>_<id>`` from an upstream identifier, or from a short
    hash of the URL when no identifier is available.
    """
    if source_ref:
        return f"{prefix}_{source_ref}"
    if url:
        digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:12]
        return f"{prefix}_{digest}"
    return None


class RecordNormalizer:
    """Map extracted fields onto the listings schema for one source."""

    def __init__(self, config: SourceConfig):
        self.config = config

    def natural_key(self, fields: ExtractedFields) -> str | None:
        key_type = self.config.key_type
        if key_type == NaturalKeyType.WEBSITE:
            return fields.website or None
        if key_type == NaturalKeyType.RSS_GUID:
            return fields.rss_guid or fields.website or None
        return generated_key(self.config.key_prefix, fields.source_ref, fields.website)

    def normalize(self, fields: ExtractedFields) -> Listing:
        config = self.config
        loc = config.default_location
        title = clean_whitespace(fields.title)
        venue = fields.venue_name or fields.location_name

        place_type = determine_category(
            upstream_types=fields.upstream_categories,
            legacy_type=fields.legacy_type or config.default_place_type,
            venue_name=venue,
            title=title,
            description=fields.description,
        )

        listing = Listing(
            title=title,
            type=fields.listing_type or config.default_type,
            description=fields.description or None,
            start_date=fields.start_date,
            location_name=fields.location_name or loc.get("location_name"),
            street=fields.street or loc.get("street"),
            city=fields.city or loc.get("city"),
            state=fields.state or loc.get("state"),
            zip=fields.zip or loc.get("zip"),
            latitude=fields.latitude,
            longitude=fields.longitude,
            price=fields.price or config.default_price,
            age_range=fields.age_range or config.default_age_range,
            organizer=fields.organizer or config.organizer,
            website=fields.website,
            image=fields.image,
            tags=dedupe(fields.tags),
            place_type=place_type.value,
            phone=fields.phone,
            rating=fields.rating,
            place_id=fields.place_id,
            google_place_details=fields.place_details,
            place_details_updated_at=fields.place_details_updated_at,
        )

        key = self.natural_key(fields)
        if config.key_type == NaturalKeyType.RSS_GUID:
            listing.rss_guid = key
        elif config.key_type == NaturalKeyType.GENERATED:
            listing.airtable_id = key
        return listing
