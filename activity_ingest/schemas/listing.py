"""
Canonical Listing schema.

Every source normalizes into this flat model, which maps one-to-one onto the
shared ``listings`` table read by the discovery app.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# ENUMS
# ============================================================================


class ListingType(str, Enum):
    """
    High-level listing type.

    Events have a specific occurrence time; activities and camps are standing
    venues or programs.
    """

    EVENT = "Event"
    ACTIVITY = "Activity"
    CAMP = "Camp"


class PlaceCategory(str, Enum):
    """Coarse place categories shown as filters in the app."""

    PLAYGROUND = "Playground"
    PARK = "Park"
    MUSEUM = "Museum"
    LIBRARY = "Library"
    AMUSEMENT = "Amusement"
    SPORTS_FITNESS = "Sports & Fitness"
    ARTS_CULTURE = "Arts & Culture"
    NATURE = "Nature"
    LEARNING = "Learning"
    COMMUNITY = "Community"
    CAMP = "Camp"
    OTHER = "Other"


class NaturalKeyType(str, Enum):
    """
    Column used to match an incoming listing against existing rows.

    Each source declares exactly one.
    """

    WEBSITE = "website"
    RSS_GUID = "rss_guid"
    GENERATED = "airtable_id"

    @property
    def column(self) -> str:
        return self.value


# ============================================================================
# LISTING
# ============================================================================


class Listing(BaseModel):
    """
    One discoverable family activity, event, or camp.

    ``title`` is optional at the model level: a listing without a title is a
    skip decided by the run driver, never a placeholder.
    """

    model_config = ConfigDict(
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "title": "Toddler Storytime",
                "type": "Event",
                "start_date": "2026-07-15T10:30:00-07:00",
                "location_name": "Downtown Library",
                "city": "Santa Cruz",
                "state": "CA",
                "price": "Free",
                "age_range": "0-5",
                "organizer": "Santa Cruz Public Libraries",
                "website": "https://santacruzpl.libnet.info/event/123",
                "tags": ["Storytime", "Library Events"],
                "place_type": "Library",
            }
        },
    )

    # ---- IDENTITY ----
    website: Optional[str] = None
    rss_guid: Optional[str] = None
    airtable_id: Optional[str] = Field(
        default=None, description="Generated key for sources without stable URLs"
    )
    place_id: Optional[str] = Field(default=None, description="Google Places id")

    # ---- CORE ----
    title: Optional[str] = None
    type: ListingType = ListingType.EVENT
    description: Optional[str] = None
    start_date: Optional[datetime] = None

    # ---- LOCATION ----
    location_name: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # ---- DISPLAY ----
    price: Optional[str] = None
    age_range: Optional[str] = None
    organizer: Optional[str] = None
    image: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    place_type: Optional[str] = None
    phone: Optional[str] = None
    rating: Optional[float] = None
    google_place_details: Optional[Dict[str, Any]] = None
    place_details_updated_at: Optional[datetime] = None

    @field_validator("start_date")
    def require_offset(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.utcoffset() is None:
            raise ValueError("start_date must carry an explicit UTC offset")
        return v

    @field_validator("latitude")
    def validate_latitude(cls, v):
        if v is not None and not -90 <= v <= 90:
            raise ValueError("Latitude must be between -90 and 90")
        return v

    @field_validator("longitude")
    def validate_longitude(cls, v):
        if v is not None and not -180 <= v <= 180:
            raise ValueError("Longitude must be between -180 and 180")
        return v

    def key_value(self, key_type: NaturalKeyType) -> Optional[str]:
        """Return this listing's natural key for the given key type."""
        return getattr(self, key_type.column)

    @property
    def tag_set(self) -> set:
        return {t.strip() for t in self.tags if t and t.strip()}

    def to_row(self) -> Dict[str, Any]:
        """
        Serialize to a table row.

        Tags are comma-joined, timestamps rendered as ISO-8601 with offset,
        and null fields dropped so an update never blanks a populated column.
        """
        data = self.model_dump()
        row: Dict[str, Any] = {}
        for key, value in data.items():
            if key == "tags":
                value = ", ".join(t for t in value if t) or None
            elif isinstance(value, datetime):
                value = value.isoformat()
            if value is None:
                continue
            row[key] = value
        return row
