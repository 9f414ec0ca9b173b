"""
Place category classification.

Maps Google Places types, legacy free-text ``place_type`` values and keyword
matches on venue/title/description onto the app's coarse place categories.
"""

from __future__ import annotations

from collections.abc import Iterable

from activity_ingest.schemas.listing import PlaceCategory

_P = PlaceCategory

GOOGLE_TYPE_TO_CATEGORY: dict[str, PlaceCategory] = {
    "playground": _P.PLAYGROUND,
    # Park
    "park": _P.PARK,
    "state_park": _P.PARK,
    "national_park": _P.PARK,
    "dog_park": _P.PARK,
    "picnic_ground": _P.PARK,
    "barbecue_area": _P.PARK,
    # Museum
    "museum": _P.MUSEUM,
    "aquarium": _P.MUSEUM,
    "planetarium": _P.MUSEUM,
    "science_museum": _P.MUSEUM,
    "childrens_museum": _P.MUSEUM,
    "library": _P.LIBRARY,
    # Amusement
    "amusement_park": _P.AMUSEMENT,
    "amusement_center": _P.AMUSEMENT,
    "water_park": _P.AMUSEMENT,
    "zoo": _P.AMUSEMENT,
    "theme_park": _P.AMUSEMENT,
    "wildlife_park": _P.AMUSEMENT,
    "video_arcade": _P.AMUSEMENT,
    "bowling_alley": _P.AMUSEMENT,
    "miniature_golf": _P.AMUSEMENT,
    "mini_golf": _P.AMUSEMENT,
    "escape_room": _P.AMUSEMENT,
    "laser_tag": _P.AMUSEMENT,
    "trampoline_park": _P.AMUSEMENT,
    "go_kart_track": _P.AMUSEMENT,
    "ferris_wheel": _P.AMUSEMENT,
    "roller_coaster": _P.AMUSEMENT,
    # Sports & Fitness
    "gym": _P.SPORTS_FITNESS,
    "fitness_center": _P.SPORTS_FITNESS,
    "swimming_pool": _P.SPORTS_FITNESS,
    "ice_skating_rink": _P.SPORTS_FITNESS,
    "skating_rink": _P.SPORTS_FITNESS,
    "sports_complex": _P.SPORTS_FITNESS,
    "sports_club": _P.SPORTS_FITNESS,
    "sports_coaching": _P.SPORTS_FITNESS,
    "athletic_field": _P.SPORTS_FITNESS,
    "stadium": _P.SPORTS_FITNESS,
    "arena": _P.SPORTS_FITNESS,
    "golf_course": _P.SPORTS_FITNESS,
    "tennis_court": _P.SPORTS_FITNESS,
    "basketball_court": _P.SPORTS_FITNESS,
    "soccer_field": _P.SPORTS_FITNESS,
    "skateboard_park": _P.SPORTS_FITNESS,
    "cycling_park": _P.SPORTS_FITNESS,
    "ski_resort": _P.SPORTS_FITNESS,
    "marina": _P.SPORTS_FITNESS,
    # Arts & Culture
    "art_gallery": _P.ARTS_CULTURE,
    "art_studio": _P.ARTS_CULTURE,
    "performing_arts_theater": _P.ARTS_CULTURE,
    "movie_theater": _P.ARTS_CULTURE,
    "concert_hall": _P.ARTS_CULTURE,
    "opera_house": _P.ARTS_CULTURE,
    "philharmonic_hall": _P.ARTS_CULTURE,
    "theater": _P.ARTS_CULTURE,
    "theatre": _P.ARTS_CULTURE,
    "cultural_center": _P.ARTS_CULTURE,
    "cultural_landmark": _P.ARTS_CULTURE,
    "historical_landmark": _P.ARTS_CULTURE,
    "historical_place": _P.ARTS_CULTURE,
    "monument": _P.ARTS_CULTURE,
    "sculpture": _P.ARTS_CULTURE,
    "dance_hall": _P.ARTS_CULTURE,
    "comedy_club": _P.ARTS_CULTURE,
    # Nature
    "botanical_garden": _P.NATURE,
    "garden": _P.NATURE,
    "hiking_area": _P.NATURE,
    "beach": _P.NATURE,
    "wildlife_refuge": _P.NATURE,
    "nature_reserve": _P.NATURE,
    "campground": _P.NATURE,
    "observation_deck": _P.NATURE,
    "visitor_center": _P.NATURE,
    "tourist_attraction": _P.NATURE,
    # Learning
    "preschool": _P.LEARNING,
    "school": _P.LEARNING,
    "primary_school": _P.LEARNING,
    "secondary_school": _P.LEARNING,
    "university": _P.LEARNING,
    "education_center": _P.LEARNING,
    "tutoring_service": _P.LEARNING,
    "driving_school": _P.LEARNING,
    "language_school": _P.LEARNING,
    "music_school": _P.LEARNING,
    "dance_school": _P.LEARNING,
    "art_school": _P.LEARNING,
    "cooking_school": _P.LEARNING,
    # Community
    "community_center": _P.COMMUNITY,
    "event_venue": _P.COMMUNITY,
    "convention_center": _P.COMMUNITY,
    "banquet_hall": _P.COMMUNITY,
    "church": _P.COMMUNITY,
    "mosque": _P.COMMUNITY,
    "synagogue": _P.COMMUNITY,
    "hindu_temple": _P.COMMUNITY,
    "place_of_worship": _P.COMMUNITY,
    "city_hall": _P.COMMUNITY,
    "local_government_office": _P.COMMUNITY,
    # Camp
    "childrens_camp": _P.CAMP,
    "summer_camp": _P.CAMP,
    "day_camp": _P.CAMP,
    "camping_cabin": _P.CAMP,
    "rv_park": _P.CAMP,
}

# Order matters: more specific phrases come first, "park" last.
KEYWORD_TO_CATEGORY: list[tuple[tuple[str, ...], PlaceCategory]] = [
    (("indoor playground", "play area", "play space", "playspace", "soft play"), _P.PLAYGROUND),
    (("playground",), _P.PLAYGROUND),
    (
        (
            "amusement park", "theme park", "water park", "trampoline", "bounce",
            "laser tag", "escape room", "arcade", "mini golf", "miniature golf",
            "go kart", "go-kart", "bowling",
        ),
        _P.AMUSEMENT,
    ),
    (("zoo", "aquarium"), _P.AMUSEMENT),
    (("museum", "science center", "discovery center"), _P.MUSEUM),
    (("library",), _P.LIBRARY),
    (
        (
            "theater", "theatre", "art gallery", "gallery", "art studio", "painting",
            "pottery", "ceramics", "dance studio", "music studio", "concert hall",
            "performing arts",
        ),
        _P.ARTS_CULTURE,
    ),
    (
        (
            "gymnastics", "gym", "fitness", "swimming", "pool", "skating", "ice rink",
            "sports", "martial arts", "karate", "judo", "taekwondo", "soccer",
            "baseball", "basketball", "tennis", "yoga", "rock climbing", "climbing gym",
        ),
        _P.SPORTS_FITNESS,
    ),
    (("recreation center", "rec center"), _P.SPORTS_FITNESS),
    (
        (
            "botanical garden", "garden", "nature center", "nature preserve",
            "hiking", "trail", "beach", "wildlife",
        ),
        _P.NATURE,
    ),
    (
        (
            "preschool", "pre-school", "daycare", "day care", "childcare", "montessori",
            "learning center", "education center", "tutoring", "school", "academy",
            "enrichment",
        ),
        _P.LEARNING,
    ),
    (("camp", "summer camp", "day camp"), _P.CAMP),
    (
        ("community center", "community hall", "civic center", "ymca", "ywca", "boys & girls club"),
        _P.COMMUNITY,
    ),
    (("park", "regional park", "state park", "national park"), _P.PARK),
]

LEGACY_TYPE_TO_CATEGORY: dict[str, PlaceCategory] = {
    "playground": _P.PLAYGROUND,
    "indoor playground": _P.PLAYGROUND,
    "park": _P.PARK,
    "museum": _P.MUSEUM,
    "children's museum": _P.MUSEUM,
    "library": _P.LIBRARY,
    "amusement park": _P.AMUSEMENT,
    "amusement center": _P.AMUSEMENT,
    "zoo": _P.AMUSEMENT,
    "aquarium": _P.AMUSEMENT,
    "escape room": _P.AMUSEMENT,
    "miniature golf": _P.AMUSEMENT,
    "arcade": _P.AMUSEMENT,
    "gymnastics": _P.SPORTS_FITNESS,
    "recreation center": _P.SPORTS_FITNESS,
    "pool": _P.SPORTS_FITNESS,
    "skating rink": _P.SPORTS_FITNESS,
    "art gallery": _P.ARTS_CULTURE,
    "painting studio": _P.ARTS_CULTURE,
    "theater": _P.ARTS_CULTURE,
    "theatre": _P.ARTS_CULTURE,
    "studio": _P.ARTS_CULTURE,
    "garden": _P.NATURE,
    "botanical garden": _P.NATURE,
    "nature center": _P.NATURE,
    "historical landmark": _P.NATURE,
    "tourist attraction": _P.NATURE,
    "visitor center": _P.NATURE,
    "preschool": _P.LEARNING,
    "day care": _P.LEARNING,
    "daycare": _P.LEARNING,
    "education center": _P.LEARNING,
    "after school": _P.LEARNING,
    "school": _P.LEARNING,
    "community center": _P.COMMUNITY,
    "community": _P.COMMUNITY,
    "convention center": _P.COMMUNITY,
    "non-profit": _P.COMMUNITY,
    "camp": _P.CAMP,
    "summer camp": _P.CAMP,
    "day camp": _P.CAMP,
    "online": _P.OTHER,
    "other": _P.OTHER,
}


def category_from_google_types(types: Iterable[str]) -> PlaceCategory:
    """First recognised type wins; upstream lists types in priority order."""
    for t in types:
        category = GOOGLE_TYPE_TO_CATEGORY.get(t.lower().replace("-", "_"))
        if category is not None:
            return category
    return _P.OTHER


def category_from_legacy_type(legacy_type: str) -> PlaceCategory:
    return LEGACY_TYPE_TO_CATEGORY.get(legacy_type.lower().strip(), _P.OTHER)


def category_from_keywords(text: str) -> PlaceCategory:
    normalized = text.lower()
    for keywords, category in KEYWORD_TO_CATEGORY:
        if any(k in normalized for k in keywords):
            return category
    return _P.OTHER


def determine_category(
    upstream_types: Iterable[str] | None = None,
    legacy_type: str | None = None,
    venue_name: str | None = None,
    title: str | None = None,
    description: str | None = None,
) -> PlaceCategory:
    """
    Classify a listing into a place category.

    Priority: upstream category types > legacy type > venue name keywords >
    title keywords > description keywords > Other.
    """
    if upstream_types:
        category = category_from_google_types(upstream_types)
        if category != _P.OTHER:
            return category

    # a recognised legacy type is authoritative, including "Online" -> Other
    if legacy_type and legacy_type.lower().strip() in LEGACY_TYPE_TO_CATEGORY:
        return category_from_legacy_type(legacy_type)

    for text in (venue_name, title, description):
        if text:
            category = category_from_keywords(text)
            if category != _P.OTHER:
                return category

    return _P.OTHER
