"""
Shared field heuristics.

Date, price, text, tag, image, age and place-category helpers used by every
source adapter.
"""

from .age import extract_age_range
from .dates import (
    combine_date_time,
    parse_heading_date,
    parse_listing_date,
    parse_ticket_date,
    utc_now,
    with_pacific_offset,
)
from .images import extract_image, resolve_url
from .place_type import determine_category
from .price import FREE, SEE_WEBSITE, PriceParser
from .tags import TagRule, infer_tags, rule, split_tags
from .text import container_text, html_to_text, paragraph_blocks, strip_html

__all__ = [
    "FREE",
    "SEE_WEBSITE",
    "PriceParser",
    "TagRule",
    "combine_date_time",
    "container_text",
    "determine_category",
    "extract_age_range",
    "extract_image",
    "html_to_text",
    "infer_tags",
    "paragraph_blocks",
    "parse_heading_date",
    "parse_listing_date",
    "parse_ticket_date",
    "resolve_url",
    "rule",
    "split_tags",
    "strip_html",
    "utc_now",
    "with_pacific_offset",
]
