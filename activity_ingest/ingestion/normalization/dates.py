"""
Date and time parsing for source timestamps.

Every timestamp leaving this module carries an explicit UTC offset. Free-text
dates get a Pacific offset from a fixed DST heuristic: UTC-7 for months March
through October, otherwise UTC-8.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from urllib.parse import unquote
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser

PACIFIC_ZONE = ZoneInfo("America/Los_Angeles")
PDT = timezone(timedelta(hours=-7))
PST = timezone(timedelta(hours=-8))

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_WEEKDAY = r"(?:Monday|Tuesday|Wednesday|Thursday|Friday|Saturday|Sunday)"
_MONTH = r"(January|February|March|April|May|June|July|August|September|October|November|December)"

HEADING_DATE_PATTERN = re.compile(
    _WEEKDAY + r",?\s+" + _MONTH + r"\s+(\d{1,2})"
    r"(?:,?\s+\d{1,2}:\d{2}\s*(?:AM|PM)|,?\s+\d{1,2}(?:AM|PM))?",
    re.IGNORECASE,
)
TIME_PATTERN = re.compile(r"(\d{1,2}):?(\d{2})?\s*(AM|PM)", re.IGNORECASE)
TICKET_DATE_PATTERN = re.compile(r"[?&]date=([^&#]+)")
LISTING_DATE_PATTERN = re.compile(
    r"([A-Za-z]+)\.?\s+(\d{1,2}),\s+(\d{4}),\s+(\d{1,2}):(\d{2})\s+(AM|PM)",
    re.IGNORECASE,
)


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def pacific_offset(month: int) -> timezone:
    return PDT if 3 <= month <= 10 else PST


def with_pacific_offset(value: datetime) -> datetime:
    """Attach the heuristic Pacific offset to a naive local datetime."""
    if value.tzinfo is not None:
        return value
    return value.replace(tzinfo=pacific_offset(value.month))


def to_24_hour(hours: int, period: str) -> int:
    period = period.upper()
    if period == "PM" and hours != 12:
        return hours + 12
    if period == "AM" and hours == 12:
        return 0
    return hours


def is_past(value: datetime | None, now: datetime) -> bool:
    """True when ``value`` is strictly before ``now``."""
    return value is not None and value < now


def parse_heading_date(text: str | None, now: datetime) -> datetime | None:
    """
    Parse headings like "Wednesday, December 31, 9AM - 2PM".

    The year is ``now``'s year, or the next one when that day has already
    passed. Without a time the event is placed at midnight.
    """
    if not text:
        return None
    match = HEADING_DATE_PATTERN.search(text)
    if not match:
        return None

    month = MONTHS[match.group(1)[:3].lower()]
    day = int(match.group(2))
    today = now.astimezone(PACIFIC_ZONE).date()
    try:
        candidate = date(today.year, month, day)
        if candidate < today:
            candidate = date(today.year + 1, month, day)
    except ValueError:
        return None

    hour = minute = 0
    time_match = TIME_PATTERN.search(text, match.end(2))
    if time_match:
        hour = to_24_hour(int(time_match.group(1)), time_match.group(3))
        minute = int(time_match.group(2) or 0)

    return datetime(
        candidate.year, candidate.month, candidate.day, hour, minute,
        tzinfo=pacific_offset(candidate.month),
    )


def parse_ticket_date(href: str | None) -> datetime | None:
    """
    Decode a ``date=`` query parameter from a ticketing link.

    The value is trusted as already correct; only a missing offset is filled in.
    """
    if not href:
        return None
    match = TICKET_DATE_PATTERN.search(href)
    if not match:
        return None
    try:
        parsed = date_parser.isoparse(unquote(match.group(1)))
    except ValueError:
        return None
    return with_pacific_offset(parsed)


def parse_listing_date(text: str | None) -> datetime | None:
    """Parse calendar-card dates like "Wednesday, Dec. 31, 2025, 9:30 AM"."""
    if not text:
        return None
    match = LISTING_DATE_PATTERN.search(text)
    if not match:
        return None
    month = MONTHS.get(match.group(1)[:3].lower())
    if month is None:
        return None
    try:
        naive = datetime(
            int(match.group(3)),
            month,
            int(match.group(2)),
            to_24_hour(int(match.group(4)), match.group(6)),
            int(match.group(5)),
        )
    except ValueError:
        return None
    return with_pacific_offset(naive)


def combine_date_time(date_str: str | None, time_str: str | None) -> datetime | None:
    """Join "2026-07-15" and "14:30" into a Pacific-offset timestamp."""
    if not date_str:
        return None
    try:
        naive = datetime.strptime(f"{date_str}T{time_str or '00:00'}", "%Y-%m-%dT%H:%M")
    except ValueError:
        return None
    return with_pacific_offset(naive)


def parse_in_zone(value: str | None, zone: ZoneInfo = PACIFIC_ZONE) -> datetime | None:
    """Interpret a local ISO timestamp in a named zone."""
    if not value:
        return None
    try:
        parsed = date_parser.isoparse(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed


def parse_any(value: str | None) -> datetime | None:
    """Lenient parse for feed dates (ISO-8601 or RFC 822)."""
    if not value:
        return None
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        return None
    return with_pacific_offset(parsed)


def ensure_aware(value: datetime | date | None) -> datetime | None:
    """Coerce dates and naive datetimes from parsers into offset-aware datetimes."""
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    return with_pacific_offset(value)
