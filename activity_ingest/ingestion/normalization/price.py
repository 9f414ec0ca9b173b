"""
Price Parser.

Turns structured price signals and page text into the display strings the app
shows: "Free", "See website", "$N", "$N - $M" or "$N members, $M public".
"""

from __future__ import annotations

import math
import re
from typing import Any

FREE = "Free"
SEE_WEBSITE = "See website"


def _round_dollars(value: float) -> int:
    """Round half up to a whole dollar."""
    return int(math.floor(value + 0.5))


class PriceParser:
    """
    Extract display prices.

    Priority when several signals are available:
    1. explicit free/paid boolean in structured data
    2. lowPrice/highPrice pair in an offers block
    3. "free" co-occurring with "admission" in page text
    4. "Members: $N" optionally paired with "Public: $M"
    5. "See website"
    """

    IS_FREE_PATTERN = re.compile(r'"isFree"\s*:\s*(true|false)', re.IGNORECASE)
    OFFERS_PATTERN = re.compile(r'"offers"\s*:\s*\[([^\]]+)\]')
    LOW_PRICE_PATTERN = re.compile(r'"lowPrice"\s*:\s*"?(\d+(?:\.\d+)?)(?:"|,|\})')
    HIGH_PRICE_PATTERN = re.compile(r'"highPrice"\s*:\s*"?(\d+(?:\.\d+)?)(?:"|,|\})')
    MEMBER_PATTERN = re.compile(r"Members?:\s*\$(\d+)", re.IGNORECASE)
    PUBLIC_PATTERN = re.compile(r"Public:\s*\$(\d+)", re.IGNORECASE)
    DOLLAR_PATTERN = re.compile(r"\$\s*\d+(?:\.\d{2})?")

    @classmethod
    def format_range(cls, low: float | None, high: float | None = None) -> str | None:
        """
        Collapse a numeric price pair into a display string.

        - (0, 0) -> "Free"
        - (10, 10) -> "$10"
        - (10, 25) -> "$10 - $25"
        """
        if low is None:
            return None
        if high is None:
            high = low
        low, high = float(low), float(high)
        if low == 0 and high == 0:
            return FREE
        if low == high:
            return f"${_round_dollars(low)}"
        return f"${_round_dollars(low)} - ${_round_dollars(high)}"

    @classmethod
    def from_structured(cls, data: Any) -> str | None:
        """
        Read price signals from structured data.

        Accepts a dict (e.g. parsed JSON-LD or an API payload) or raw
        HTML/JSON text in which the same keys appear inline.
        """
        if data is None:
            return None
        if isinstance(data, dict):
            return cls._from_mapping(data)
        return cls._from_raw(str(data))

    @classmethod
    def _from_mapping(cls, data: dict) -> str | None:
        is_free = data.get("isFree", data.get("is_free"))
        if is_free is True:
            return FREE

        offers = data.get("offers")
        if isinstance(offers, dict):
            offers = [offers]
        for offer in offers or []:
            if not isinstance(offer, dict):
                continue
            low = offer.get("lowPrice", offer.get("price"))
            high = offer.get("highPrice")
            try:
                low_f = float(low) if low is not None else None
                high_f = float(high) if high is not None else None
            except (TypeError, ValueError):
                continue
            price = cls.format_range(low_f, high_f)
            if price:
                return price

        if "lowPrice" in data:
            try:
                return cls.format_range(
                    float(data["lowPrice"]),
                    float(data["highPrice"]) if data.get("highPrice") is not None else None,
                )
            except (TypeError, ValueError):
                return None
        return None

    @classmethod
    def _from_raw(cls, raw: str) -> str | None:
        is_free = cls.IS_FREE_PATTERN.search(raw)
        if is_free and is_free.group(1).lower() == "true":
            return FREE

        offers = cls.OFFERS_PATTERN.search(raw)
        if offers:
            low = cls.LOW_PRICE_PATTERN.search(offers.group(1))
            if low:
                high = cls.HIGH_PRICE_PATTERN.search(offers.group(1))
                return cls.format_range(
                    float(low.group(1)),
                    float(high.group(1)) if high else None,
                )
        return None

    @classmethod
    def from_text(cls, text: str | None) -> str | None:
        """Keyword and member/public scans over visible page text."""
        if not text:
            return None
        lowered = text.lower()
        if "free" in lowered and "admission" in lowered:
            return FREE

        member = cls.MEMBER_PATTERN.search(text)
        if member:
            public = cls.PUBLIC_PATTERN.search(text)
            if public:
                return f"${member.group(1)} members, ${public.group(1)} public"
            return f"${member.group(1)} members"
        return None

    @classmethod
    def first_dollar_amount(cls, text: str | None) -> str | None:
        """Return the first "$N" or "$N.NN" amount in text, normalised without spaces."""
        if not text:
            return None
        match = cls.DOLLAR_PATTERN.search(text)
        return match.group(0).replace(" ", "") if match else None

    @classmethod
    def extract(
        cls,
        structured: Any = None,
        text: str | None = None,
        default: str = SEE_WEBSITE,
    ) -> str:
        """Apply the full priority chain and fall back to ``default``."""
        return cls.from_structured(structured) or cls.from_text(text) or default
