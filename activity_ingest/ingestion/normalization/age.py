"""Age range extraction from free text."""

from __future__ import annotations

import re

AGE_PATTERNS = (
    re.compile(r"ages?\s+(\d+)\s*[-–]\s*(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s*[-–]\s*(\d+)\s+years?", re.IGNORECASE),
    re.compile(r"ages?\s+(\d+)\+", re.IGNORECASE),
)

ALL_AGES = "All ages"


def extract_age_range(text: str | None, family_fallback: bool = True) -> str | None:
    """
    Return "N-M" or "N+" from common phrasings.

    With ``family_fallback`` set, text mentioning "all ages" or "family"
    yields "All ages" when no explicit range is found.
    """
    if not text:
        return None
    for pattern in AGE_PATTERNS:
        match = pattern.search(text)
        if match:
            groups = match.groups()
            if len(groups) == 2:
                return f"{groups[0]}-{groups[1]}"
            return f"{groups[0]}+"

    lowered = text.lower()
    if family_fallback and ("all ages" in lowered or "family" in lowered):
        return ALL_AGES
    return None
