"""
Keyword tag inference.

A source declares an ordered list of ``TagRule``s. Every rule whose pattern
matches the title plus description fires; rules are additive, and the source's
constant tag is always appended.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class TagRule:
    """Add ``tags`` when ``pattern`` matches (case-insensitive)."""

    pattern: str
    tags: tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "_compiled", re.compile(self.pattern, re.IGNORECASE))

    def matches(self, text: str) -> bool:
        return bool(self._compiled.search(text))


def rule(pattern: str, *tags: str) -> TagRule:
    return TagRule(pattern, tags)


def infer_tags(
    text: str,
    rules: Sequence[TagRule],
    base_tags: Iterable[str] = (),
    source_tag: str | None = None,
) -> list[str]:
    """Apply every matching rule in order, keeping first-seen order without repeats."""
    tags: list[str] = list(base_tags)
    for r in rules:
        if r.matches(text):
            tags.extend(r.tags)
    if source_tag:
        tags.append(source_tag)
    return dedupe(tags)


def dedupe(tags: Iterable[str]) -> list[str]:
    seen = set()
    out = []
    for tag in tags:
        tag = (tag or "").strip()
        if tag and tag not in seen:
            seen.add(tag)
            out.append(tag)
    return out


def split_tags(value: str | None) -> list[str]:
    """Split a stored comma-joined tag string."""
    if not value:
        return []
    return [t.strip() for t in value.split(",") if t.strip()]
