"""Text cleanup helpers for descriptions and titles scraped from HTML."""

from __future__ import annotations

import html
import re
from collections.abc import Iterable

from bs4 import BeautifulSoup, Tag

BOILERPLATE_MARKERS = ("©", "Privacy Policy")

_TAG_RE = re.compile(r"<[^>]*>")
_HASHTAG_RE = re.compile(r"#\w+")


def clean_whitespace(text: str | None) -> str | None:
    if text is None:
        return None
    cleaned = re.sub(r"\s+", " ", text).strip()
    return cleaned or None


def strip_html(raw: str | None) -> str | None:
    """Remove tags and decode entities."""
    if not raw:
        return None
    text = html.unescape(_TAG_RE.sub("", raw)).strip()
    return text or None


def html_to_text(raw: str | None) -> str | None:
    """
    Convert rich-text HTML into plain text that keeps paragraph breaks.

    List items become bullets and hashtags are dropped.
    """
    if not raw:
        return None
    text = raw
    for pattern, replacement in (
        (r"</p>", "\n\n"),
        (r"<br\s*/?>", "\n"),
        (r"</div>", "\n\n"),
        (r"</h[1-6]>", "\n\n"),
        (r"<li[^>]*>", "• "),
        (r"</li>", "\n"),
        (r"</[uo]l>", "\n"),
    ):
        text = re.sub(pattern, replacement, text, flags=re.IGNORECASE)
    text = html.unescape(_TAG_RE.sub("", text))
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n ", "\n", text)
    text = _HASHTAG_RE.sub("", text).strip()
    return text or None


def paragraph_blocks(
    soup: BeautifulSoup | Tag,
    min_length: int = 50,
    exclude: Iterable[str] = BOILERPLATE_MARKERS,
    exclude_pattern: re.Pattern | None = None,
) -> list[str]:
    """Collect substantive ``<p>`` texts, dropping short and boilerplate blocks."""
    markers = tuple(exclude)
    blocks = []
    for p in soup.find_all("p"):
        text = p.get_text(" ", strip=True)
        if len(text) <= min_length:
            continue
        if any(m in text for m in markers):
            continue
        if exclude_pattern is not None and exclude_pattern.search(text):
            continue
        blocks.append(text)
    return blocks


def container_text(element: Tag | None) -> str | None:
    """
    Text of a named content container, line-trimmed and rejoined with
    blank-line separators.
    """
    if element is None:
        return None
    lines = [line.strip() for line in element.get_text("\n").split("\n")]
    text = "\n\n".join(line for line in lines if line)
    return text or None


def truncate(text: str | None, limit: int) -> str | None:
    if text is None or len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
