"""Image and link URL extraction."""

from __future__ import annotations

from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

SKIP_IMAGE_MARKERS = ("logo", "icon")


def origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def resolve_url(src: str | None, origin: str) -> str | None:
    """Resolve protocol-relative and root-relative URLs against ``origin``."""
    if not src:
        return None
    src = src.strip()
    if src.startswith("//"):
        return f"{urlparse(origin).scheme or 'https'}:{src}"
    if src.startswith(("http://", "https://")):
        return src
    return urljoin(origin.rstrip("/") + "/", src)


def extract_image(soup: BeautifulSoup, origin: str) -> str | None:
    """Open Graph image first, then the first ``<img>`` that is not a logo or icon."""
    og = soup.find("meta", attrs={"property": "og:image"})
    if og and og.get("content"):
        return resolve_url(og["content"], origin)

    for img in soup.find_all("img"):
        src = img.get("src") or img.get("data-src")
        if not src:
            continue
        lowered = src.lower()
        if any(m in lowered for m in SKIP_IMAGE_MARKERS):
            continue
        return resolve_url(src, origin)
    return None
