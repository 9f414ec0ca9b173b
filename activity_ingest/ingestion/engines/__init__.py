from .http import BROWSER_USER_AGENT, HttpFetcher, PageFetchResult
from .renderer import PageRenderer, PlaywrightRenderer

__all__ = [
    "BROWSER_USER_AGENT",
    "HttpFetcher",
    "PageFetchResult",
    "PageRenderer",
    "PlaywrightRenderer",
]
