"""
Source adapters.

Importing this package registers every adapter with the source registry.
"""

from . import (  # noqa: F401
    badm,
    bibliocommons_rss,
    ebparks,
    eventbrite,
    farmers_markets,
    santa_cruz_library,
)
