"""Hide listings whose start date has passed."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from activity_ingest.ingestion.normalization.dates import utc_now
from activity_ingest.ingestion.storage import ListingStore

logger = logging.getLogger(__name__)

SELECT_PAGE_SIZE = 1000
UPDATE_BATCH_SIZE = 500


def hide_stale_listings(store: ListingStore, now: datetime | None = None) -> dict[str, Any]:
    """
    Set ``hidden`` on every visible listing that started before ``now``.

    All matching ids are collected before the first update.
    """
    now = now or utc_now()
    logger.info(f"Finding listings that started before {now.isoformat()}")

    stale_ids: list[Any] = []
    offset = 0
    while True:
        page = store.stale_listing_ids(now, offset, SELECT_PAGE_SIZE)
        stale_ids.extend(page)
        if len(page) < SELECT_PAGE_SIZE:
            break
        offset += SELECT_PAGE_SIZE

    logger.info(f"Found {len(stale_ids)} stale listings to hide")

    hidden = 0
    for start in range(0, len(stale_ids), UPDATE_BATCH_SIZE):
        batch = stale_ids[start : start + UPDATE_BATCH_SIZE]
        store.hide(batch)
        hidden += len(batch)
        logger.info(f"Hidden batch {start // UPDATE_BATCH_SIZE + 1}: {len(batch)} records")

    return {"hidden": hidden}
