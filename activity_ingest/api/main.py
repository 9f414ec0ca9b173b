"""
activity_ingest.api.main.

FastAPI entrypoint for scheduled ingestion jobs.

Responsibilities
----------------
• Health monitoring
• Cron-triggered RSS ingestion
• Cron-triggered Unsplash image enrichment
• Cron-triggered hiding of past listings

Every job route requires ``Authorization: Bearer <CRON_SECRET>``.
"""

from __future__ import annotations

import hmac
import logging
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.concurrency import run_in_threadpool

from activity_ingest.configs.settings import Settings, get_settings
from activity_ingest.enrichment.stale import hide_stale_listings
from activity_ingest.enrichment.unsplash import ImageEnricher, UnsplashClient
from activity_ingest.ingestion.errors import IngestError
from activity_ingest.ingestion.normalization.dates import utc_now
from activity_ingest.ingestion.registry import create_adapter
from activity_ingest.ingestion.run_driver import RunDriver
from activity_ingest.ingestion.storage import ListingStore, SupabaseListingStore

logger = logging.getLogger(__name__)

RSS_SOURCE_ID = "bibliocommons-rss"

# ---------------------------------------------------------------------------
# APP INITIALIZATION
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Activity Ingest API",
    version="0.1.0",
    description="Scheduled jobs that keep the listings table fresh.",
)


# ---------------------------------------------------------------------------
# DEPENDENCIES
# ---------------------------------------------------------------------------


def verify_cron_secret(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Reject requests that do not carry the configured cron secret.

    Raises
    ------
    HTTPException
        401 unless the header matches the configured secret.
    """
    secret = settings.CRON_SECRET.get_secret_value() if settings.CRON_SECRET else None
    if not secret or not authorization:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not hmac.compare_digest(authorization, f"Bearer {secret}"):
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_store(settings: Settings = Depends(get_settings)) -> ListingStore:
    """
    Build the listings store from settings.

    Raises
    ------
    HTTPException
        500 if Supabase credentials are missing.
    """
    try:
        return SupabaseListingStore.from_settings(settings)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))


# ---------------------------------------------------------------------------
# HEALTH ENDPOINT
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Monitoring"])
def health_check() -> dict[str, str]:
    """Check API health."""
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# JOB ENDPOINTS
# ---------------------------------------------------------------------------


@app.post("/ingest-rss", tags=["Jobs"], dependencies=[Depends(verify_cron_secret)])
async def ingest_rss(store: ListingStore = Depends(get_store)) -> dict[str, Any]:
    """
    Run the library RSS feeds through the ingestion pipeline.

    Returns
    -------
    dict
        Per-feed outcome counts and run totals.
    """
    adapter = create_adapter(RSS_SOURCE_ID)
    try:
        async with adapter:
            summary = await RunDriver(adapter, store).run()
    except IngestError as e:
        logger.error(f"RSS ingestion failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "success": True,
        "timestamp": utc_now().isoformat(),
        "feeds": [
            {"feed": feed, **dict(counts)} for feed, counts in summary.by_group.items()
        ],
        "totals": summary.to_dict(),
    }


@app.post("/fetch-unsplash-images", tags=["Jobs"], dependencies=[Depends(verify_cron_secret)])
def fetch_unsplash_images(
    store: ListingStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """
    Assign stock photos to listings without an image.

    Returns
    -------
    dict
        processed, updated and failed counts plus per-listing errors.
    """
    if not settings.UNSPLASH_ACCESS_KEY:
        raise HTTPException(status_code=500, detail="UNSPLASH_ACCESS_KEY is not set")

    client = UnsplashClient(settings.UNSPLASH_ACCESS_KEY.get_secret_value())
    try:
        result = ImageEnricher(store, client).run()
    except IngestError as e:
        logger.error(f"Image enrichment failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
    finally:
        client.close()
    return {"success": True, "timestamp": utc_now().isoformat(), **result.to_dict()}


@app.post("/hide-stale-events", tags=["Jobs"], dependencies=[Depends(verify_cron_secret)])
async def hide_stale_events(store: ListingStore = Depends(get_store)) -> dict[str, Any]:
    """
    Hide listings whose start date has already passed.

    Returns
    -------
    dict
        The number of listings hidden.
    """
    try:
        result = await run_in_threadpool(hide_stale_listings, store)
    except IngestError as e:
        logger.error(f"Hiding stale listings failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True, "timestamp": utc_now().isoformat(), **result}
