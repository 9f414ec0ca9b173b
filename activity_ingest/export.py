"""
CSV export of a source run.

Runs a source through fetch, extract and normalize with no storage attached,
and writes the surviving listings to a CSV for review before a real import.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import IO, Iterable

from activity_ingest.ingestion.normalization.text import truncate
from activity_ingest.ingestion.registry import create_adapter
from activity_ingest.ingestion.run_driver import RunDriver, RunSummary
from activity_ingest.schemas.listing import Listing

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_LIMIT = 20
DESCRIPTION_LIMIT = 500

EXPORT_COLUMNS = [
    "Title",
    "Start Date",
    "Location",
    "City",
    "Price",
    "Age Range",
    "Type",
    "Tags",
    "Description",
    "Image URL",
    "Website",
]


def listing_to_export_row(listing: Listing) -> dict[str, str]:
    return {
        "Title": listing.title or "",
        "Start Date": listing.start_date.isoformat() if listing.start_date else "",
        "Location": listing.location_name or "",
        "City": listing.city or "",
        "Price": listing.price or "",
        "Age Range": listing.age_range or "",
        "Type": listing.type or "",
        "Tags": ", ".join(listing.tags),
        "Description": truncate(listing.description, DESCRIPTION_LIMIT) or "",
        "Image URL": listing.image or "",
        "Website": listing.website or "",
    }


def write_csv(listings: Iterable[Listing], out: IO[str]) -> int:
    writer = csv.DictWriter(out, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    count = 0
    for listing in listings:
        writer.writerow(listing_to_export_row(listing))
        count += 1
    return count


async def export_source(
    source_id: str,
    out_path: str | Path,
    limit: int = DEFAULT_EXPORT_LIMIT,
    **adapter_kwargs,
) -> RunSummary:
    """
    Preview-run ``source_id`` over its first ``limit`` items and write the CSV.

    Past events and items without a title are skipped exactly as in a real run.
    """
    adapter = create_adapter(source_id, **adapter_kwargs)
    async with adapter:
        summary = await RunDriver(adapter, None, limit=limit).run()

    with open(out_path, "w", newline="", encoding="utf-8") as f:
        written = write_csv(summary.listings, f)
    logger.info(f"Exported {written} listings from {source_id} to {out_path}")
    return summary
