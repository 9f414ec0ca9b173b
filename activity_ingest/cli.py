#!/usr/bin/env python3
"""Command-line interface for activity ingestion.

Commands:
  - activity-ingest sources         : List registered sources
  - activity-ingest run             : Ingest one source into the listings table
  - activity-ingest import-markets  : Preview or import the farmers-market CSV
  - activity-ingest enrich-images   : Assign Unsplash photos to listings without one
  - activity-ingest hide-stale      : Hide listings whose start date has passed
  - activity-ingest export          : Write a source's normalized listings to CSV

Typical usage:
  activity-ingest run badm --dry-run
  activity-ingest run eventbrite --limit 10
  activity-ingest import-markets markets.csv --import --fetch
  activity-ingest export ebparks --out ebparks.csv
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from activity_ingest.configs.settings import get_settings
from activity_ingest.monitoring.logging import LoggingOptions, setup_logging

logger = logging.getLogger("activity_ingest.cli")

MARKET_SAMPLE_SIZE = 5


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="activity-ingest", description="Activity ingestion CLI")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("--log-level", default=None, help="Override LOG_LEVEL (DEBUG, INFO, ...)")
    p.add_argument("--json-logs", action="store_true", help="Emit JSON logs")
    sub = p.add_subparsers(dest="cmd")

    # sources
    sub.add_parser("sources", help="List registered sources")

    # run
    pr = sub.add_parser("run", help="Ingest one source")
    pr.add_argument("source", help="Registered source id (see `sources`)")
    pr.add_argument(
        "--dry-run",
        action="store_true",
        help="Look up existing rows but do not write",
    )
    pr.add_argument("--limit", type=int, default=None, help="Process only the first N items")

    # import-markets
    pm = sub.add_parser("import-markets", help="Preview or import the farmers-market CSV")
    pm.add_argument("csv", help="Path to the farmers-market CSV export")
    pm.add_argument("--import", dest="do_import", action="store_true", help="Write records")
    pm.add_argument("--fetch", action="store_true", help="Fetch Google Place details")
    pm.add_argument("--limit", type=int, default=None, help="Process only the first N rows")
    pm.add_argument("--dry-run", action="store_true", help="With --import, look up but do not write")

    # enrich-images
    pe = sub.add_parser("enrich-images", help="Assign Unsplash photos to listings without one")
    pe.add_argument("--limit", type=int, default=50, help="Listings per batch")

    # hide-stale
    sub.add_parser("hide-stale", help="Hide listings whose start date has passed")

    # export
    px = sub.add_parser("export", help="Write a source's normalized listings to CSV")
    px.add_argument("source", help="Registered source id")
    px.add_argument("--out", "-o", required=True, help="Output CSV path")
    px.add_argument("--limit", type=int, default=20, help="Export only the first N items")

    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI with the given arguments."""
    try:
        return _main_impl(argv)
    except KeyError as e:
        logger.error(str(e.args[0]) if e.args else str(e))
        return 1
    except Exception as e:
        logger.error(f"Error: {e}", exc_info=True)
        return 1


def _main_impl(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    setup_logging(
        LoggingOptions(
            level=args.log_level or settings.LOG_LEVEL,
            json_logs=args.json_logs or settings.LOG_JSON,
        )
    )

    if args.version:
        from activity_ingest import __version__

        print(f"activity-ingest version {__version__}")
        return 0

    if not args.cmd:
        print("Error: Command required. Use --help for usage info.", file=sys.stderr)
        return 1

    if args.cmd == "sources":
        from activity_ingest.ingestion.registry import available_sources

        for source_id in available_sources():
            print(source_id)
        return 0

    if args.cmd == "run":
        from activity_ingest.ingestion.registry import create_adapter
        from activity_ingest.ingestion.storage import SupabaseListingStore

        store = SupabaseListingStore.from_settings(settings)
        adapter = create_adapter(args.source)
        summary = asyncio.run(_run(adapter, store, dry_run=args.dry_run, limit=args.limit))
        print(summary.format())
        return 0

    if args.cmd == "import-markets":
        return _import_markets(args, settings)

    if args.cmd == "enrich-images":
        from activity_ingest.enrichment.unsplash import ImageEnricher, UnsplashClient
        from activity_ingest.ingestion.storage import SupabaseListingStore

        if not settings.UNSPLASH_ACCESS_KEY:
            raise ValueError("UNSPLASH_ACCESS_KEY is not set")
        store = SupabaseListingStore.from_settings(settings)
        client = UnsplashClient(settings.UNSPLASH_ACCESS_KEY.get_secret_value())
        try:
            result = ImageEnricher(store, client).run(limit=args.limit)
        finally:
            client.close()
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0

    if args.cmd == "hide-stale":
        from activity_ingest.enrichment.stale import hide_stale_listings
        from activity_ingest.ingestion.storage import SupabaseListingStore

        result = hide_stale_listings(SupabaseListingStore.from_settings(settings))
        print(json.dumps(result))
        return 0

    if args.cmd == "export":
        from activity_ingest.export import export_source

        summary = asyncio.run(export_source(args.source, args.out, limit=args.limit))
        print(f"Wrote {len(summary.listings)} listings to {args.out}")
        return 0

    print(f"Error: Unknown command: {args.cmd}", file=sys.stderr)
    return 1


async def _run(adapter, store, *, dry_run: bool, limit: int | None):
    from activity_ingest.ingestion.run_driver import RunDriver

    async with adapter:
        return await RunDriver(adapter, store, dry_run=dry_run, limit=limit).run()


def _import_markets(args: argparse.Namespace, settings) -> int:
    from activity_ingest.ingestion.normalizer import RecordNormalizer
    from activity_ingest.ingestion.registry import create_adapter
    from activity_ingest.ingestion.sources.farmers_markets import (
        map_row,
        read_rows,
        summarize_by_city,
    )

    if not args.do_import:
        rows = read_rows(args.csv)
        if args.limit is not None:
            rows = rows[: args.limit]
        print(f"Preview only: {len(rows)} records. Run with --import to write them.")

        adapter = create_adapter("farmers-markets")
        normalizer = RecordNormalizer(adapter.config)
        print(f"\n--- SAMPLE RECORDS (first {MARKET_SAMPLE_SIZE}) ---")
        for index, row in enumerate(rows[:MARKET_SAMPLE_SIZE], start=1):
            fields = map_row(row)
            listing = normalizer.normalize(fields)
            print(f"{index}. {listing.title}")
            print(f"   ID: {listing.airtable_id}")
            print(f"   Location: {listing.city}, {listing.state}")
            print(f"   Rating: {listing.rating or 'N/A'}")

        print("\n--- BY CITY ---")
        for city, count in summarize_by_city(rows).most_common():
            print(f"{city}: {count}")
        return 0

    from activity_ingest.enrichment.places import GooglePlacesClient
    from activity_ingest.ingestion.storage import SupabaseListingStore

    places = None
    if args.fetch:
        if not settings.GOOGLE_PLACES_API_KEY:
            raise ValueError("GOOGLE_PLACES_API_KEY is not set; cannot use --fetch")
        places = GooglePlacesClient(settings.GOOGLE_PLACES_API_KEY.get_secret_value())

    store = SupabaseListingStore.from_settings(settings)
    adapter = create_adapter("farmers-markets", csv_path=args.csv, places=places)
    summary = asyncio.run(_run(adapter, store, dry_run=args.dry_run, limit=args.limit))
    print(summary.format())
    return 0


if __name__ == "__main__":
    sys.exit(main())
