"""
Run Driver.

Orchestrates one full ingestion pass over one source: items are processed
strictly in source order, one at a time, with a fixed delay between
consecutive network-bearing items.

Per item: fetched -> extracted -> skipped | errored | created | updated.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import Counter
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from activity_ingest.ingestion.adapters.base_adapter import SourceAdapter, SourceItem
from activity_ingest.ingestion.normalization.dates import is_past, utc_now
from activity_ingest.ingestion.normalizer import RecordNormalizer
from activity_ingest.ingestion.reconciler import ReconcileAction, Reconciler
from activity_ingest.ingestion.storage import ListingStore
from activity_ingest.monitoring.logging import with_context
from activity_ingest.schemas.listing import Listing, NaturalKeyType

logger = logging.getLogger(__name__)


class ItemOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERROR = "error"
    PREVIEWED = "previewed"


class SkipReason(str, Enum):
    MISSING_KEY = "missing natural key"
    MISSING_TITLE = "missing title"
    PAST_EVENT = "past event"


@dataclass
class ItemResult:
    outcome: ItemOutcome
    reason: str | None = None
    listing: Listing | None = None
    listing_id: Any = None


@dataclass
class RunSummary:
    """Counters accumulated over one run."""

    source_id: str
    run_id: str
    started_at: datetime
    ended_at: datetime | None = None
    dry_run: bool = False
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    previewed: int = 0
    skip_reasons: Counter = field(default_factory=Counter)
    error_details: list[dict[str, str]] = field(default_factory=list)
    by_group: dict[str, Counter] = field(default_factory=dict)
    listings: list[Listing] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.created + self.updated + self.skipped + self.errors + self.previewed

    @property
    def duration_seconds(self) -> float:
        if self.ended_at is None:
            return 0.0
        return (self.ended_at - self.started_at).total_seconds()

    def record(self, result: ItemResult, group: str | None = None) -> None:
        outcome = result.outcome
        if outcome == ItemOutcome.CREATED:
            self.created += 1
        elif outcome == ItemOutcome.UPDATED:
            self.updated += 1
        elif outcome == ItemOutcome.SKIPPED:
            self.skipped += 1
            self.skip_reasons[result.reason or "unspecified"] += 1
        elif outcome == ItemOutcome.ERROR:
            self.errors += 1
        else:
            self.previewed += 1
            if result.listing is not None:
                self.listings.append(result.listing)
        if group:
            self.by_group.setdefault(group, Counter())[outcome.value] += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source_id,
            "run_id": self.run_id,
            "dry_run": self.dry_run,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
            "total": self.total,
            "skip_reasons": dict(self.skip_reasons),
            "by_group": {k: dict(v) for k, v in self.by_group.items()},
        }

    def format(self) -> str:
        prefix = "[dry run] " if self.dry_run else ""
        lines = [
            f"{prefix}Summary for {self.source_id}:",
            f"  Created: {self.created}",
            f"  Updated: {self.updated}",
            f"  Skipped: {self.skipped}",
            f"  Errors:  {self.errors}",
            f"  Total processed: {self.total}",
        ]
        if self.previewed:
            lines.insert(5, f"  Previewed: {self.previewed}")
        for reason, count in self.skip_reasons.most_common():
            lines.append(f"    skipped ({reason}): {count}")
        return "\n".join(lines)


class RunDriver:
    """
    Drive one source adapter through fetch, extract, normalize and reconcile.

    The storage handle is injected. Without one the driver runs in preview
    mode: items are fetched and normalized, and surviving listings are
    collected on the summary instead of written.
    """

    def __init__(
        self,
        adapter: SourceAdapter,
        store: ListingStore | None,
        *,
        dry_run: bool = False,
        limit: int | None = None,
        item_delay_s: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.adapter = adapter
        self.store = store
        self.dry_run = dry_run
        self.limit = limit
        self.item_delay_s = adapter.config.item_delay_s if item_delay_s is None else item_delay_s
        self.sleep = sleep
        self.clock = clock
        self.normalizer = RecordNormalizer(adapter.config)
        self.reconciler = (
            Reconciler(store, adapter.config.key_type, dry_run=dry_run, clock=clock)
            if store is not None
            else None
        )

    async def run(self) -> RunSummary:
        """
        Process every item the adapter returns.

        Item-level failures are counted, never raised. A failure to acquire
        the item list at all propagates to the caller.
        """
        run_started_at = self.clock()
        summary = RunSummary(
            source_id=self.adapter.source_id,
            run_id=uuid.uuid4().hex[:8],
            started_at=run_started_at,
            dry_run=self.dry_run,
        )
        log = with_context(logger, run_id=summary.run_id, source_id=summary.source_id)
        log.info(f"Starting run for {self.adapter.config.name}")

        self.adapter.run_started_at = run_started_at

        items = await self.adapter.fetch_items()
        if self.limit is not None:
            items = items[: self.limit]
        log.info(f"Fetched {len(items)} items")

        network_used = False
        for index, item in enumerate(items, start=1):
            log.info(f"[{index}/{len(items)}] {item.label}")

            reason = self.pre_skip_reason(item, run_started_at)
            if reason is not None:
                result = ItemResult(ItemOutcome.SKIPPED, reason.value)
                log.info(f"  skipped: {result.reason}")
                summary.record(result, item.group)
                continue

            if item.requires_fetch:
                if network_used and self.item_delay_s > 0:
                    await self.sleep(self.item_delay_s)
                network_used = True

            try:
                result = await self.process_item(item, run_started_at)
            except Exception as e:
                log.error(f"  error: {e}", exc_info=True)
                summary.error_details.append({"item": item.label, "error": str(e)})
                summary.record(ItemResult(ItemOutcome.ERROR, str(e)), item.group)
                continue

            if result.outcome == ItemOutcome.SKIPPED:
                log.info(f"  skipped: {result.reason}")
            else:
                log.info(f"  {result.outcome.value}" + (f" (id {result.listing_id})" if result.listing_id else ""))
            summary.record(result, item.group)

        summary.ended_at = self.clock()
        log.info(summary.format())
        return summary

    def pre_skip_reason(self, item: SourceItem, run_started_at: datetime) -> SkipReason | None:
        """
        Skip decided from the item alone, before any detail fetch.

        Only a past start hint skips here. The reported reason keeps the skip
        order, so a past item already known to lack its link or its title is
        reported under that reason instead.
        """
        if not is_past(item.start_hint, run_started_at):
            return None
        if not item.url and self.adapter.config.key_type == NaturalKeyType.WEBSITE:
            return SkipReason.MISSING_KEY
        if "title" in item.payload and not str(item.payload["title"] or "").strip():
            return SkipReason.MISSING_TITLE
        return SkipReason.PAST_EVENT

    async def process_item(self, item: SourceItem, run_started_at: datetime) -> ItemResult:
        """Extract, normalize, apply the skip policy and reconcile one item."""
        fields = await self.adapter.extract_fields(item)
        listing = self.normalizer.normalize(fields)
        key = self.normalizer.natural_key(fields)

        if not key:
            return ItemResult(ItemOutcome.SKIPPED, SkipReason.MISSING_KEY.value, listing)
        if not listing.title:
            return ItemResult(ItemOutcome.SKIPPED, SkipReason.MISSING_TITLE.value, listing)
        if is_past(listing.start_date, run_started_at):
            return ItemResult(ItemOutcome.SKIPPED, SkipReason.PAST_EVENT.value, listing)

        if self.reconciler is None:
            return ItemResult(ItemOutcome.PREVIEWED, listing=listing)

        outcome = self.reconciler.reconcile(listing, key)
        action = (
            ItemOutcome.CREATED
            if outcome.action == ReconcileAction.CREATED
            else ItemOutcome.UPDATED
        )
        return ItemResult(action, listing=listing, listing_id=outcome.listing_id)
