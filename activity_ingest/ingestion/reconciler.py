"""
Reconciler.

Looks up an existing row by natural key and performs exactly one write:
an insert when nothing matches, otherwise an in-place update of the provided
fields. Null fields are never sent, so an item with gaps cannot blank out
columns populated by an earlier run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from activity_ingest.ingestion.normalization.dates import utc_now
from activity_ingest.ingestion.storage import ListingStore
from activity_ingest.schemas.listing import Listing, NaturalKeyType

logger = logging.getLogger(__name__)


class ReconcileAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass
class ReconcileResult:
    action: ReconcileAction
    listing_id: Any = None
    dry_run: bool = False


class Reconciler:
    """
    Create-vs-update decision for one listing.

    The lookup and the write are not transactional; two concurrent runs
    over the same source can both insert.
    """

    def __init__(
        self,
        store: ListingStore,
        key_type: NaturalKeyType,
        dry_run: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.key_type = key_type
        self.dry_run = dry_run
        self.clock = clock

    def reconcile(self, listing: Listing, key: str) -> ReconcileResult:
        """
        Args:
            listing: Normalized listing
            key: Natural key value, matched exactly against ``key_type``'s column

        Returns:
            ReconcileResult naming the action taken (or that would be taken)
        """
        row = listing.to_row()
        row[self.key_type.column] = key
        existing_id = self.store.find_id(self.key_type.column, key)

        if existing_id is not None:
            if not self.dry_run:
                row["updated_at"] = self.clock().isoformat()
                self.store.update(existing_id, row)
            return ReconcileResult(ReconcileAction.UPDATED, existing_id, self.dry_run)

        if self.dry_run:
            return ReconcileResult(ReconcileAction.CREATED, None, True)
        new_id = self.store.insert(row)
        return ReconcileResult(ReconcileAction.CREATED, new_id)
