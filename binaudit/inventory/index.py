"""
==============================================================================
Inventory Index Module
==============================================================================

Builds and holds the current inventory snapshot.

Features:
---------
- Normalized item and bin lookup indexes
- Monotonic snapshot versions
- Atomic replace: readers always see a complete snapshot

Replace Flow:
------------
    rows ──▶ build_snapshot() ──▶ new InventorySnapshot
                                        │
                                        ▼ (single reference swap)
                             InventoryIndex._snapshot

==============================================================================
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Set

from binaudit.utils.validators import normalize_code

from .models import InventorySnapshot, ItemRecord, SnapshotMetadata


# Module logger
logger = logging.getLogger(__name__)


def build_snapshot(
    records: Iterable[ItemRecord],
    version: int,
    ingested_at: Optional[datetime] = None
) -> InventorySnapshot:
    """
    Build an immutable snapshot from normalized records.

    Records without an item id are skipped. Duplicate item ids keep the last
    record, and the item is indexed only under that record's bin.

    Args:
        records: Normalized inventory records
        version: Version number to stamp
        ingested_at: Ingestion time (defaults to now, UTC)

    Returns:
        New InventorySnapshot
    """
    items: Dict[str, ItemRecord] = {}
    total = 0
    skipped = 0

    for record in records:
        item_id = normalize_code(record.item_id)
        if not item_id:
            skipped += 1
            continue

        items[item_id] = record
        total += 1

    bins: Dict[str, Set[str]] = {}
    for item_id, record in items.items():
        bin_id = normalize_code(record.expected_bin)
        if bin_id:
            bins.setdefault(bin_id, set()).add(item_id)

    if skipped:
        logger.warning(f"⚠️ Skipped {skipped} inventory rows without an item id")

    return InventorySnapshot(
        version=version,
        ingested_at=ingested_at or datetime.now(timezone.utc),
        items=items,
        bins={bin_id: frozenset(ids) for bin_id, ids in bins.items()},
        total=total,
    )


class InventoryIndex:
    """
    Holder of the current inventory snapshot.

    The snapshot is never mutated in place. replace() builds a complete new
    snapshot and then swaps the reference, so concurrent readers see either
    the old or the new snapshot.

    Example:
        >>> index = InventoryIndex()
        >>> index.replace([ItemRecord(item_id="A100", expected_bin="ABC")])
        >>> index.is_known_bin("abc")
        True
    """

    def __init__(self, initial_version: int = 0) -> None:
        """
        Args:
            initial_version: Last version handed out by an earlier process;
                the next replace() continues from it
        """
        self._snapshot: Optional[InventorySnapshot] = None
        self._version = max(initial_version, 0)
        self._lock = threading.Lock()

    # =========================================================================
    # REPLACE
    # =========================================================================

    def replace(self, records: Iterable[ItemRecord]) -> InventorySnapshot:
        """
        Replace the current snapshot with one built from records.

        Args:
            records: Normalized inventory records

        Returns:
            The newly installed snapshot
        """
        with self._lock:
            self._version += 1
            snapshot = build_snapshot(records, self._version)
            self._snapshot = snapshot

        logger.info(
            f"📦 Inventory snapshot v{snapshot.version}: "
            f"{snapshot.total} items in {len(snapshot.bins)} bins"
        )
        return snapshot

    # =========================================================================
    # READ
    # =========================================================================

    def current_snapshot(self) -> Optional[InventorySnapshot]:
        """Get the current snapshot (None until the first upload)."""
        return self._snapshot

    def lookup_item(self, item_id: str) -> Optional[ItemRecord]:
        """Find an item in the current snapshot."""
        snapshot = self._snapshot
        if snapshot is None:
            return None
        return snapshot.lookup_item(item_id)

    def is_known_bin(self, bin_id: str) -> bool:
        """Check bin membership in the current snapshot."""
        snapshot = self._snapshot
        if snapshot is None:
            return False
        return snapshot.is_known_bin(bin_id)

    def metadata(self) -> Optional[SnapshotMetadata]:
        """Get current snapshot metadata, or None before the first upload."""
        snapshot = self._snapshot
        if snapshot is None:
            return None
        return snapshot.metadata()
