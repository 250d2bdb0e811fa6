"""
==============================================================================
Inventory Package - Snapshot Indexing
==============================================================================

Versioned, read-only inventory snapshots with item and bin indexes.

Classes:
--------
- ItemRecord: Normalized inventory row
- InventorySnapshot: Immutable snapshot with lookup indexes
- SnapshotMetadata: Summary pushed to clients
- InventoryIndex: Holder of the current snapshot (atomic replace)

==============================================================================
"""

from .models import ItemRecord, InventorySnapshot, SnapshotMetadata
from .index import InventoryIndex, build_snapshot
from .loader import parse_inventory_csv, decode_upload

__all__ = [
    "ItemRecord",
    "InventorySnapshot",
    "SnapshotMetadata",
    "InventoryIndex",
    "build_snapshot",
    "parse_inventory_csv",
    "decode_upload",
]
