"""
==============================================================================
Inventory Models Module
==============================================================================

Pydantic models for inventory records and snapshots.

==============================================================================
"""

from datetime import datetime
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from binaudit.utils.validators import normalize_code


class ItemRecord(BaseModel):
    """
    One inventory row, normalized at the adapter boundary.

    Attributes:
        item_id: Item code (trimmed, uppercased)
        expected_bin: Bin the item should sit in (may be empty)
        received_at: Display text for warehouse receipt time
        vendor_status: Vendor lifecycle status, drives removal detection
        category: Display-only category
        subcategory: Display-only subcategory
    """

    model_config = ConfigDict(frozen=True)

    item_id: str = Field(..., description="Item code")
    expected_bin: str = Field(default="", description="Expected bin code")
    received_at: str = Field(default="", description="Received at warehouse")
    vendor_status: str = Field(default="", description="Vendor status")
    category: str = Field(default="", description="Category")
    subcategory: str = Field(default="", description="Subcategory")

    @field_validator("item_id", "expected_bin", mode="before")
    @classmethod
    def normalize_codes(cls, v) -> str:
        return normalize_code(v)

    @field_validator("received_at", "vendor_status", "category", "subcategory", mode="before")
    @classmethod
    def strip_text(cls, v) -> str:
        if v is None:
            return ""
        return str(v).strip()


class SnapshotMetadata(BaseModel):
    """Snapshot summary pushed to clients and served on the pull path."""

    version: int
    total: int
    ingested_at: Optional[datetime] = None
    bins: List[str] = Field(default_factory=list)
    loaded: bool = True


class InventorySnapshot(BaseModel):
    """
    Immutable, versioned view of the latest uploaded inventory.

    Built once by build_snapshot() and never mutated afterwards, so it can
    be read from any number of requests while a replacement is built.

    Attributes:
        version: Monotonic snapshot number
        ingested_at: When the rows were indexed
        items: item_id -> ItemRecord (last write wins on duplicates)
        bins: bin code -> item ids expected in that bin
        total: Number of accepted rows, duplicates included
    """

    model_config = ConfigDict(frozen=True)

    version: int = Field(..., ge=1)
    ingested_at: datetime
    items: Dict[str, ItemRecord] = Field(default_factory=dict)
    bins: Dict[str, FrozenSet[str]] = Field(default_factory=dict)
    total: int = Field(default=0, ge=0)

    def lookup_item(self, item_id: str) -> Optional[ItemRecord]:
        """Find an item by code (normalized before lookup)."""
        return self.items.get(normalize_code(item_id))

    def is_known_bin(self, bin_id: str) -> bool:
        """Check whether any item is expected in the bin."""
        return normalize_code(bin_id) in self.bins

    def expected_items(self, bin_id: str) -> FrozenSet[str]:
        """Get the item ids expected in a bin."""
        return self.bins.get(normalize_code(bin_id), frozenset())

    def metadata(self) -> SnapshotMetadata:
        """Summarize the snapshot for broadcasting."""
        return SnapshotMetadata(
            version=self.version,
            total=self.total,
            ingested_at=self.ingested_at,
            bins=sorted(self.bins.keys()),
        )
