"""
==============================================================================
Inventory Schemas Module
==============================================================================

Request and response schemas for inventory replacement and lookup.

==============================================================================
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from binaudit.inventory import ItemRecord, SnapshotMetadata


class InventoryRowIn(BaseModel):
    """
    One inventory row supplied as JSON.

    Accepts either field names or the upload's column headers
    ("Item ID", "Warehouse Bin ID", ...).
    """

    model_config = ConfigDict(populate_by_name=True)

    item_id: str = Field(..., alias="Item ID", max_length=100)
    expected_bin: Optional[str] = Field(default="", alias="Warehouse Bin ID", max_length=50)
    received_at: Optional[str] = Field(default="", alias="Received At Warehouse", max_length=100)
    vendor_status: Optional[str] = Field(default="", alias="Status", max_length=100)
    category: Optional[str] = Field(default="", alias="Category", max_length=255)
    subcategory: Optional[str] = Field(default="", alias="Subcategory", max_length=255)

    def to_record(self) -> ItemRecord:
        """Normalize into the engine's ItemRecord."""
        return ItemRecord(
            item_id=self.item_id,
            expected_bin=self.expected_bin,
            received_at=self.received_at,
            vendor_status=self.vendor_status,
            category=self.category,
            subcategory=self.subcategory,
        )


class InventoryReplaceRequest(BaseModel):
    """Replace the whole inventory with these rows."""
    rows: List[InventoryRowIn] = Field(default_factory=list)


class SnapshotStatusResponse(BaseModel):
    """Current snapshot metadata."""
    success: bool = Field(default=True)
    snapshot: SnapshotMetadata


class ItemLookupResponse(BaseModel):
    """Single inventory item."""
    success: bool = Field(default=True)
    item: ItemRecord


class BinCheckResponse(BaseModel):
    """Whether a scanned bin code can open an audit."""
    success: bool = Field(default=True)
    valid: bool
    bin_id: Optional[str] = None
    reason: Optional[str] = None
