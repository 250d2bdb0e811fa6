"""
==============================================================================
Inventory Loader Module
==============================================================================

Adapter that turns an uploaded inventory CSV into ItemRecord objects.

Expected Columns (header match is case-insensitive):
---------------------------------------------------
    Item ID                 -> item_id        (required)
    Warehouse Bin ID        -> expected_bin
    Received At Warehouse   -> received_at
    Status                  -> vendor_status
    Category                -> category
    Subcategory             -> subcategory

==============================================================================
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Dict, List

from binaudit.core import exceptions

from .models import ItemRecord


# Module logger
logger = logging.getLogger(__name__)


COLUMN_MAP: Dict[str, str] = {
    "item id": "item_id",
    "warehouse bin id": "expected_bin",
    "received at warehouse": "received_at",
    "status": "vendor_status",
    "category": "category",
    "subcategory": "subcategory",
}


def decode_upload(content: bytes) -> str:
    """Decode uploaded bytes, tolerating a UTF-8 BOM and Latin-1 exports."""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning("Inventory upload is not UTF-8, falling back to latin-1")
        return content.decode("latin-1")


def parse_inventory_csv(text: str) -> List[ItemRecord]:
    """
    Parse inventory CSV text into normalized records.

    Args:
        text: CSV content with a header row

    Returns:
        List of ItemRecord (rows with an empty item id are kept and later
        skipped by the index)

    Raises:
        AppException: INVALID_INVENTORY_FILE if the header has no item id column
    """
    reader = csv.DictReader(io.StringIO(text))

    if not reader.fieldnames:
        raise exceptions.invalid_inventory_file("file is empty")

    header = {
        name: COLUMN_MAP.get(name.strip().lower())
        for name in reader.fieldnames
        if name is not None
    }

    if "item_id" not in header.values():
        raise exceptions.invalid_inventory_file("missing 'Item ID' column")

    records = []
    for row in reader:
        values = {
            field: row.get(column)
            for column, field in header.items()
            if field is not None
        }
        records.append(ItemRecord(**values))

    logger.info(f"📄 Parsed {len(records)} inventory rows")
    return records
