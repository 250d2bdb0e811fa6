"""
==============================================================================
Inventory Endpoints
==============================================================================

Inventory snapshot replacement, status and item lookup.

An upload replaces the whole snapshot. Open audit sessions keep running
and classify later scans against the new snapshot.

==============================================================================
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from binaudit.core import exceptions
from binaudit.core.dependencies import get_audit_service
from binaudit.inventory import decode_upload, parse_inventory_csv
from binaudit.schemas.inventory import (
    BinCheckResponse,
    InventoryReplaceRequest,
    ItemLookupResponse,
    SnapshotStatusResponse,
)
from binaudit.services import AuditService


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["Inventory"])

# Inventory exports stay well under this; larger files are almost certainly wrong
MAX_UPLOAD_BYTES = 20 * 1024 * 1024


class InventoryController:
    """Controller for inventory operations."""

    def __init__(self, service: AuditService):
        self._service = service

    def replace_rows(self, data: InventoryReplaceRequest) -> SnapshotStatusResponse:
        """Replace inventory from JSON rows."""
        records = [row.to_record() for row in data.rows]
        metadata = self._service.replace_inventory(records)
        logger.info(f"📦 Inventory replaced from JSON: v{metadata.version}, {metadata.total} items")
        return SnapshotStatusResponse(snapshot=metadata)

    def replace_csv(self, filename: str, content: bytes) -> SnapshotStatusResponse:
        """Replace inventory from an uploaded CSV file."""
        if not content:
            raise exceptions.invalid_inventory_file("file is empty")

        if len(content) > MAX_UPLOAD_BYTES:
            raise exceptions.invalid_inventory_file("file exceeds 20MB limit")

        records = parse_inventory_csv(decode_upload(content))
        metadata = self._service.replace_inventory(records)
        logger.info(
            f"📦 Inventory replaced from {filename}: "
            f"v{metadata.version}, {metadata.total} items, {len(metadata.bins)} bins"
        )
        return SnapshotStatusResponse(snapshot=metadata)

    def get_status(self) -> SnapshotStatusResponse:
        """Get current snapshot metadata."""
        return SnapshotStatusResponse(snapshot=self._service.snapshot_status())

    def get_item(self, item_id: str) -> ItemLookupResponse:
        """Look up one inventory item."""
        return ItemLookupResponse(item=self._service.lookup_item(item_id))

    def check_bin(self, bin_code: str) -> BinCheckResponse:
        """Check a bin code without opening an audit."""
        valid, normalized, reason = self._service.validate_bin(bin_code)
        return BinCheckResponse(
            valid=valid,
            bin_id=normalized,
            reason=reason.value if reason else None,
        )


@router.post("", response_model=SnapshotStatusResponse)
async def replace_inventory(
    data: InventoryReplaceRequest,
    service: AuditService = Depends(get_audit_service)
):
    """
    Replace the inventory snapshot from JSON rows.

    Rows accept field names (item_id, expected_bin, ...) or the upload's
    column headers ("Item ID", "Warehouse Bin ID", ...).
    """
    controller = InventoryController(service)
    return controller.replace_rows(data)


@router.post("/upload", response_model=SnapshotStatusResponse)
async def upload_inventory(
    file: UploadFile = File(...),
    service: AuditService = Depends(get_audit_service)
):
    """Replace the inventory snapshot from a CSV export."""
    content = await file.read()
    controller = InventoryController(service)
    return controller.replace_csv(file.filename or "upload.csv", content)


@router.get("/status", response_model=SnapshotStatusResponse)
async def get_inventory_status(service: AuditService = Depends(get_audit_service)):
    """Get current snapshot metadata (version, total, ingested_at, bins)."""
    controller = InventoryController(service)
    return controller.get_status()


@router.get("/items/{item_id}", response_model=ItemLookupResponse)
async def get_inventory_item(
    item_id: str,
    service: AuditService = Depends(get_audit_service)
):
    """Look up an item in the current snapshot."""
    controller = InventoryController(service)
    return controller.get_item(item_id)


@router.get("/bins/{bin_code}", response_model=BinCheckResponse)
async def check_bin(
    bin_code: str,
    service: AuditService = Depends(get_audit_service)
):
    """
    Check a scanned bin code.

    reason is one of bad-format, no-snapshot or unknown-bin when invalid.
    """
    controller = InventoryController(service)
    return controller.check_bin(bin_code)
