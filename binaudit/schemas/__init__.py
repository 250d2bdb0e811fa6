"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

This package provides:
- Inventory: Inventory replace / status / lookup schemas
- Audit: Session, scan and resolution schemas

==============================================================================
"""

from .inventory import (
    InventoryRowIn,
    InventoryReplaceRequest,
    SnapshotStatusResponse,
    ItemLookupResponse,
    BinCheckResponse,
)
from .audit import (
    StartAuditRequest,
    ScanRequest,
    ResolveRequest,
    SessionBrief,
    SessionDetail,
    SessionResponse,
    SessionListResponse,
    ScanResponse,
    ResolveResponse,
)

__all__ = [
    # Inventory
    "InventoryRowIn",
    "InventoryReplaceRequest",
    "SnapshotStatusResponse",
    "ItemLookupResponse",
    "BinCheckResponse",
    # Audit
    "StartAuditRequest",
    "ScanRequest",
    "ResolveRequest",
    "SessionBrief",
    "SessionDetail",
    "SessionResponse",
    "SessionListResponse",
    "ScanResponse",
    "ResolveResponse",
]
