"""
==============================================================================
Audit Package - Session Engine
==============================================================================

Bin validation, scan classification, session storage, resolution tracking,
change events and export aggregation.

Classes:
--------
- BinValidator: Gate for opening a bin session
- ScanClassifier: Pure (bin, item, snapshot) -> classification
- AuditSessionStore: One session per bin, upsert-by-item scans
- ResolutionTracker: Sole writer of the resolved flag
- AuditEventListener / AuditEventBus: Typed publish/subscribe
- ExportSummarizer: Item detail and per-bin rollups

==============================================================================
"""

from .models import (
    AuditSession,
    BinRejectReason,
    ClassificationResult,
    ScanEntry,
    ScanStatus,
)
from .validator import BinValidator
from .classifier import ScanClassifier
from .events import AuditEventBus, AuditEventListener
from .sessions import AuditSessionStore
from .resolution import ResolutionTracker
from .export import AuditExport, BinSummaryRow, ExportSummarizer, ItemDetailRow

__all__ = [
    "AuditSession",
    "BinRejectReason",
    "ClassificationResult",
    "ScanEntry",
    "ScanStatus",
    "BinValidator",
    "ScanClassifier",
    "AuditEventBus",
    "AuditEventListener",
    "AuditSessionStore",
    "ResolutionTracker",
    "AuditExport",
    "BinSummaryRow",
    "ExportSummarizer",
    "ItemDetailRow",
]
