"""
==============================================================================
Export Summarizer Module
==============================================================================

Flattens audit sessions into an item-detail report and per-bin rollups.

Rollup Definitions:
------------------
- expected_count        items the snapshot places in the bin
- scanned_unique_count  distinct items scanned in the session
- missing_count         expected items never scanned in the session
- accuracy_pct          matched / scanned_unique * 100   ("audit accuracy")
- coverage_pct          (expected - missing) / expected * 100   ("coverage")

Accuracy answers "of what we scanned, how much was in the right place";
coverage answers "how much of what should be there did we find". They use
different denominators and are reported separately.

CSV Layout:
----------
    ITEM DETAIL
    <header>
    <one row per scanned item>

    BIN SUMMARY
    <header>
    <one row per bin>

==============================================================================
"""

from __future__ import annotations

import csv
import io
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from binaudit.core import exceptions
from binaudit.inventory import InventorySnapshot

from .models import AuditSession, ScanStatus


# Module logger
logger = logging.getLogger(__name__)


class ItemDetailRow(BaseModel):
    """One scanned item in the export."""

    bin_id: str
    auditor: str
    audit_status: str
    item_id: str
    expected_bin: Optional[str] = None
    scanned_bin: str
    status: ScanStatus
    correct_bin: Optional[str] = None
    resolved: bool
    timestamp: datetime
    category: str = ""
    subcategory: str = ""
    vendor_status: str = ""
    received_at: str = ""


class BinSummaryRow(BaseModel):
    """Rollup for one audited bin."""

    bin_id: str
    auditor: str
    audit_status: str
    start_time: datetime
    end_time: Optional[datetime] = None
    expected_count: int = Field(ge=0)
    scanned_unique_count: int = Field(ge=0)
    matched_count: int = Field(ge=0)
    mismatch_count: int = Field(ge=0)
    unknown_count: int = Field(ge=0)
    remove_count: int = Field(ge=0)
    resolved_count: int = Field(ge=0)
    missing_count: int = Field(ge=0)
    missing_item_ids: List[str] = Field(default_factory=list)
    accuracy_pct: float = Field(ge=0, le=100)
    coverage_pct: Optional[float] = None


class AuditExport(BaseModel):
    """Complete export: item detail section plus bin summary section."""

    generated_at: datetime
    snapshot_version: Optional[int] = None
    items: List[ItemDetailRow]
    bins: List[BinSummaryRow]


ITEM_HEADER = [
    "Bin ID", "Auditor", "Audit Status", "Item ID", "Expected Bin",
    "Scanned Bin", "Item Status", "Correct Bin", "Resolved", "Timestamp",
    "Category", "Subcategory", "Vendor Status", "Received At",
]

BIN_HEADER = [
    "Bin ID", "Auditor", "Audit Status", "Start Time", "End Time",
    "Expected", "Scanned", "Matched", "Mismatch", "Unknown", "Remove",
    "Resolved", "Missing", "Accuracy %", "Coverage %", "Missing Items",
]


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


class ExportSummarizer:
    """
    Builds export reports from sessions and the current snapshot.

    Example:
        >>> report = ExportSummarizer().export_all(store.list_sessions(), snapshot)
        >>> report.bins[0].accuracy_pct
        33.3
    """

    def export_all(
        self,
        sessions: Iterable[AuditSession],
        snapshot: Optional[InventorySnapshot],
        generated_at: Optional[datetime] = None
    ) -> AuditExport:
        """
        Build the item detail and bin summary sections.

        Args:
            sessions: Audit sessions (open and ended)
            snapshot: Current snapshot, source of expected counts
            generated_at: Report timestamp (defaults to now)

        Returns:
            AuditExport

        Raises:
            AppException: NO_AUDITS_TO_EXPORT when there are no sessions
        """
        ordered = sorted(sessions, key=lambda s: s.bin_id)
        if not ordered:
            raise exceptions.no_audits_to_export()

        items: List[ItemDetailRow] = []
        bins: List[BinSummaryRow] = []

        for session in ordered:
            entries = session.entry_list()

            for entry in entries:
                items.append(ItemDetailRow(
                    bin_id=session.bin_id,
                    auditor=session.auditor,
                    audit_status=session.status_label,
                    item_id=entry.item_id,
                    expected_bin=entry.expected_bin,
                    scanned_bin=entry.scanned_bin,
                    status=entry.status,
                    correct_bin=entry.correct_bin,
                    resolved=entry.resolved,
                    timestamp=entry.timestamp,
                    category=entry.category,
                    subcategory=entry.subcategory,
                    vendor_status=entry.vendor_status,
                    received_at=entry.received_at,
                ))

            bins.append(self.summarize_session(session, snapshot))

        logger.info(f"📊 Export built: {len(bins)} bins, {len(items)} items")

        return AuditExport(
            generated_at=generated_at or datetime.now().astimezone(),
            snapshot_version=snapshot.version if snapshot is not None else None,
            items=items,
            bins=bins,
        )

    def summarize_session(
        self,
        session: AuditSession,
        snapshot: Optional[InventorySnapshot]
    ) -> BinSummaryRow:
        """Roll up one session against the snapshot's bin index."""
        expected = snapshot.expected_items(session.bin_id) if snapshot is not None else frozenset()
        entries = session.entry_list()
        scanned_ids = {entry.item_id for entry in entries}

        counts = {status: 0 for status in ScanStatus}
        for entry in entries:
            counts[entry.status] += 1

        missing = sorted(expected - scanned_ids)

        return BinSummaryRow(
            bin_id=session.bin_id,
            auditor=session.auditor,
            audit_status=session.status_label,
            start_time=session.start_time,
            end_time=session.end_time,
            expected_count=len(expected),
            scanned_unique_count=len(scanned_ids),
            matched_count=counts[ScanStatus.MATCH],
            mismatch_count=counts[ScanStatus.MISMATCH],
            unknown_count=counts[ScanStatus.UNKNOWN],
            remove_count=counts[ScanStatus.REMOVE],
            resolved_count=sum(1 for entry in entries if entry.resolved),
            missing_count=len(missing),
            missing_item_ids=missing,
            accuracy_pct=_percent(counts[ScanStatus.MATCH], len(scanned_ids)),
            coverage_pct=_percent(len(expected) - len(missing), len(expected)) if expected else None,
        )

    # =========================================================================
    # CSV RENDERING
    # =========================================================================

    @staticmethod
    def _format_datetime(dt: Optional[datetime]) -> str:
        if dt is None:
            return "-"
        return dt.isoformat()

    def render_csv(self, report: AuditExport) -> str:
        """Render an export as CSV text with both sections."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")

        writer.writerow(["ITEM DETAIL"])
        writer.writerow(ITEM_HEADER)
        for row in report.items:
            writer.writerow([
                row.bin_id,
                row.auditor,
                row.audit_status,
                row.item_id,
                row.expected_bin or "-",
                row.scanned_bin,
                row.status.value,
                row.correct_bin or "-",
                "Yes" if row.resolved else "No",
                self._format_datetime(row.timestamp),
                row.category,
                row.subcategory,
                row.vendor_status,
                row.received_at,
            ])

        writer.writerow([])
        writer.writerow(["BIN SUMMARY"])
        writer.writerow(BIN_HEADER)
        for row in report.bins:
            writer.writerow([
                row.bin_id,
                row.auditor,
                row.audit_status,
                self._format_datetime(row.start_time),
                self._format_datetime(row.end_time),
                row.expected_count,
                row.scanned_unique_count,
                row.matched_count,
                row.mismatch_count,
                row.unknown_count,
                row.remove_count,
                row.resolved_count,
                row.missing_count,
                row.accuracy_pct,
                "-" if row.coverage_pct is None else row.coverage_pct,
                " ".join(row.missing_item_ids),
            ])

        return buffer.getvalue()
