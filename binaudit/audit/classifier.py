"""
==============================================================================
Scan Classifier Module
==============================================================================

Pure classification of a scanned item against the inventory snapshot.

Priority Order:
--------------
1. Item not in snapshot              -> UNKNOWN
2. Vendor status is terminal         -> REMOVE   (outranks bin comparison)
3. Item has no expected bin          -> UNKNOWN
4. Expected bin == scanned bin       -> MATCH
5. Otherwise                         -> MISMATCH (carries the correct bin)

==============================================================================
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, Optional

from binaudit.inventory import InventorySnapshot, ItemRecord
from binaudit.utils.validators import normalize_code

from .models import ClassificationResult, ScanStatus


class ScanClassifier:
    """
    Stateless scan classifier.

    The only configuration is the set of terminal vendor statuses. The same
    inputs always produce the same result; nothing is recorded.

    Example:
        >>> classifier = ScanClassifier({"ABANDONED"})
        >>> classifier.classify("ABC", "A100", snapshot).status
        <ScanStatus.MATCH: 'match'>
    """

    def __init__(self, terminal_statuses: Iterable[str]) -> None:
        self._terminal: FrozenSet[str] = frozenset(
            normalize_code(status) for status in terminal_statuses
        )

    @property
    def terminal_statuses(self) -> FrozenSet[str]:
        """Normalized terminal vendor statuses."""
        return self._terminal

    def is_terminal(self, record: ItemRecord) -> bool:
        """Check whether the record's vendor status means removal."""
        return normalize_code(record.vendor_status) in self._terminal

    def classify_record(
        self,
        scanned_bin: str,
        record: Optional[ItemRecord]
    ) -> ClassificationResult:
        """Classify an already looked-up record (None = not in inventory)."""
        if record is None:
            return ClassificationResult(status=ScanStatus.UNKNOWN)

        if self.is_terminal(record):
            return ClassificationResult(status=ScanStatus.REMOVE)

        expected = normalize_code(record.expected_bin)
        if not expected:
            return ClassificationResult(status=ScanStatus.UNKNOWN)

        if expected == normalize_code(scanned_bin):
            return ClassificationResult(status=ScanStatus.MATCH)

        return ClassificationResult(status=ScanStatus.MISMATCH, correct_bin=expected)

    def classify(
        self,
        scanned_bin: str,
        item_id: str,
        snapshot: Optional[InventorySnapshot]
    ) -> ClassificationResult:
        """
        Classify a scanned item.

        Args:
            scanned_bin: Bin the item was scanned into
            item_id: Scanned item code
            snapshot: Current inventory snapshot (None = nothing loaded)

        Returns:
            ClassificationResult with status and, for mismatches, correct bin
        """
        record = snapshot.lookup_item(item_id) if snapshot is not None else None
        return self.classify_record(scanned_bin, record)
