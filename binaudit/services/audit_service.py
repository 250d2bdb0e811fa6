"""
==============================================================================
Audit Service Module
==============================================================================

The audit engine: one object wiring inventory, sessions, resolution,
events and export behind the logical operations the transport exposes.

Operations:
----------
    replace_inventory(records)            -> SnapshotMetadata
    snapshot_status()                     -> SnapshotMetadata  (pull path)
    start_session(bin_id, auditor)        -> (AuditSession, resumed)
    record_scan(bin_id, item_id)          -> ScanEntry
    set_resolved(bin_id, item_id, flag)   -> ScanEntry
    end_session(bin_id)                   -> AuditSession
    export_all() / export_csv()           -> AuditExport / CSV text

Data Flow:
---------
    upload ──▶ InventoryIndex.replace ──▶ snapshot_updated
                       │
    bin scan ──▶ BinValidator ──▶ AuditSessionStore.start ──▶ session_started
                                           │
    item scan ──▶ ScanClassifier ──▶ upsert entry ──▶ item_scanned
                                           │
    resolve ──▶ ResolutionTracker ──────────┴──────▶ item_resolved
                                           │
    end ──────────────────────────────────────────▶ session_ended
                                           │
    export ──▶ ExportSummarizer (sessions + current snapshot)

Each application (and each test) builds its own AuditService. Nothing in
the engine is a module-level singleton.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from binaudit.audit import (
    AuditEventBus,
    AuditEventListener,
    AuditExport,
    AuditSession,
    AuditSessionStore,
    BinRejectReason,
    BinValidator,
    ExportSummarizer,
    ResolutionTracker,
    ScanClassifier,
    ScanEntry,
)
from binaudit.config import Settings
from binaudit.core import exceptions
from binaudit.inventory import InventoryIndex, ItemRecord, SnapshotMetadata
from binaudit.utils.validators import BinCodeValidator, normalize_code

from .metadata_service import UploadMetadataService


# Module logger
logger = logging.getLogger(__name__)


class AuditService:
    """
    Audit session engine.

    Attributes:
        settings: Settings the engine was built with
        index: Current inventory snapshot holder
        events: Event bus; transports subscribe here
        store: Per-bin session store

    Example:
        >>> service = AuditService(Settings())
        >>> service.replace_inventory([ItemRecord(item_id="A100", expected_bin="ABC")])
        >>> service.start_session("ABC", "Jane")
        >>> service.record_scan("ABC", "A100").status
        <ScanStatus.MATCH: 'match'>
    """

    def __init__(
        self,
        settings: Settings,
        metadata_service: Optional[UploadMetadataService] = None
    ) -> None:
        self.settings = settings
        self._metadata = metadata_service

        self.index = InventoryIndex(initial_version=self._last_persisted_version())
        self.events = AuditEventBus()
        self.validator = BinValidator(
            self.index,
            BinCodeValidator(
                length=settings.bin_code_length,
                charset=settings.bin_code_charset,
            ),
        )
        self.classifier = ScanClassifier(settings.terminal_status_set)
        self.store = AuditSessionStore(
            self.index,
            self.validator,
            self.classifier,
            self.events,
        )
        self.resolutions = ResolutionTracker(self.store, self.events)
        self.summarizer = ExportSummarizer()

    def _last_persisted_version(self) -> int:
        """Version of the last recorded upload, so versions keep rising across restarts."""
        if self._metadata is None:
            return 0

        latest = self._metadata.latest()
        return latest.version if latest is not None else 0

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def subscribe(self, listener: AuditEventListener) -> None:
        """Register a listener for all audit events."""
        self.events.subscribe(listener)

    def unsubscribe(self, listener: AuditEventListener) -> None:
        """Remove a listener."""
        self.events.unsubscribe(listener)

    # =========================================================================
    # INVENTORY
    # =========================================================================

    def replace_inventory(self, records: Iterable[ItemRecord]) -> SnapshotMetadata:
        """
        Replace the inventory snapshot and announce it.

        Args:
            records: Normalized inventory records

        Returns:
            Metadata of the new snapshot
        """
        snapshot = self.index.replace(records)
        metadata = snapshot.metadata()

        if self._metadata is not None:
            self._metadata.record(metadata)

        self.events.snapshot_updated(metadata)
        return metadata

    def snapshot_status(self) -> SnapshotMetadata:
        """
        Current snapshot metadata, for clients that missed a broadcast.

        Falls back to the last persisted upload (loaded=False) and then to
        an empty, unloaded status.
        """
        metadata = self.index.metadata()
        if metadata is not None:
            return metadata

        if self._metadata is not None:
            persisted = self._metadata.latest()
            if persisted is not None:
                return persisted

        return SnapshotMetadata(version=0, total=0, loaded=False)

    def lookup_item(self, item_id: str) -> ItemRecord:
        """
        Look up an inventory item.

        Raises:
            AppException: NO_SNAPSHOT or ITEM_NOT_FOUND
        """
        if self.index.current_snapshot() is None:
            raise exceptions.no_snapshot()

        record = self.index.lookup_item(item_id)
        if record is None:
            raise exceptions.inventory_item_not_found(normalize_code(item_id))
        return record

    def validate_bin(
        self,
        raw_code: str
    ) -> Tuple[bool, Optional[str], Optional[BinRejectReason]]:
        """Check a bin code without opening a session."""
        return self.validator.validate(raw_code)

    # =========================================================================
    # SESSIONS
    # =========================================================================

    def start_session(self, bin_id: str, auditor: Optional[str]) -> Tuple[AuditSession, bool]:
        """Open or continue a bin audit."""
        return self.store.start(bin_id, auditor)

    def record_scan(self, bin_id: str, item_id: str) -> ScanEntry:
        """Classify and record a scanned item."""
        return self.store.record_scan(bin_id, item_id)

    def set_resolved(self, bin_id: str, item_id: str, resolved: bool) -> ScanEntry:
        """Set an entry's resolved flag."""
        return self.resolutions.set_resolved(bin_id, item_id, resolved)

    def end_session(self, bin_id: str) -> AuditSession:
        """End a bin audit."""
        return self.store.end(bin_id)

    def get_session(self, bin_id: str) -> AuditSession:
        """
        Get a bin's session.

        Raises:
            AppException: SESSION_NOT_FOUND
        """
        session = self.store.get(bin_id)
        if session is None:
            raise exceptions.session_not_found(normalize_code(bin_id))
        return session

    def list_sessions(self) -> List[AuditSession]:
        """All sessions, sorted by bin code."""
        return self.store.list_sessions()

    def open_sessions(self) -> List[AuditSession]:
        """Sessions still accepting scans."""
        return self.store.open_sessions()

    # =========================================================================
    # EXPORT
    # =========================================================================

    def export_all(self) -> AuditExport:
        """
        Build the full export.

        Raises:
            AppException: NO_AUDITS_TO_EXPORT
        """
        return self.summarizer.export_all(
            self.store.list_sessions(),
            self.index.current_snapshot(),
        )

    def export_csv(self, report: Optional[AuditExport] = None) -> str:
        """Render an export (default: a fresh one) as CSV."""
        return self.summarizer.render_csv(report or self.export_all())
