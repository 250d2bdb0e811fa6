"""
==============================================================================
Audit Session Store Module
==============================================================================

One audit session per bin, with per-bin locking.

This module implements:
- AuditSessionStore: start / record_scan / end and session queries
- Upsert-by-item scan recording (never duplicates an entry)

Locking:
-------
    _registry_lock   guards the bin -> session map and the lock table only
    per-bin RLock    guards one session's state and entry upserts

Operations on different bins only meet on the registry lock, which is
held for dictionary lookups, never while classifying or emitting events.
A bin lock exists only once start() has accepted that bin.

Events for a bin are emitted while its lock is held, so listeners see
changes to one bin in commit order. Every write to an entry also takes
the next revision from a store-wide counter; clients keep the entry with
the highest revision.

Decisions:
---------
- start() on an OPEN session continues it: entries, auditor and start time
  are kept and the call reports resumed=True.
- start() on an ENDED session replaces it with a fresh, empty session.
- A rescan overwrites the entry but keeps its resolved flag.

==============================================================================
"""

from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from binaudit.core import exceptions
from binaudit.inventory import InventoryIndex
from binaudit.utils.validators import normalize_code

from .classifier import ScanClassifier
from .events import AuditEventListener
from .models import AuditSession, ScanEntry
from .validator import BinValidator


# Module logger
logger = logging.getLogger(__name__)


DEFAULT_AUDITOR = "Unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditSessionStore:
    """
    In-memory store of audit sessions keyed by bin code.

    Sessions handed out by this store are copies taken under the bin lock;
    callers can read them freely while scans continue.

    Attributes:
        _index: Inventory index used for classification
        _validator: Bin validator gating start()
        _classifier: Scan classifier
        _events: Listener receiving session and item events

    Example:
        >>> store = AuditSessionStore(index, validator, classifier, bus)
        >>> session, resumed = store.start("abc", "Jane")
        >>> entry = store.record_scan("ABC", "a100")
        >>> entry.status
        <ScanStatus.MATCH: 'match'>
        >>> store.end("ABC").end_time is not None
        True
    """

    def __init__(
        self,
        index: InventoryIndex,
        validator: BinValidator,
        classifier: ScanClassifier,
        events: Optional[AuditEventListener] = None
    ) -> None:
        self._index = index
        self._validator = validator
        self._classifier = classifier
        self._events = events or AuditEventListener()

        self._sessions: Dict[str, AuditSession] = {}
        self._bin_locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()
        self._revisions = itertools.count(1)

    # =========================================================================
    # LOCKING HELPERS
    # =========================================================================

    def _create_lock(self, bin_id: str) -> threading.RLock:
        """Get or create the lock of a bin that start() has accepted."""
        with self._registry_lock:
            lock = self._bin_locks.get(bin_id)
            if lock is None:
                lock = threading.RLock()
                self._bin_locks[bin_id] = lock
            return lock

    def _existing_lock(self, bin_id: str) -> Optional[threading.RLock]:
        """Get a bin's lock without creating one. None means no session."""
        with self._registry_lock:
            return self._bin_locks.get(bin_id)

    def _get_session(self, bin_id: str) -> Optional[AuditSession]:
        with self._registry_lock:
            return self._sessions.get(bin_id)

    @staticmethod
    def _view(session: AuditSession) -> AuditSession:
        """Copy a session for callers. Must be called under the bin lock."""
        return session.model_copy(update={"entries": dict(session.entries)})

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self, bin_id: str, auditor: Optional[str]) -> Tuple[AuditSession, bool]:
        """
        Open (or continue) the audit session for a bin.

        Args:
            bin_id: Scanned bin code
            auditor: Operator name (blank becomes "Unknown")

        Returns:
            Tuple of (session, resumed)

        Raises:
            AppException: BAD_BIN_FORMAT, NO_SNAPSHOT or UNKNOWN_BIN
        """
        normalized = self._validator.require_valid(bin_id)
        auditor = (auditor or "").strip() or DEFAULT_AUDITOR

        with self._create_lock(normalized):
            existing = self._get_session(normalized)

            if existing is not None and existing.is_open:
                session = existing
                resumed = True
            else:
                session = AuditSession(
                    bin_id=normalized,
                    auditor=auditor,
                    start_time=_utcnow(),
                )
                with self._registry_lock:
                    self._sessions[normalized] = session
                resumed = False

            view = self._view(session)
            self._events.session_started(view, resumed)

        if resumed:
            logger.info(f"🔁 Audit continued: {normalized} (requested by {auditor})")
        else:
            logger.info(f"✅ Audit started: {normalized} by {auditor}")

        return view, resumed

    def record_scan(self, bin_id: str, item_id: str) -> ScanEntry:
        """
        Classify a scanned item and upsert its entry.

        Args:
            bin_id: Bin being audited
            item_id: Scanned item code

        Returns:
            The committed ScanEntry

        Raises:
            AppException: INVALID_ITEM_ID or NO_OPEN_SESSION
        """
        bin_code = normalize_code(bin_id)
        item_code = normalize_code(item_id)

        if not item_code:
            raise exceptions.invalid_item_id()

        lock = self._existing_lock(bin_code)
        if lock is None:
            raise exceptions.no_open_session(bin_code)

        with lock:
            session = self._get_session(bin_code)
            if session is None or not session.is_open:
                raise exceptions.no_open_session(bin_code)

            snapshot = self._index.current_snapshot()
            result = self._classifier.classify(bin_code, item_code, snapshot)
            record = snapshot.lookup_item(item_code) if snapshot is not None else None
            previous = session.entries.get(item_code)

            entry = ScanEntry(
                item_id=item_code,
                expected_bin=(record.expected_bin or None) if record else None,
                scanned_bin=bin_code,
                status=result.status,
                correct_bin=result.correct_bin,
                resolved=previous.resolved if previous else False,
                timestamp=_utcnow(),
                revision=next(self._revisions),
                category=record.category if record else "",
                subcategory=record.subcategory if record else "",
                vendor_status=record.vendor_status if record else "",
                received_at=record.received_at if record else "",
            )
            session.entries[item_code] = entry
            self._events.item_scanned(bin_code, entry)

        logger.debug(f"Scan {bin_code}/{item_code}: {entry.status.value}")
        return entry

    def end(self, bin_id: str) -> AuditSession:
        """
        End the open session for a bin. Entries stay available for export.

        Raises:
            AppException: NO_OPEN_SESSION if the bin has no open session
        """
        bin_code = normalize_code(bin_id)

        lock = self._existing_lock(bin_code)
        if lock is None:
            raise exceptions.no_open_session(bin_code)

        with lock:
            session = self._get_session(bin_code)
            if session is None or not session.is_open:
                raise exceptions.no_open_session(bin_code)

            session.end_time = _utcnow()
            view = self._view(session)
            self._events.session_ended(view)

        logger.info(f"🏁 Audit ended: {bin_code} ({len(view.entries)} items)")
        return view

    # =========================================================================
    # ENTRY UPDATES
    # =========================================================================

    def update_entry(
        self,
        bin_id: str,
        item_id: str,
        change: Callable[[ScanEntry], ScanEntry],
        on_commit: Optional[Callable[[str, ScanEntry], None]] = None
    ) -> ScanEntry:
        """
        Replace one entry with change(entry) under the bin lock.

        Used by the resolution tracker. Works on open and ended sessions.
        on_commit(bin_id, entry) runs before the lock is released.

        Raises:
            AppException: SESSION_NOT_FOUND or ITEM_NOT_FOUND
        """
        bin_code = normalize_code(bin_id)
        item_code = normalize_code(item_id)

        lock = self._existing_lock(bin_code)
        if lock is None:
            raise exceptions.session_not_found(bin_code)

        with lock:
            session = self._get_session(bin_code)
            if session is None:
                raise exceptions.session_not_found(bin_code)

            current = session.entries.get(item_code)
            if current is None:
                raise exceptions.item_not_found(bin_code, item_code)

            updated = change(current).model_copy(update={"revision": next(self._revisions)})
            session.entries[item_code] = updated

            if on_commit is not None:
                on_commit(bin_code, updated)

        return updated

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get(self, bin_id: str) -> Optional[AuditSession]:
        """Get a copy of a bin's session, or None."""
        bin_code = normalize_code(bin_id)
        lock = self._existing_lock(bin_code)
        if lock is None:
            return None

        with lock:
            session = self._get_session(bin_code)
            return self._view(session) if session is not None else None

    def list_sessions(self) -> List[AuditSession]:
        """Get copies of all sessions, sorted by bin code."""
        with self._registry_lock:
            bin_ids = sorted(self._sessions.keys())

        sessions = []
        for bin_id in bin_ids:
            session = self.get(bin_id)
            if session is not None:
                sessions.append(session)
        return sessions

    def open_sessions(self) -> List[AuditSession]:
        """Get copies of sessions that still accept scans."""
        return [s for s in self.list_sessions() if s.is_open]

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._sessions)
