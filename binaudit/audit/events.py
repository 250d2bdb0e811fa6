"""
==============================================================================
Audit Events Module
==============================================================================

Typed publish/subscribe interface for audit changes.

Event Kinds:
-----------
- snapshot_updated  : inventory replaced (metadata only)
- session_started   : bin audit opened or continued
- item_scanned      : one entry inserted or overwritten
- item_resolved     : one entry's resolved flag changed
- session_ended     : bin audit closed

Item events carry the complete entry, never a delta, so a client applies
them with last-write-wins per (bin_id, item_id) in any delivery order.

==============================================================================
"""

from __future__ import annotations

import logging
import threading
from typing import List

from binaudit.inventory import SnapshotMetadata

from .models import AuditSession, ScanEntry


# Module logger
logger = logging.getLogger(__name__)


class AuditEventListener:
    """
    Receiver of audit events.

    Subclasses override the events they care about. Every method defaults to
    a no-op. Transport adapters (WebSocket, SSE, polling) implement this
    interface outside the engine.
    """

    def snapshot_updated(self, metadata: SnapshotMetadata) -> None:
        pass

    def session_started(self, session: AuditSession, resumed: bool) -> None:
        pass

    def item_scanned(self, bin_id: str, entry: ScanEntry) -> None:
        pass

    def item_resolved(self, bin_id: str, entry: ScanEntry) -> None:
        pass

    def session_ended(self, session: AuditSession) -> None:
        pass


class AuditEventBus(AuditEventListener):
    """
    Fan-out of audit events to any number of listeners.

    A listener that raises is logged and skipped. The operation that emitted
    the event has already been committed and still succeeds.

    Example:
        >>> bus = AuditEventBus()
        >>> bus.subscribe(hub)
        >>> bus.item_scanned("ABC", entry)
    """

    def __init__(self) -> None:
        self._listeners: List[AuditEventListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: AuditEventListener) -> None:
        """Add a listener."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: AuditEventListener) -> None:
        """Remove a listener (no-op if absent)."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _dispatch(self, event: str, *args) -> None:
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                getattr(listener, event)(*args)
            except Exception as e:
                logger.error(f"❌ Listener {listener!r} failed on {event}: {e}")

    # =========================================================================
    # EVENTS
    # =========================================================================

    def snapshot_updated(self, metadata: SnapshotMetadata) -> None:
        self._dispatch("snapshot_updated", metadata)

    def session_started(self, session: AuditSession, resumed: bool) -> None:
        self._dispatch("session_started", session, resumed)

    def item_scanned(self, bin_id: str, entry: ScanEntry) -> None:
        self._dispatch("item_scanned", bin_id, entry)

    def item_resolved(self, bin_id: str, entry: ScanEntry) -> None:
        self._dispatch("item_resolved", bin_id, entry)

    def session_ended(self, session: AuditSession) -> None:
        self._dispatch("session_ended", session)
