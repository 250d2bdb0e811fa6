"""
Resolution tracking for scan entries.

An operator marks an entry resolved once the item has been moved, removed or
otherwise dealt with. Resolution is independent of classification and is
allowed for every status, in open and ended sessions.
"""

from __future__ import annotations

import logging

from .events import AuditEventListener
from .models import ScanEntry
from .sessions import AuditSessionStore


# Module logger
logger = logging.getLogger(__name__)


class ResolutionTracker:
    """Sole writer of ScanEntry.resolved."""

    def __init__(self, store: AuditSessionStore, events: AuditEventListener) -> None:
        self._store = store
        self._events = events

    def set_resolved(self, bin_id: str, item_id: str, resolved: bool) -> ScanEntry:
        """
        Set the resolved flag of one entry.

        Args:
            bin_id: Audited bin
            item_id: Scanned item
            resolved: New flag value

        Returns:
            Updated entry (every other field unchanged)

        Raises:
            AppException: SESSION_NOT_FOUND or ITEM_NOT_FOUND
        """
        flag = bool(resolved)
        entry = self._store.update_entry(
            bin_id,
            item_id,
            lambda current: current.model_copy(update={"resolved": flag}),
            on_commit=self._events.item_resolved,
        )

        logger.info(f"{'☑️' if flag else '⬜'} {entry.scanned_bin}/{entry.item_id} resolved={flag}")
        return entry
