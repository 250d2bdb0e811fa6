"""
==============================================================================
Connection Hub Module
==============================================================================

Pushes audit events to every connected WebSocket client.

Thread Model:
------------
Engine operations may run in FastAPI's thread pool, so listener callbacks
can arrive on any thread. The hub never touches a socket from the callback:
it hands the message to the connection's event loop with
call_soon_threadsafe, and a sender task on that loop drains the queue.

    engine thread ──▶ ConnectionHub.item_scanned()
                            │ call_soon_threadsafe
                            ▼
                    asyncio.Queue (one per connection)
                            │
                            ▼
                    sender task ──▶ websocket.send_json()

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Dict, List, Optional

from binaudit.audit import AuditEventListener, AuditSession, ScanEntry
from binaudit.inventory import SnapshotMetadata


# Module logger
logger = logging.getLogger(__name__)


class Connection:
    """One client's outbound queue and the loop that owns it."""

    def __init__(self, auditor: str, loop: asyncio.AbstractEventLoop) -> None:
        self.auditor = auditor
        self.loop = loop
        self.queue: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue()

    def push(self, message: Dict[str, Any]) -> None:
        """Queue a message from any thread."""
        if self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self.queue.put_nowait, message)

    def __repr__(self) -> str:
        return f"Connection(auditor={self.auditor!r})"


# =============================================================================
# MESSAGE BUILDERS
# =============================================================================

def session_message(session: AuditSession) -> Dict[str, Any]:
    """Session summary as sent to clients."""
    return {
        "bin_id": session.bin_id,
        "auditor": session.auditor,
        "status": session.status_label,
        "start_time": session.start_time.isoformat(),
        "end_time": session.end_time.isoformat() if session.end_time else None,
        "item_count": len(session.entries),
    }


def entry_message(bin_id: str, entry: ScanEntry) -> Dict[str, Any]:
    """Full entry as sent to clients."""
    return {
        "bin_id": bin_id,
        "entry": entry.model_dump(mode="json"),
        "needs_attention": entry.status.needs_attention,
    }


def snapshot_message(metadata: SnapshotMetadata) -> Dict[str, Any]:
    return metadata.model_dump(mode="json")


class ConnectionHub(AuditEventListener):
    """
    Broadcasts audit events to all registered connections.

    Every message is self-contained (item events carry the full entry), so a
    client that reconnects only needs the hello message to catch up.

    Example:
        >>> hub = ConnectionHub()
        >>> service.subscribe(hub)
        >>> connection = hub.register("Jane")
        >>> message = await connection.queue.get()
    """

    def __init__(self) -> None:
        self._connections: List[Connection] = []
        self._lock = threading.Lock()

    # =========================================================================
    # CONNECTIONS
    # =========================================================================

    def register(
        self,
        auditor: str,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ) -> Connection:
        """
        Register a connection on the running loop.

        Args:
            auditor: Operator name of the client
            loop: Event loop owning the connection (default: running loop)
        """
        connection = Connection(auditor, loop or asyncio.get_running_loop())
        with self._lock:
            self._connections.append(connection)
        logger.info(f"📡 Client registered: {auditor} ({self.connection_count} connected)")
        return connection

    def unregister(self, connection: Connection) -> None:
        with self._lock:
            if connection in self._connections:
                self._connections.remove(connection)
        logger.info(f"📡 Client unregistered: {connection.auditor}")

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def broadcast(self, message: Dict[str, Any]) -> None:
        """Queue a message for every connection."""
        with self._lock:
            connections = list(self._connections)

        for connection in connections:
            try:
                connection.push(message)
            except RuntimeError as e:
                # Loop closed between the check in push() and the call
                logger.debug(f"Dropped {message.get('type')} for {connection}: {e}")

    # =========================================================================
    # EVENTS
    # =========================================================================

    def snapshot_updated(self, metadata: SnapshotMetadata) -> None:
        self.broadcast({
            "type": "snapshot-updated",
            "snapshot": snapshot_message(metadata),
        })

    def session_started(self, session: AuditSession, resumed: bool) -> None:
        self.broadcast({
            "type": "session-started",
            "resumed": resumed,
            "session": session_message(session),
        })

    def item_scanned(self, bin_id: str, entry: ScanEntry) -> None:
        self.broadcast({"type": "item-scanned", **entry_message(bin_id, entry)})

    def item_resolved(self, bin_id: str, entry: ScanEntry) -> None:
        self.broadcast({"type": "item-resolved", **entry_message(bin_id, entry)})

    def session_ended(self, session: AuditSession) -> None:
        self.broadcast({
            "type": "session-ended",
            "session": session_message(session),
        })
