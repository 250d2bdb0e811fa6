"""
==============================================================================
Audit WebSocket Module
==============================================================================

Real-time bin auditing over one WebSocket connection.

Protocol:
---------
1. Client connects to /ws/audit?auditor=NAME
2. Server sends a hello message (snapshot metadata + open sessions)
3. Client sends start / scan / resolve / end / get_status / stop messages
4. Server replies (session, scan-result, resolved, status, error) and pushes
   every audit event from any client (snapshot-updated, session-started,
   item-scanned, item-resolved, session-ended)

Client Messages:
---------------
    {"type": "start", "bin_id": "ABC", "auditor": "Jane"}
    {"type": "scan", "bin_id": "ABC", "item_id": "A100"}
    {"type": "resolve", "bin_id": "ABC", "item_id": "A100", "resolved": true}
    {"type": "end", "bin_id": "ABC"}
    {"type": "get_status"}
    {"type": "stop"}

Scan Debounce:
-------------
Handheld scanners repeat a code while the trigger is held. A scan of the
same (bin, item) pair within scan_debounce_ms of the last accepted one on
this connection is dropped.

==============================================================================
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

from binaudit.core.dependencies import get_audit_service_ws
from binaudit.core import exceptions
from binaudit.core.exceptions import AppException
from binaudit.services import AuditService
from binaudit.utils.validators import normalize_code

from .hub import Connection, ConnectionHub, entry_message, session_message, snapshot_message


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter()


def get_connection_hub_ws(websocket: WebSocket) -> ConnectionHub:
    """Get the application's connection hub."""
    return websocket.app.state.connection_hub


class AuditWebSocketHandler:
    """
    Handler for bin audit WebSocket connections.

    All outbound messages, replies and broadcasts alike, go through the
    connection queue so one sender task is the only writer on the socket.
    """

    def __init__(
        self,
        websocket: WebSocket,
        service: AuditService,
        hub: ConnectionHub,
        auditor: Optional[str]
    ):
        self._websocket = websocket
        self._service = service
        self._hub = hub
        self._auditor = (auditor or "").strip() or None
        self._debounce_seconds = service.settings.scan_debounce_seconds
        self._last_scans: Dict[Tuple[str, str], float] = {}
        self._connection: Optional[Connection] = None

    # =========================================================================
    # OUTBOUND
    # =========================================================================

    def _reply(self, message: Dict[str, Any]) -> None:
        self._connection.queue.put_nowait(message)

    def _send_error(self, message: str, code: str = "ERROR", details: Optional[dict] = None) -> None:
        """Queue an error message."""
        self._reply({
            "type": "error",
            "code": code,
            "message": message,
            "details": details or {},
        })

    def _status_message(self, message_type: str) -> Dict[str, Any]:
        return {
            "type": message_type,
            "auditor": self._auditor,
            "snapshot": snapshot_message(self._service.snapshot_status()),
            "sessions": [
                session_message(session)
                for session in self._service.open_sessions()
            ],
        }

    async def _sender(self) -> None:
        """Drain the connection queue into the socket."""
        while True:
            message = await self._connection.queue.get()
            try:
                await self._websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError):
                logger.debug("Send failed, connection closing")
                return
            finally:
                self._connection.queue.task_done()

    # =========================================================================
    # MESSAGE HANDLERS
    # =========================================================================

    def handle_start(self, data: dict) -> None:
        session, resumed = self._service.start_session(
            data.get("bin_id"),
            data.get("auditor") or self._auditor,
        )
        self._reply({
            "type": "session",
            "resumed": resumed,
            "session": session_message(session),
        })

    def _is_debounced(self, key: Tuple[str, str], now: float) -> bool:
        last = self._last_scans.get(key)
        return last is not None and now - last < self._debounce_seconds

    def handle_scan(self, data: dict) -> None:
        bin_id = data.get("bin_id")
        item_id = data.get("item_id")

        key = (normalize_code(bin_id), normalize_code(item_id))
        now = time.monotonic()

        if self._is_debounced(key, now):
            logger.debug(f"Debounced repeat scan: {key[0]}/{key[1]}")
            return

        entry = self._service.record_scan(bin_id, item_id)
        self._last_scans[key] = now
        self._reply({
            "type": "scan-result",
            **entry_message(normalize_code(bin_id), entry),
        })

    def handle_resolve(self, data: dict) -> None:
        bin_id = data.get("bin_id")
        entry = self._service.set_resolved(
            bin_id,
            data.get("item_id"),
            bool(data.get("resolved", True)),
        )
        self._reply({"type": "resolved", **entry_message(normalize_code(bin_id), entry)})

    def handle_end(self, data: dict) -> None:
        session = self._service.end_session(data.get("bin_id"))
        self._reply({"type": "ended", "session": session_message(session)})

    def handle_get_status(self) -> None:
        self._reply(self._status_message("status"))

    def handle_message(self, data: dict) -> bool:
        """
        Dispatch one client message.

        Returns:
            False when the client asked to stop
        """
        msg_type = data.get("type")

        try:
            if msg_type == "scan":
                self.handle_scan(data)
            elif msg_type == "start":
                self.handle_start(data)
            elif msg_type == "resolve":
                self.handle_resolve(data)
            elif msg_type == "end":
                self.handle_end(data)
            elif msg_type == "get_status":
                self.handle_get_status()
            elif msg_type == "stop":
                logger.info("🛑 Client requested stop")
                return False
            else:
                self._send_error(f"Unknown message type: {msg_type}", "UNKNOWN_MESSAGE")
        except AppException as e:
            self._send_error(e.message, e.code, e.details)

        return True

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def run(self) -> None:
        """Main handler loop."""
        await self._websocket.accept()

        self._connection = self._hub.register(self._auditor or "Unknown")
        self._reply(self._status_message("hello"))
        sender = asyncio.create_task(self._sender())

        logger.info(f"📱 Audit WebSocket connected: {self._connection.auditor}")

        try:
            while True:
                data = await self._websocket.receive_json()
                if not isinstance(data, dict):
                    self._send_error("Message must be a JSON object", "BAD_MESSAGE")
                    continue
                if not self.handle_message(data):
                    break

        except WebSocketDisconnect:
            logger.info(f"📱 Client disconnected: {self._connection.auditor}")
        except Exception as e:
            logger.error(f"Audit WebSocket error: {e}")
            error = exceptions.internal_error(str(e))
            self._send_error(error.message, error.code)
        finally:
            self._hub.unregister(self._connection)
            await self._drain(sender)
            if self._websocket.client_state == WebSocketState.CONNECTED:
                await self._websocket.close()
            logger.info(f"✅ Audit WebSocket closed: {self._connection.auditor}")

    async def _drain(self, sender: asyncio.Task) -> None:
        """Flush queued messages, then stop the sender."""
        try:
            await asyncio.wait_for(self._connection.queue.join(), timeout=0.5)
        except asyncio.TimeoutError:
            logger.debug(f"Dropped {self._connection.queue.qsize()} unsent messages")
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass


@router.websocket("/ws/audit")
async def websocket_audit(
    websocket: WebSocket,
    auditor: str = Query(None),
    service: AuditService = Depends(get_audit_service_ws),
    hub: ConnectionHub = Depends(get_connection_hub_ws),
):
    """Real-time bin auditing via WebSocket."""
    handler = AuditWebSocketHandler(websocket, service, hub, auditor)
    await handler.run()
