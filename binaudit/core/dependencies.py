"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection for the audit engine.

The engine is created by the application factory and stored on app.state,
so every request and WebSocket connection of one application shares one
engine, while tests get a fresh engine per application.

Usage Examples:
--------------
    @router.post("/{bin_id}/scans")
    async def record_scan(
        bin_id: str,
        service: AuditService = Depends(get_audit_service),
    ):
        ...

==============================================================================
"""

from __future__ import annotations

from fastapi import Request, WebSocket

from binaudit.services import AuditService


def get_audit_service(request: Request) -> AuditService:
    """Get the application's audit engine."""
    return request.app.state.audit_service


def get_audit_service_ws(websocket: WebSocket) -> AuditService:
    """Get the application's audit engine for a WebSocket connection."""
    return websocket.app.state.audit_service
