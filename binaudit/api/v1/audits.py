"""
==============================================================================
Audit Session Endpoints
==============================================================================

Bin audit workflow: start, scan, resolve, end, and session lookup.

Workflow:
--------
    POST /audits/{bin_id}/start                    -> open or continue
    POST /audits/{bin_id}/scans                    -> classify an item
    POST /audits/{bin_id}/items/{item_id}/resolve  -> mark handled
    POST /audits/{bin_id}/end                      -> close

==============================================================================
"""

from typing import Optional

from fastapi import APIRouter, Depends

from binaudit.core.dependencies import get_audit_service
from binaudit.schemas.audit import (
    ResolveRequest,
    ResolveResponse,
    ScanRequest,
    ScanResponse,
    SessionBrief,
    SessionDetail,
    SessionListResponse,
    SessionResponse,
    StartAuditRequest,
)
from binaudit.services import AuditService


router = APIRouter(prefix="/audits", tags=["Audits"])


class AuditController:
    """Controller for audit session operations."""

    def __init__(self, service: AuditService):
        self._service = service

    def start(self, bin_id: str, data: StartAuditRequest) -> SessionResponse:
        """Open or continue a bin audit."""
        session, resumed = self._service.start_session(bin_id, data.auditor)
        return SessionResponse(
            message=f"Audit of {session.bin_id} {'resumed' if resumed else 'started'}",
            resumed=resumed,
            session=SessionDetail.from_session(session),
        )

    def scan(self, bin_id: str, data: ScanRequest) -> ScanResponse:
        """Record one scanned item."""
        entry = self._service.record_scan(bin_id, data.item_id)
        return ScanResponse.from_entry(entry.scanned_bin, entry)

    def resolve(self, bin_id: str, item_id: str, data: ResolveRequest) -> ResolveResponse:
        """Set an entry's resolved flag."""
        entry = self._service.set_resolved(bin_id, item_id, data.resolved)
        return ResolveResponse(bin_id=entry.scanned_bin, entry=entry)

    def end(self, bin_id: str) -> SessionResponse:
        """End a bin audit."""
        session = self._service.end_session(bin_id)
        return SessionResponse(
            message=f"Audit of {session.bin_id} completed",
            session=SessionDetail.from_session(session),
        )

    def get(self, bin_id: str) -> SessionResponse:
        """Get one session with its entries."""
        session = self._service.get_session(bin_id)
        return SessionResponse(session=SessionDetail.from_session(session))

    def list(self) -> SessionListResponse:
        """List all sessions."""
        sessions = self._service.list_sessions()
        return SessionListResponse(
            sessions=[SessionBrief.from_session(s) for s in sessions],
            total=len(sessions),
        )


@router.get("", response_model=SessionListResponse)
async def list_audits(service: AuditService = Depends(get_audit_service)):
    """List all audit sessions, sorted by bin."""
    controller = AuditController(service)
    return controller.list()


@router.post("/{bin_id}/start", response_model=SessionResponse)
async def start_audit(
    bin_id: str,
    data: Optional[StartAuditRequest] = None,
    service: AuditService = Depends(get_audit_service)
):
    """
    Open an audit for a scanned bin.

    Restarting an open audit continues it with its history. Restarting a
    completed audit starts over.
    """
    controller = AuditController(service)
    return controller.start(bin_id, data or StartAuditRequest())


@router.post("/{bin_id}/scans", response_model=ScanResponse)
async def record_scan(
    bin_id: str,
    data: ScanRequest,
    service: AuditService = Depends(get_audit_service)
):
    """Classify a scanned item against the bin (match/mismatch/unknown/remove)."""
    controller = AuditController(service)
    return controller.scan(bin_id, data)


@router.post("/{bin_id}/items/{item_id}/resolve", response_model=ResolveResponse)
async def resolve_item(
    bin_id: str,
    item_id: str,
    data: Optional[ResolveRequest] = None,
    service: AuditService = Depends(get_audit_service)
):
    """Mark a scanned item as handled (or undo it)."""
    controller = AuditController(service)
    return controller.resolve(bin_id, item_id, data or ResolveRequest())


@router.post("/{bin_id}/end", response_model=SessionResponse)
async def end_audit(
    bin_id: str,
    service: AuditService = Depends(get_audit_service)
):
    """Complete a bin audit."""
    controller = AuditController(service)
    return controller.end(bin_id)


@router.get("/{bin_id}", response_model=SessionResponse)
async def get_audit(
    bin_id: str,
    service: AuditService = Depends(get_audit_service)
):
    """Get an audit session with its entries in scan order."""
    controller = AuditController(service)
    return controller.get(bin_id)
