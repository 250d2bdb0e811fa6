"""
==============================================================================
Audit Schemas Module
==============================================================================

Request and response schemas for bin audit operations.

A scan response is always a success: the classification lives in
entry.status, and needs_attention tells the UI whether to flag the item.
Failures come back through the AppException error format instead.

==============================================================================
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from binaudit.audit import AuditSession, ScanEntry


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class StartAuditRequest(BaseModel):
    """Open an audit for a bin."""
    auditor: Optional[str] = Field(default=None, max_length=100)

    @field_validator("auditor")
    @classmethod
    def strip_auditor(cls, v: Optional[str]) -> Optional[str]:
        if v:
            v = v.strip()
            return v if v else None
        return None


class ScanRequest(BaseModel):
    """Record one scanned item."""
    item_id: str = Field(..., min_length=1, max_length=100)

    @field_validator("item_id")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()


class ResolveRequest(BaseModel):
    """Set the resolved flag of a scanned item."""
    resolved: bool = Field(default=True)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class SessionBrief(BaseModel):
    """Session without its entries."""
    bin_id: str
    auditor: str
    status: str
    start_time: datetime
    end_time: Optional[datetime] = None
    item_count: int = Field(ge=0)

    @classmethod
    def from_session(cls, session: AuditSession) -> "SessionBrief":
        return cls(
            bin_id=session.bin_id,
            auditor=session.auditor,
            status=session.status_label,
            start_time=session.start_time,
            end_time=session.end_time,
            item_count=len(session.entries),
        )


class SessionDetail(SessionBrief):
    """Session with its entries in scan order."""
    entries: List[ScanEntry] = Field(default_factory=list)

    @classmethod
    def from_session(cls, session: AuditSession) -> "SessionDetail":
        return cls(
            **SessionBrief.from_session(session).model_dump(),
            entries=session.entry_list(),
        )


class SessionResponse(BaseModel):
    success: bool = Field(default=True)
    message: Optional[str] = None
    resumed: bool = False
    session: SessionDetail


class SessionListResponse(BaseModel):
    success: bool = Field(default=True)
    sessions: List[SessionBrief]
    total: int = Field(ge=0)


class ScanResponse(BaseModel):
    """Outcome of one scan."""
    success: bool = Field(default=True)
    bin_id: str
    entry: ScanEntry
    needs_attention: bool

    @classmethod
    def from_entry(cls, bin_id: str, entry: ScanEntry) -> "ScanResponse":
        return cls(
            bin_id=bin_id,
            entry=entry,
            needs_attention=entry.status.needs_attention,
        )


class ResolveResponse(BaseModel):
    success: bool = Field(default=True)
    bin_id: str
    entry: ScanEntry
