"""
==============================================================================
Audit Models Module
==============================================================================

Types shared by the audit engine: classifications, scan entries, sessions.

Session Lifecycle:
-----------------
                start()                  end()
    (no session) ───────▶  OPEN  ───────────────▶  ENDED
                          │   ▲                      │
                 start()  └───┘ (continues)          │ start() (fresh session)
                                                     ▼
                                                    OPEN

==============================================================================
"""

import enum
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ScanStatus(str, enum.Enum):
    """Outcome of classifying one scanned item against its expected bin."""

    MATCH = "match"
    MISMATCH = "mismatch"
    UNKNOWN = "unknown"
    REMOVE = "remove"

    @property
    def needs_attention(self) -> bool:
        """Anything but a match needs operator follow-up."""
        return self is not ScanStatus.MATCH


class BinRejectReason(str, enum.Enum):
    """Why a scanned bin code cannot open a session."""

    BAD_FORMAT = "bad-format"
    UNKNOWN_BIN = "unknown-bin"
    NO_SNAPSHOT = "no-snapshot"


class ClassificationResult(BaseModel):
    """Classifier output. correct_bin is set only for mismatches."""

    model_config = ConfigDict(frozen=True)

    status: ScanStatus
    correct_bin: Optional[str] = None


class ScanEntry(BaseModel):
    """
    One item's scan outcome within a session.

    Entries are immutable. A rescan or resolution replaces the entry with a
    complete new copy, so a reader never observes a half-updated entry.
    """

    model_config = ConfigDict(frozen=True)

    item_id: str
    expected_bin: Optional[str] = None
    scanned_bin: str
    status: ScanStatus
    correct_bin: Optional[str] = None
    resolved: bool = False
    timestamp: datetime
    # Store-wide write sequence; a later write to the same item has a higher value
    revision: int = 1

    # Display fields copied from the inventory record at scan time
    category: str = ""
    subcategory: str = ""
    vendor_status: str = ""
    received_at: str = ""


class AuditSession(BaseModel):
    """
    Audit of one bin.

    Attributes:
        bin_id: Normalized bin code (session key)
        auditor: Free-text operator name
        start_time: When the session was opened
        end_time: When it was ended (None while open)
        entries: item_id -> ScanEntry, in first-scan order
    """

    bin_id: str
    auditor: str
    start_time: datetime
    end_time: Optional[datetime] = None
    entries: Dict[str, ScanEntry] = Field(default_factory=dict)

    @property
    def is_open(self) -> bool:
        """Check if the session still accepts scans."""
        return self.end_time is None

    @property
    def status_label(self) -> str:
        """Human-readable audit status."""
        return "In Progress" if self.is_open else "Completed"

    def entry_list(self) -> List[ScanEntry]:
        """Entries in first-scan order."""
        return list(self.entries.values())
