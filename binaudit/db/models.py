"""
==============================================================================
SQLAlchemy ORM Models Module
==============================================================================

Database Schema:
---------------

    ┌─────────────────────────────────────────────────────────────────┐
    │                      inventory_uploads                           │
    ├─────────────────────────────────────────────────────────────────┤
    │ id (INTEGER, PK, AUTO INCREMENT)                                │
    │ version (INTEGER, NOT NULL)                                     │
    │ total (INTEGER, NOT NULL)                                       │
    │ bin_count (INTEGER, NOT NULL)                                   │
    │ bins (TEXT, JSON array of bin codes)                            │
    │ ingested_at (DATETIME, UTC, NOT NULL)                           │
    └─────────────────────────────────────────────────────────────────┘

==============================================================================
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import List

from sqlalchemy import Column, DateTime, Integer, Text

from binaudit.db.database import Base


class InventoryUpload(Base):
    """
    Metadata of one inventory upload.

    Only metadata is stored. The rows themselves are held in memory.
    """

    __tablename__ = "inventory_uploads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    version = Column(Integer, nullable=False)
    total = Column(Integer, nullable=False, default=0)
    bin_count = Column(Integer, nullable=False, default=0)
    bins = Column(Text, nullable=False, default="[]")
    ingested_at = Column(DateTime, nullable=False)

    @property
    def bin_list(self) -> List[str]:
        """Decode the stored bin codes."""
        try:
            return list(json.loads(self.bins or "[]"))
        except json.JSONDecodeError:
            return []

    @property
    def ingested_at_utc(self) -> datetime:
        """ingested_at with UTC tzinfo attached (SQLite drops it)."""
        if self.ingested_at.tzinfo is None:
            return self.ingested_at.replace(tzinfo=timezone.utc)
        return self.ingested_at

    def __repr__(self) -> str:
        return f"<InventoryUpload(version={self.version}, total={self.total})>"
