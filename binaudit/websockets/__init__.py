"""
==============================================================================
WebSocket Package
==============================================================================

Real-time WebSocket transport for bin audits.

Modules:
--------
- hub: ConnectionHub, the audit event listener that fans events out to
  every connected client
- audit: /ws/audit handler (scan, resolve, status messages)

==============================================================================
"""

from .hub import ConnectionHub
from .audit import router as audit_router

__all__ = ["ConnectionHub", "audit_router"]
