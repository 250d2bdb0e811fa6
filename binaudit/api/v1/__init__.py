"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the REST API.

Routers:
--------
- health: Health check endpoints
- inventory: Snapshot replacement, status and item lookup
- audits: Bin audit sessions (start, scan, resolve, end)
- export: Audit export (JSON and CSV)

==============================================================================
"""

from . import health, inventory, audits, export

__all__ = ["health", "inventory", "audits", "export"]
