"""
==============================================================================
Services Package - Business Logic Layer
==============================================================================

This package provides:
- AuditService: The audit engine behind every API and WebSocket operation
- UploadMetadataService: Persisted inventory upload metadata

Architecture Pattern: Service Layer
----------------------------------
    ┌─────────────────┐
    │ API / WebSocket │
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │  AuditService   │  ← Engine (in memory)
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │ UploadMetadata  │  ← Persistence convenience (SQLAlchemy)
    └─────────────────┘

==============================================================================
"""

from .audit_service import AuditService
from .metadata_service import UploadMetadataService

__all__ = [
    "AuditService",
    "UploadMetadataService",
]
