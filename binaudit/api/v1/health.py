"""
==============================================================================
Health Check Endpoints
==============================================================================

System health status endpoints for monitoring and orchestration.

==============================================================================
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from binaudit.core.dependencies import get_audit_service
from binaudit.db import DatabaseManager
from binaudit.services import AuditService


router = APIRouter(prefix="/health", tags=["Health"])


class HealthController:
    """Controller for health check operations."""

    def __init__(self, service: AuditService, db_manager: Optional[DatabaseManager]):
        self._service = service
        self._db_manager = db_manager

    def check_database(self) -> str:
        """Check database connectivity."""
        if self._db_manager is None:
            return "disabled"
        return "healthy" if self._db_manager.verify_connection() else "unhealthy"

    def check_inventory(self) -> dict:
        """Check inventory snapshot status."""
        metadata = self._service.snapshot_status()
        if metadata.loaded:
            return {"status": "healthy", "version": metadata.version, "items": metadata.total}
        return {"status": "not_loaded", "version": metadata.version, "items": 0}

    def get_health(self) -> dict:
        """Get full health status."""
        db_status = self.check_database()
        inventory_info = self.check_inventory()

        overall = "degraded" if db_status == "unhealthy" else "healthy"

        return {
            "status": overall,
            "components": {
                "api": "healthy",
                "database": db_status,
                "inventory": inventory_info["status"]
            },
            "details": {
                "snapshot_version": inventory_info["version"],
                "items_loaded": inventory_info["items"],
                "sessions": len(self._service.list_sessions()),
            }
        }


@router.get("")
async def health_check(
    request: Request,
    service: AuditService = Depends(get_audit_service)
):
    """
    Health check endpoint.

    Returns system status including API, database, and inventory.
    """
    controller = HealthController(service, getattr(request.app.state, "db_manager", None))
    return controller.get_health()


@router.get("/ready")
async def readiness_check():
    """Readiness probe for container orchestration."""
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Liveness probe for container orchestration."""
    return {"alive": True}
