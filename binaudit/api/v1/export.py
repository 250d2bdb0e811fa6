"""
==============================================================================
Export Endpoints
==============================================================================

Audit export as JSON or as a downloadable CSV file.

The export covers every session in memory (open and completed) against the
current snapshot: an item detail section and a per-bin summary with
accuracy and coverage.

==============================================================================
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from binaudit.audit import AuditExport
from binaudit.core.dependencies import get_audit_service
from binaudit.services import AuditService


router = APIRouter(prefix="/export", tags=["Export"])


class ExportController:
    """Controller for export operations."""

    def __init__(self, service: AuditService):
        self._service = service

    def get_report(self) -> AuditExport:
        """Build the full export."""
        return self._service.export_all()

    def get_csv(self) -> Response:
        """Build the export as a CSV attachment."""
        report = self._service.export_all()
        content = self._service.export_csv(report)

        prefix = self._service.settings.export_filename_prefix
        stamp = report.generated_at.strftime("%Y%m%d_%H%M%S")

        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{prefix}_{stamp}.csv"'},
        )


@router.get("", response_model=AuditExport)
async def export_audits(service: AuditService = Depends(get_audit_service)):
    """Export all audits as JSON (item detail + bin summary)."""
    controller = ExportController(service)
    return controller.get_report()


@router.get("/csv")
async def export_audits_csv(service: AuditService = Depends(get_audit_service)):
    """Download all audits as a CSV file."""
    controller = ExportController(service)
    return controller.get_csv()
