"""
Application Exception Handling

Single AppException class for all application errors with FastAPI integration.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppException(Exception):
    """
    Unified application exception for all rejected operations.

    Every rejection is recoverable and user-actionable. Scan classifications
    (unknown, mismatch, remove) are results, never exceptions.

    Usage:
        raise AppException("Bin not found", "UNKNOWN_BIN", 404, {"bin_id": "QQQ"})

    Error Codes:
        Bin validation:
            - BAD_BIN_FORMAT (400)
            - UNKNOWN_BIN (404)
            - NO_SNAPSHOT (409)

        Audit sessions:
            - NO_OPEN_SESSION (409)
            - SESSION_NOT_FOUND (404)
            - ITEM_NOT_FOUND (404)
            - INVALID_ITEM_ID (400)

        Inventory / export:
            - INVALID_INVENTORY_FILE (400)
            - NO_AUDITS_TO_EXPORT (400)

        General:
            - VALIDATION_ERROR (422)
            - INTERNAL_ERROR (500)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "UNKNOWN_BIN")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Convert AppException to a consistent JSON error response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def bad_bin_format(raw_code: str, reason: str) -> AppException:
    """Create bad bin format exception."""
    return AppException(
        f"Invalid bin format: {reason}",
        "BAD_BIN_FORMAT",
        400,
        {"bin_id": raw_code, "reason": reason}
    )


def unknown_bin(bin_id: str) -> AppException:
    """Create unknown bin exception."""
    return AppException(
        f"Bin '{bin_id}' not found in inventory",
        "UNKNOWN_BIN",
        404,
        {"bin_id": bin_id}
    )


def no_snapshot() -> AppException:
    """Create no inventory loaded exception."""
    return AppException(
        "No inventory loaded. Upload inventory before starting an audit",
        "NO_SNAPSHOT",
        409
    )


def no_open_session(bin_id: str) -> AppException:
    """Create no open session exception."""
    return AppException(
        f"No active audit for bin '{bin_id}'",
        "NO_OPEN_SESSION",
        409,
        {"bin_id": bin_id}
    )


def session_not_found(bin_id: str) -> AppException:
    """Create session not found exception."""
    return AppException(
        f"Audit not found for bin '{bin_id}'",
        "SESSION_NOT_FOUND",
        404,
        {"bin_id": bin_id}
    )


def item_not_found(bin_id: str, item_id: str) -> AppException:
    """Create scanned item not found exception."""
    return AppException(
        f"Item '{item_id}' was not scanned in bin '{bin_id}'",
        "ITEM_NOT_FOUND",
        404,
        {"bin_id": bin_id, "item_id": item_id}
    )


def inventory_item_not_found(item_id: str) -> AppException:
    """Create inventory lookup miss exception."""
    return AppException(
        f"Item '{item_id}' not found in inventory",
        "ITEM_NOT_FOUND",
        404,
        {"item_id": item_id}
    )


def invalid_item_id() -> AppException:
    """Create empty item id exception."""
    return AppException("Item ID cannot be empty", "INVALID_ITEM_ID", 400)


def invalid_inventory_file(reason: str) -> AppException:
    """Create unreadable inventory upload exception."""
    return AppException(
        f"Invalid inventory file: {reason}",
        "INVALID_INVENTORY_FILE",
        400,
        {"reason": reason}
    )


def no_audits_to_export() -> AppException:
    """Create empty export exception."""
    return AppException("No audits to export", "NO_AUDITS_TO_EXPORT", 400)


def internal_error(message: str = "Internal server error") -> AppException:
    """Create internal server error exception."""
    return AppException(message, "INTERNAL_ERROR", 500)
