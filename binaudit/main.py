"""
==============================================================================
Bin Audit Service - Application Entry Point
==============================================================================

FastAPI application with:
- RESTful API endpoints (inventory, audits, export, health)
- WebSocket real-time audit channel
- Upload metadata persistence

Usage:
------
    # Development
    uvicorn binaudit.main:app --reload

    # Production
    uvicorn binaudit.main:app --host 0.0.0.0 --port 8000

    # Tests (fresh engine per app)
    app = create_app(Settings(database_url="sqlite://"))

==============================================================================
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from binaudit.config import Settings, get_settings
from binaudit.core.exceptions import register_exception_handlers
from binaudit.db import DatabaseManager
from binaudit.api.router import api_router
from binaudit.services import AuditService, UploadMetadataService
from binaudit.websockets import ConnectionHub, audit_router


# ============================================================================
# LOGGING SETUP
# ============================================================================

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)

logger = logging.getLogger(__name__)


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

class Application:
    """
    FastAPI application factory and manager.

    Handles application lifecycle including:
    - Engine and database wiring
    - Startup and shutdown events
    - Middleware configuration
    - Router registration
    - Exception handler setup

    Every Application owns its own AuditService, so two apps (or two tests)
    never share audit state.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize the application."""
        self._settings = settings or get_settings()
        self._db_manager = self._create_db_manager()
        self._service = AuditService(
            self._settings,
            UploadMetadataService(self._db_manager) if self._db_manager else None,
        )
        self._hub = ConnectionHub()
        self._service.subscribe(self._hub)
        self._app = self._create_app()

    def _create_db_manager(self) -> Optional[DatabaseManager]:
        """Create the metadata database, if persistence is enabled."""
        if not self._settings.persist_metadata:
            logger.info("Upload metadata persistence disabled")
            return None

        self._settings.ensure_directories()
        db_manager = DatabaseManager(self._settings.database_url, echo=False)
        db_manager.create_tables()
        return db_manager

    def _create_app(self) -> FastAPI:
        """Create and configure the FastAPI application."""
        app = FastAPI(
            title=self._settings.app_name,
            version="1.0.0",
            description="Warehouse bin audit sessions with real-time scan classification",
            lifespan=self._lifespan,
            docs_url="/docs" if self._settings.docs_enabled else None,
            redoc_url="/redoc" if self._settings.docs_enabled else None,
        )

        # Shared state for dependencies
        app.state.settings = self._settings
        app.state.audit_service = self._service
        app.state.connection_hub = self._hub
        app.state.db_manager = self._db_manager

        # Configure middleware
        self._configure_middleware(app)

        # Register exception handlers
        register_exception_handlers(app)

        # Register routers
        self._register_routers(app)

        # Register root endpoint
        self._register_root(app)

        return app

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        """Application lifespan manager."""
        # Startup
        self._startup()
        yield
        # Shutdown
        self._shutdown()

    def _startup(self) -> None:
        """Application startup tasks."""
        logger.info("=" * 60)
        logger.info(f"🚀 Starting {self._settings.app_name}")
        logger.info(f"📍 Environment: {self._settings.app_env}")
        logger.info("=" * 60)

        status = self._service.snapshot_status()
        if status.version:
            logger.info(
                f"📦 Last inventory upload: v{status.version}, {status.total} items "
                f"at {status.ingested_at} (re-upload to audit)"
            )
        else:
            logger.info("📦 No inventory uploaded yet")

        logger.info("=" * 60)
        logger.info(f"✅ {self._settings.app_name} ready")
        logger.info(f"📍 Running on http://{self._settings.host}:{self._settings.port}")
        if self._settings.docs_enabled:
            logger.info(f"📖 API Docs: http://{self._settings.host}:{self._settings.port}/docs")
        logger.info("=" * 60)

    def _shutdown(self) -> None:
        """Application shutdown tasks."""
        logger.info("🛑 Shutting down...")
        self._service.unsubscribe(self._hub)
        if self._db_manager is not None:
            self._db_manager.dispose()
        logger.info("✅ Shutdown complete")

    def _configure_middleware(self, app: FastAPI) -> None:
        """Configure application middleware."""
        app.add_middleware(
            CORSMiddleware,
            allow_origins=self._settings.cors_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _register_routers(self, app: FastAPI) -> None:
        """Register API routers."""
        # REST API routes
        app.include_router(api_router)

        # WebSocket routes
        app.include_router(audit_router)

    def _register_root(self, app: FastAPI) -> None:
        """Register root endpoint."""

        landing = "/docs" if self._settings.docs_enabled else "/api/v1/health"

        @app.get("/", include_in_schema=False)
        async def root():
            """Redirect to the API docs, or to health when docs are off."""
            return RedirectResponse(url=landing)

    @property
    def service(self) -> AuditService:
        """Get the audit engine."""
        return self._service

    @property
    def app(self) -> FastAPI:
        """Get the FastAPI application instance."""
        return self._app


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build a FastAPI app with its own engine."""
    return Application(settings).app


# ============================================================================
# APPLICATION INSTANCE
# ============================================================================

# Create application instance
application = Application()
app = application.app


# ============================================================================
# ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "binaudit.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info"
    )
