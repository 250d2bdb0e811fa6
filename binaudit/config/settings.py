"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management using Pydantic Settings.

A single cached Settings instance is shared through get_settings(). Tests
build their own Settings objects and pass them to the application factory.

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

Audit Rules:
-----------
- BIN_CODE_LENGTH / BIN_CODE_CHARSET describe a valid bin label
- TERMINAL_STATUSES lists vendor statuses that mean "remove from bin"
- SCAN_DEBOUNCE_MS drops repeated scans of the same item on one connection

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import FrozenSet, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)


DEFAULT_TERMINAL_STATUSES = [
    "SHAPPI CLOSED",
    "SHAPPI CANCELED",
    "SHAPPI CANCELLED",
    "ABANDONED",
]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        host: Server bind address
        port: Server port number
        database_url: SQLAlchemy connection string for upload metadata
        persist_metadata: Write upload metadata to the database
        bin_code_length: Exact length of a bin label
        bin_code_charset: "alpha" (letters only) or "alnum"
        terminal_statuses: Vendor statuses forcing removal (JSON array string)
        scan_debounce_ms: Repeat-scan window per WebSocket connection
        export_filename_prefix: Prefix for CSV export file names
        cors_origins: Allowed CORS origins (JSON array string)

    Example:
        >>> settings = Settings(bin_code_length=4)
        >>> settings.bin_code_length
        4
    """

    # =========================================================================
    # PYDANTIC SETTINGS CONFIGURATION
    # =========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="Bin Audit API",
        description="Display name for the application"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Server bind address"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port number"
    )

    # =========================================================================
    # DATABASE SETTINGS
    # =========================================================================
    database_url: str = Field(
        default="sqlite:///./storage/db/audit.db",
        description="SQLAlchemy database connection string"
    )

    persist_metadata: bool = Field(
        default=True,
        description="Persist inventory upload metadata across restarts"
    )

    # =========================================================================
    # AUDIT RULE SETTINGS
    # =========================================================================
    bin_code_length: int = Field(
        default=3,
        ge=1,
        le=32,
        description="Exact length of a bin code"
    )

    bin_code_charset: str = Field(
        default="alpha",
        description="Bin code characters: alpha or alnum"
    )

    terminal_statuses: str = Field(
        default=json.dumps(DEFAULT_TERMINAL_STATUSES),
        description="Vendor statuses that mean the item must be removed"
    )

    scan_debounce_ms: int = Field(
        default=1000,
        ge=0,
        le=10000,
        description="Ignore repeated scans of one item within this window"
    )

    export_filename_prefix: str = Field(
        default="bin_audit_summary",
        min_length=1,
        description="Prefix for exported CSV files"
    )

    # =========================================================================
    # CORS SETTINGS
    # =========================================================================
    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """Normalize the environment name, falling back to development."""
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    @field_validator("bin_code_charset")
    @classmethod
    def validate_bin_code_charset(cls, value: str) -> str:
        """
        Validate the bin code character class.

        Raises:
            ValueError: If the charset is not alpha or alnum
        """
        normalized = value.lower().strip()
        if normalized not in {"alpha", "alnum"}:
            raise ValueError(
                f"Unsupported bin code charset: {value}. Supported: alpha, alnum"
            )
        return normalized

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def docs_enabled(self) -> bool:
        """Interactive API docs are served outside production only."""
        return not self.is_production

    @property
    def terminal_status_set(self) -> FrozenSet[str]:
        """
        Parse terminal statuses into a normalized set.

        Falls back to the built-in list when the value is not a JSON array.
        """
        try:
            statuses = json.loads(self.terminal_statuses)
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid TERMINAL_STATUSES JSON: {self.terminal_statuses}, "
                "using defaults"
            )
            statuses = DEFAULT_TERMINAL_STATUSES

        if not isinstance(statuses, list):
            statuses = DEFAULT_TERMINAL_STATUSES

        return frozenset(str(s).strip().upper() for s in statuses if str(s).strip())

    @property
    def scan_debounce_seconds(self) -> float:
        """Debounce window in seconds."""
        return self.scan_debounce_ms / 1000.0

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from JSON string to list."""
        try:
            origins = json.loads(self.cors_origins)
            if isinstance(origins, list):
                return origins
            return ["*"]
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid CORS origins JSON: {self.cors_origins}, "
                "defaulting to ['*']"
            )
            return ["*"]

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================
    def get_database_path(self) -> Optional[Path]:
        """
        Extract database file path for SQLite databases.

        Returns:
            Path to database file, or None for in-memory and non-SQLite URLs
        """
        if self.database_url.startswith("sqlite:///"):
            db_path = self.database_url.replace("sqlite:///", "")
            if not db_path or db_path == ":memory:":
                return None
            if db_path.startswith("./"):
                db_path = db_path[2:]
            return Path(db_path)
        return None

    def ensure_directories(self) -> None:
        """Create the SQLite database directory when one is configured."""
        db_path = self.get_database_path()
        if db_path:
            db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug("Required directories created/verified")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"debug={self.debug})"
        )


# =============================================================================
# CACHED INSTANCE
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the process-wide Settings instance.

    Returns:
        Cached Settings instance
    """
    settings = Settings()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
