"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides settings, engine, client, and inventory fixtures.

Every test gets its own AuditService and its own FastAPI app, backed by an
in-memory SQLite database, so no audit state leaks between tests.

==============================================================================
"""

import os

# Keep the module-level app in binaudit.main off the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from typing import Dict, Generator, List
from fastapi.testclient import TestClient

from binaudit.config import Settings
from binaudit.db import DatabaseManager
from binaudit.inventory import ItemRecord
from binaudit.main import create_app
from binaudit.services import AuditService, UploadMetadataService


# ============================================================================
# SETTINGS FIXTURES
# ============================================================================

@pytest.fixture
def settings() -> Settings:
    """Settings for an isolated test app."""
    return Settings(
        database_url="sqlite://",
        persist_metadata=True,
        scan_debounce_ms=1000,
        _env_file=None,
    )


# ============================================================================
# INVENTORY FIXTURES
# ============================================================================

@pytest.fixture
def inventory_rows() -> List[Dict[str, str]]:
    """Rows as they appear in an inventory export."""
    return [
        {"Item ID": "A100", "Warehouse Bin ID": "ABC", "Status": "Active",
         "Category": "Apparel", "Subcategory": "Shirts",
         "Received At Warehouse": "2024-03-01"},
        {"Item ID": "A101", "Warehouse Bin ID": "XYZ", "Status": "Shappi Closed",
         "Category": "Apparel", "Subcategory": "Shoes"},
        {"Item ID": "B200", "Warehouse Bin ID": "XYZ", "Status": "Active"},
    ]


@pytest.fixture
def records(inventory_rows) -> List[ItemRecord]:
    """Normalized records for the engine."""
    return [
        ItemRecord(
            item_id=row["Item ID"],
            expected_bin=row.get("Warehouse Bin ID"),
            vendor_status=row.get("Status"),
            category=row.get("Category"),
            subcategory=row.get("Subcategory"),
            received_at=row.get("Received At Warehouse"),
        )
        for row in inventory_rows
    ]


# ============================================================================
# ENGINE FIXTURES
# ============================================================================

@pytest.fixture
def db_manager() -> Generator[DatabaseManager, None, None]:
    """Fresh in-memory metadata database."""
    manager = DatabaseManager("sqlite://")
    manager.create_tables()
    yield manager
    manager.dispose()


@pytest.fixture
def service(settings: Settings) -> AuditService:
    """Audit engine without persistence."""
    return AuditService(settings)


@pytest.fixture
def loaded_service(service: AuditService, records: List[ItemRecord]) -> AuditService:
    """Audit engine with the sample inventory loaded."""
    service.replace_inventory(records)
    return service


@pytest.fixture
def persistent_service(settings: Settings, db_manager: DatabaseManager) -> AuditService:
    """Audit engine that records upload metadata."""
    return AuditService(settings, UploadMetadataService(db_manager))


# ============================================================================
# CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def client(settings: Settings) -> Generator[TestClient, None, None]:
    """Test client for a fresh app."""
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def loaded_client(client: TestClient, inventory_rows) -> TestClient:
    """Test client with the sample inventory uploaded."""
    response = client.post("/api/v1/inventory", json={"rows": inventory_rows})
    assert response.status_code == 200
    return client
