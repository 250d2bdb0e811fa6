"""
==============================================================================
Database Package
==============================================================================

SQLAlchemy infrastructure for inventory upload metadata.

Architecture:
------------
├── database.py   - DatabaseManager class, session factory
└── models.py     - InventoryUpload ORM model

Usage:
------
    from binaudit.db import DatabaseManager, InventoryUpload

    db_manager = DatabaseManager(settings.database_url)
    db_manager.create_tables()
    with db_manager.session_scope() as session:
        latest = session.query(InventoryUpload).order_by(InventoryUpload.id.desc()).first()

==============================================================================
"""

from .database import DatabaseManager, Base
from .models import InventoryUpload

__all__ = [
    "DatabaseManager",
    "Base",
    "InventoryUpload",
]
