"""
==============================================================================
Upload Metadata Service Module
==============================================================================

Persists inventory upload metadata so it survives a restart.

After a restart the inventory rows are gone, but clients can still be told
when inventory was last uploaded and how large it was (loaded=False).

==============================================================================
"""

from __future__ import annotations

import json
import logging
from datetime import timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from binaudit.db import DatabaseManager, InventoryUpload
from binaudit.inventory import SnapshotMetadata


# Module logger
logger = logging.getLogger(__name__)


class UploadMetadataService:
    """
    Read/write access to the inventory_uploads table.

    Persistence is a convenience: database errors are logged and never fail
    an inventory replace.

    Example:
        >>> service = UploadMetadataService(db_manager)
        >>> service.record(snapshot.metadata())
        >>> service.latest().version
        1
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self._db_manager = db_manager

    def record(self, metadata: SnapshotMetadata) -> bool:
        """
        Store metadata of a completed upload.

        Returns:
            True if stored
        """
        try:
            with self._db_manager.session_scope() as session:
                session.add(InventoryUpload(
                    version=metadata.version,
                    total=metadata.total,
                    bin_count=len(metadata.bins),
                    bins=json.dumps(metadata.bins),
                    ingested_at=metadata.ingested_at.astimezone(timezone.utc).replace(tzinfo=None),
                ))
            return True
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to persist upload metadata: {e}")
            return False

    def latest(self) -> Optional[SnapshotMetadata]:
        """
        Get metadata of the most recent upload.

        Returns:
            SnapshotMetadata with loaded=False, or None if nothing recorded
        """
        try:
            with self._db_manager.session_scope() as session:
                upload = (
                    session.query(InventoryUpload)
                    .order_by(InventoryUpload.id.desc())
                    .first()
                )
                if upload is None:
                    return None

                return SnapshotMetadata(
                    version=upload.version,
                    total=upload.total,
                    ingested_at=upload.ingested_at_utc,
                    bins=upload.bin_list,
                    loaded=False,
                )
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to read upload metadata: {e}")
            return None
