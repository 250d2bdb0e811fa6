"""
==============================================================================
Upload Metadata Persistence Tests
==============================================================================

Tests for the inventory_uploads table and the restart fallback.

==============================================================================
"""

from binaudit.db import InventoryUpload
from binaudit.services import AuditService, UploadMetadataService


class TestUploadMetadataService:
    """Tests for UploadMetadataService."""

    def test_latest_when_empty(self, db_manager):
        assert UploadMetadataService(db_manager).latest() is None

    def test_replace_records_metadata(self, persistent_service, records, db_manager):
        persistent_service.replace_inventory(records)

        with db_manager.session_scope() as session:
            uploads = session.query(InventoryUpload).all()
            assert len(uploads) == 1
            assert uploads[0].version == 1
            assert uploads[0].total == 3
            assert uploads[0].bin_count == 2
            assert uploads[0].bin_list == ["ABC", "XYZ"]

    def test_latest_returns_newest_upload(self, persistent_service, records, db_manager):
        persistent_service.replace_inventory(records)
        persistent_service.replace_inventory(records[:1])

        latest = UploadMetadataService(db_manager).latest()

        assert latest.version == 2
        assert latest.total == 1
        assert latest.bins == ["ABC"]
        assert latest.loaded is False
        assert latest.ingested_at.tzinfo is not None


class TestRestartFallback:
    """A fresh engine reports the last upload until inventory is re-uploaded."""

    def test_status_after_restart(self, persistent_service, records, settings, db_manager):
        original = persistent_service.replace_inventory(records)

        restarted = AuditService(settings, UploadMetadataService(db_manager))
        status = restarted.snapshot_status()

        assert status.loaded is False
        assert status.version == original.version
        assert status.total == original.total
        assert status.bins == original.bins

    def test_version_continues_after_restart(self, persistent_service, records, settings, db_manager):
        for _ in range(3):
            persistent_service.replace_inventory(records)

        restarted = AuditService(settings, UploadMetadataService(db_manager))
        assert restarted.snapshot_status().version == 3

        metadata = restarted.replace_inventory(records)

        assert metadata.version == 4
        assert UploadMetadataService(db_manager).latest().version == 4

    def test_loaded_snapshot_wins(self, persistent_service, records, settings, db_manager):
        persistent_service.replace_inventory(records)

        restarted = AuditService(settings, UploadMetadataService(db_manager))
        restarted.replace_inventory(records[:1])

        status = restarted.snapshot_status()
        assert status.loaded is True
        assert status.total == 1

    def test_no_persistence(self, service):
        status = service.snapshot_status()
        assert status.version == 0
        assert status.loaded is False
