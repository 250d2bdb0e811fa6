"""
==============================================================================
Resolution Tests
==============================================================================

Tests for setting and clearing the resolved flag.

==============================================================================
"""

import threading

import pytest

from binaudit.audit import AuditEventListener, ScanStatus
from binaudit.core import AppException


@pytest.fixture
def scanned_service(loaded_service):
    loaded_service.start_session("ABC", "Jane")
    loaded_service.record_scan("ABC", "B200")
    return loaded_service


class TestResolutionTracker:
    """Tests for set_resolved."""

    def test_changes_only_resolved(self, scanned_service):
        before = scanned_service.get_session("ABC").entries["B200"]

        after = scanned_service.set_resolved("abc", "b200", True)

        assert after.resolved is True
        assert after.revision > before.revision
        assert after.model_dump(exclude={"resolved", "revision"}) == before.model_dump(
            exclude={"resolved", "revision"}
        )
        assert after.status is ScanStatus.MISMATCH

    def test_clear_resolved(self, scanned_service):
        scanned_service.set_resolved("ABC", "B200", True)
        entry = scanned_service.set_resolved("ABC", "B200", False)

        assert entry.resolved is False
        assert scanned_service.get_session("ABC").entries["B200"].resolved is False

    def test_resolve_after_end(self, scanned_service):
        """Items can still be resolved once the audit is completed."""
        scanned_service.end_session("ABC")

        entry = scanned_service.set_resolved("ABC", "B200", True)

        assert entry.resolved is True

    def test_unknown_session(self, scanned_service):
        with pytest.raises(AppException) as exc_info:
            scanned_service.set_resolved("XYZ", "B200", True)
        assert exc_info.value.code == "SESSION_NOT_FOUND"

    def test_unscanned_item(self, scanned_service):
        with pytest.raises(AppException) as exc_info:
            scanned_service.set_resolved("ABC", "A100", True)
        assert exc_info.value.code == "ITEM_NOT_FOUND"
        assert exc_info.value.status_code == 404


class SlowResolveListener(AuditEventListener):
    """Holds up delivery of the first item_resolved event until released."""

    def __init__(self):
        self.delivered = []
        self.first_delivered = threading.Event()
        self.release = threading.Event()

    def item_resolved(self, bin_id, entry):
        self.delivered.append(entry)
        if len(self.delivered) == 1:
            self.first_delivered.set()
            self.release.wait(timeout=5)


class TestResolutionOrdering:
    """Resolved events reach listeners in commit order."""

    def test_revision_rises_with_each_write(self, scanned_service):
        scanned = scanned_service.get_session("ABC").entries["B200"]
        resolved = scanned_service.set_resolved("ABC", "B200", True)
        rescanned = scanned_service.record_scan("ABC", "B200")

        assert scanned.revision < resolved.revision < rescanned.revision
        assert rescanned.resolved is True

    def test_concurrent_resolves_are_delivered_in_commit_order(self, scanned_service):
        listener = SlowResolveListener()
        scanned_service.subscribe(listener)

        first = threading.Thread(
            target=scanned_service.set_resolved, args=("ABC", "B200", True)
        )
        second = threading.Thread(
            target=scanned_service.set_resolved, args=("ABC", "B200", False)
        )

        first.start()
        assert listener.first_delivered.wait(timeout=5)

        # The second write waits for the first delivery to finish
        second.start()
        second.join(timeout=0.2)
        assert second.is_alive()

        listener.release.set()
        first.join(timeout=5)
        second.join(timeout=5)

        server = scanned_service.get_session("ABC").entries["B200"]
        assert [e.resolved for e in listener.delivered] == [True, False]
        assert listener.delivered[-1] == server
        assert server.resolved is False
        assert listener.delivered[0].revision < listener.delivered[1].revision
