"""
==============================================================================
Audit Session Tests
==============================================================================

Tests for the session lifecycle, scan recording, concurrency, and event
delivery through the audit engine.

==============================================================================
"""

import threading
from typing import List, Tuple

import pytest

from binaudit.audit import AuditEventListener, ScanStatus
from binaudit.core import AppException
from binaudit.inventory import ItemRecord


class RecordingListener(AuditEventListener):
    """Collects events in delivery order."""

    def __init__(self):
        self.events: List[Tuple[str, tuple]] = []

    def snapshot_updated(self, metadata):
        self.events.append(("snapshot_updated", (metadata,)))

    def session_started(self, session, resumed):
        self.events.append(("session_started", (session, resumed)))

    def item_scanned(self, bin_id, entry):
        self.events.append(("item_scanned", (bin_id, entry)))

    def item_resolved(self, bin_id, entry):
        self.events.append(("item_resolved", (bin_id, entry)))

    def session_ended(self, session):
        self.events.append(("session_ended", (session,)))

    @property
    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.events]


class FailingListener(AuditEventListener):
    def item_scanned(self, bin_id, entry):
        raise RuntimeError("listener down")


class TestSessionLifecycle:
    """Tests for start / end."""

    def test_start_normalizes_bin(self, loaded_service):
        session, resumed = loaded_service.start_session(" abc ", "Jane")

        assert session.bin_id == "ABC"
        assert session.auditor == "Jane"
        assert session.is_open
        assert session.entries == {}
        assert resumed is False

    def test_blank_auditor_defaults(self, loaded_service):
        session, _ = loaded_service.start_session("ABC", "   ")
        assert session.auditor == "Unknown"

    @pytest.mark.parametrize(
        "bin_id, code",
        [("ab", "BAD_BIN_FORMAT"), ("QQQ", "UNKNOWN_BIN")],
    )
    def test_start_rejects_invalid_bin(self, loaded_service, bin_id, code):
        with pytest.raises(AppException) as exc_info:
            loaded_service.start_session(bin_id, "Jane")

        assert exc_info.value.code == code
        assert loaded_service.list_sessions() == []

    def test_start_without_snapshot(self, service):
        with pytest.raises(AppException) as exc_info:
            service.start_session("ABC", "Jane")
        assert exc_info.value.code == "NO_SNAPSHOT"

    def test_restart_open_session_continues(self, loaded_service):
        """Starting an open bin again keeps its history and auditor."""
        first, _ = loaded_service.start_session("ABC", "Jane")
        loaded_service.record_scan("ABC", "A100")

        session, resumed = loaded_service.start_session("ABC", "Bob")

        assert resumed is True
        assert session.auditor == "Jane"
        assert session.start_time == first.start_time
        assert list(session.entries) == ["A100"]

    def test_restart_ended_session_starts_over(self, loaded_service):
        loaded_service.start_session("ABC", "Jane")
        loaded_service.record_scan("ABC", "A100")
        loaded_service.end_session("ABC")

        session, resumed = loaded_service.start_session("ABC", "Bob")

        assert resumed is False
        assert session.auditor == "Bob"
        assert session.entries == {}
        assert session.is_open

    def test_end_preserves_entries(self, loaded_service):
        loaded_service.start_session("ABC", "Jane")
        loaded_service.record_scan("ABC", "A100")

        session = loaded_service.end_session("abc")

        assert session.end_time is not None
        assert session.status_label == "Completed"
        assert list(session.entries) == ["A100"]

    def test_end_without_session(self, loaded_service):
        with pytest.raises(AppException) as exc_info:
            loaded_service.end_session("ABC")
        assert exc_info.value.code == "NO_OPEN_SESSION"

    def test_end_twice(self, loaded_service):
        loaded_service.start_session("ABC", "Jane")
        loaded_service.end_session("ABC")

        with pytest.raises(AppException) as exc_info:
            loaded_service.end_session("ABC")
        assert exc_info.value.code == "NO_OPEN_SESSION"

    def test_get_session_not_found(self, loaded_service):
        with pytest.raises(AppException) as exc_info:
            loaded_service.get_session("ABC")
        assert exc_info.value.code == "SESSION_NOT_FOUND"

    def test_unknown_bins_do_not_create_locks(self, loaded_service):
        store = loaded_service.store

        for i in range(500):
            assert store.get(f"Q{i}") is None
            with pytest.raises(AppException):
                loaded_service.end_session(f"Q{i}")
            with pytest.raises(AppException):
                loaded_service.set_resolved(f"Q{i}", "A100", True)
            with pytest.raises(AppException):
                loaded_service.record_scan(f"Q{i}", "A100")

        assert store._bin_locks == {}

        loaded_service.start_session("ABC", "Jane")
        assert list(store._bin_locks) == ["ABC"]

    def test_list_sessions_sorted(self, loaded_service):
        loaded_service.start_session("XYZ", "Jane")
        loaded_service.start_session("ABC", "Jane")

        assert [s.bin_id for s in loaded_service.list_sessions()] == ["ABC", "XYZ"]
        assert len(loaded_service.store) == 2


class TestRecordScan:
    """Tests for scan recording."""

    def test_scan_classifies(self, loaded_service):
        loaded_service.start_session("ABC", "Jane")

        match = loaded_service.record_scan("ABC", "a100")
        remove = loaded_service.record_scan("ABC", "A101")
        mismatch = loaded_service.record_scan("ABC", "B200")
        unknown = loaded_service.record_scan("ABC", "Z999")

        assert match.status is ScanStatus.MATCH
        assert match.expected_bin == "ABC"
        assert match.category == "Apparel"
        assert remove.status is ScanStatus.REMOVE
        assert mismatch.status is ScanStatus.MISMATCH
        assert mismatch.correct_bin == "XYZ"
        assert unknown.status is ScanStatus.UNKNOWN
        assert unknown.expected_bin is None

    def test_scan_without_session(self, loaded_service):
        with pytest.raises(AppException) as exc_info:
            loaded_service.record_scan("ABC", "A100")
        assert exc_info.value.code == "NO_OPEN_SESSION"

    def test_scan_into_ended_session(self, loaded_service):
        loaded_service.start_session("ABC", "Jane")
        loaded_service.end_session("ABC")

        with pytest.raises(AppException) as exc_info:
            loaded_service.record_scan("ABC", "A100")
        assert exc_info.value.code == "NO_OPEN_SESSION"
        assert loaded_service.get_session("ABC").entries == {}

    def test_blank_item_id(self, loaded_service):
        loaded_service.start_session("ABC", "Jane")

        with pytest.raises(AppException) as exc_info:
            loaded_service.record_scan("ABC", "   ")
        assert exc_info.value.code == "INVALID_ITEM_ID"

    def test_rescan_keeps_one_entry(self, loaded_service):
        """Scanning an item twice keeps one entry; the later scan wins."""
        loaded_service.start_session("ABC", "Jane")
        first = loaded_service.record_scan("ABC", "A100")
        second = loaded_service.record_scan("ABC", "a100")

        session = loaded_service.get_session("ABC")
        assert list(session.entries) == ["A100"]
        assert session.entries["A100"] == second
        assert second.timestamp >= first.timestamp

    def test_rescan_uses_current_snapshot(self, loaded_service):
        loaded_service.start_session("ABC", "Jane")
        assert loaded_service.record_scan("ABC", "B200").status is ScanStatus.MISMATCH

        loaded_service.replace_inventory([
            ItemRecord(item_id="A100", expected_bin="ABC"),
            ItemRecord(item_id="B200", expected_bin="ABC"),
        ])

        assert loaded_service.record_scan("ABC", "B200").status is ScanStatus.MATCH
        assert len(loaded_service.get_session("ABC").entries) == 1

    def test_rescan_preserves_resolved(self, loaded_service):
        loaded_service.start_session("ABC", "Jane")
        loaded_service.record_scan("ABC", "B200")
        loaded_service.set_resolved("ABC", "B200", True)

        entry = loaded_service.record_scan("ABC", "B200")

        assert entry.resolved is True
        assert entry.status is ScanStatus.MISMATCH

    def test_entries_keep_first_scan_order(self, loaded_service):
        loaded_service.start_session("ABC", "Jane")
        for item_id in ["Z999", "A100", "B200", "Z999"]:
            loaded_service.record_scan("ABC", item_id)

        assert list(loaded_service.get_session("ABC").entries) == ["Z999", "A100", "B200"]

    def test_returned_session_is_a_copy(self, loaded_service):
        loaded_service.start_session("ABC", "Jane")
        view = loaded_service.get_session("ABC")

        loaded_service.record_scan("ABC", "A100")

        assert view.entries == {}
        assert "A100" in loaded_service.get_session("ABC").entries


class TestConcurrency:
    """Tests for concurrent scans."""

    def test_concurrent_scans_into_one_bin(self, loaded_service):
        loaded_service.start_session("ABC", "Jane")
        item_ids = [f"Z{i:03d}" for i in range(20)]
        errors = []

        def worker():
            try:
                for item_id in item_ids:
                    loaded_service.record_scan("ABC", item_id)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert sorted(loaded_service.get_session("ABC").entries) == item_ids

    def test_concurrent_scans_into_different_bins(self, loaded_service):
        loaded_service.start_session("ABC", "Jane")
        loaded_service.start_session("XYZ", "Bob")

        def worker(bin_id):
            for i in range(50):
                loaded_service.record_scan(bin_id, f"{bin_id}{i}")

        threads = [
            threading.Thread(target=worker, args=(bin_id,))
            for bin_id in ("ABC", "XYZ")
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(loaded_service.get_session("ABC").entries) == 50
        assert len(loaded_service.get_session("XYZ").entries) == 50


class TestEvents:
    """Tests for event delivery."""

    def test_event_sequence(self, service, records):
        listener = RecordingListener()
        service.subscribe(listener)

        service.replace_inventory(records)
        service.start_session("ABC", "Jane")
        service.record_scan("ABC", "A100")
        service.set_resolved("ABC", "A100", True)
        service.end_session("ABC")

        assert listener.kinds == [
            "snapshot_updated",
            "session_started",
            "item_scanned",
            "item_resolved",
            "session_ended",
        ]

    def test_item_events_carry_full_entry(self, loaded_service):
        listener = RecordingListener()
        loaded_service.subscribe(listener)
        loaded_service.start_session("ABC", "Jane")

        entry = loaded_service.record_scan("ABC", "B200")

        kind, (bin_id, event_entry) = listener.events[-1]
        assert kind == "item_scanned"
        assert bin_id == "ABC"
        assert event_entry == entry
        assert event_entry.correct_bin == "XYZ"

    def test_resumed_flag_in_event(self, loaded_service):
        listener = RecordingListener()
        loaded_service.subscribe(listener)

        loaded_service.start_session("ABC", "Jane")
        loaded_service.start_session("ABC", "Jane")

        assert [args[1] for kind, args in listener.events] == [False, True]

    def test_rejected_operation_emits_nothing(self, loaded_service):
        listener = RecordingListener()
        loaded_service.subscribe(listener)

        with pytest.raises(AppException):
            loaded_service.start_session("QQQ", "Jane")
        with pytest.raises(AppException):
            loaded_service.record_scan("ABC", "A100")

        assert listener.events == []

    def test_failing_listener_does_not_fail_scan(self, loaded_service):
        recorder = RecordingListener()
        loaded_service.subscribe(FailingListener())
        loaded_service.subscribe(recorder)
        loaded_service.start_session("ABC", "Jane")

        entry = loaded_service.record_scan("ABC", "A100")

        assert entry.status is ScanStatus.MATCH
        assert "A100" in loaded_service.get_session("ABC").entries
        assert recorder.kinds[-1] == "item_scanned"

    def test_unsubscribe(self, loaded_service):
        listener = RecordingListener()
        loaded_service.subscribe(listener)
        assert loaded_service.events.listener_count == 1

        loaded_service.unsubscribe(listener)
        assert loaded_service.events.listener_count == 0

        loaded_service.start_session("ABC", "Jane")

        assert listener.events == []
