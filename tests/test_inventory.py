"""
==============================================================================
Inventory Tests
==============================================================================

Tests for snapshot building, the inventory index, and the CSV loader.

==============================================================================
"""

import pytest

from binaudit.core import AppException
from binaudit.inventory import (
    InventoryIndex,
    ItemRecord,
    build_snapshot,
    decode_upload,
    parse_inventory_csv,
)


class TestItemRecord:
    """Tests for record normalization."""

    def test_codes_are_trimmed_and_uppercased(self):
        record = ItemRecord(item_id="  a100 ", expected_bin=" abc")
        assert record.item_id == "A100"
        assert record.expected_bin == "ABC"

    def test_missing_text_fields_become_empty(self):
        record = ItemRecord(item_id="A100", expected_bin=None, vendor_status=None)
        assert record.expected_bin == ""
        assert record.vendor_status == ""

    def test_record_is_immutable(self):
        record = ItemRecord(item_id="A100")
        with pytest.raises(Exception):
            record.item_id = "B200"


class TestBuildSnapshot:
    """Tests for build_snapshot."""

    def test_lookup_returns_original_expected_bin(self, records):
        """Every row can be looked up and keeps its expected bin."""
        snapshot = build_snapshot(records, version=1)

        for record in records:
            assert snapshot.lookup_item(record.item_id).expected_bin == record.expected_bin

    def test_bin_membership(self, records):
        snapshot = build_snapshot(records, version=1)

        assert snapshot.expected_items("xyz") == frozenset({"A101", "B200"})
        assert snapshot.expected_items("ABC") == frozenset({"A100"})
        assert snapshot.expected_items("QQQ") == frozenset()
        assert snapshot.is_known_bin(" abc ")
        assert not snapshot.is_known_bin("QQQ")

    def test_rows_without_item_id_are_skipped(self):
        snapshot = build_snapshot(
            [ItemRecord(item_id="", expected_bin="ABC"), ItemRecord(item_id="A100", expected_bin="ABC")],
            version=1,
        )
        assert snapshot.total == 1
        assert list(snapshot.items) == ["A100"]

    def test_duplicate_item_last_row_wins(self):
        snapshot = build_snapshot(
            [
                ItemRecord(item_id="A100", expected_bin="ABC"),
                ItemRecord(item_id="a100", expected_bin="XYZ"),
            ],
            version=1,
        )
        assert snapshot.total == 2
        assert snapshot.lookup_item("A100").expected_bin == "XYZ"
        assert not snapshot.is_known_bin("ABC")
        assert snapshot.expected_items("XYZ") == frozenset({"A100"})

    def test_empty_expected_bin_is_not_a_bin(self):
        snapshot = build_snapshot([ItemRecord(item_id="A100")], version=1)
        assert snapshot.bins == {}
        assert snapshot.lookup_item("A100") is not None

    def test_metadata(self, records):
        snapshot = build_snapshot(records, version=3)
        metadata = snapshot.metadata()

        assert metadata.version == 3
        assert metadata.total == 3
        assert metadata.bins == ["ABC", "XYZ"]
        assert metadata.loaded is True


class TestInventoryIndex:
    """Tests for the snapshot holder."""

    def test_empty_index(self):
        index = InventoryIndex()
        assert index.current_snapshot() is None
        assert index.metadata() is None
        assert index.lookup_item("A100") is None
        assert index.is_known_bin("ABC") is False

    def test_replace_increments_version(self, records):
        index = InventoryIndex()

        first = index.replace(records)
        second = index.replace(records[:1])

        assert first.version == 1
        assert second.version == 2
        assert index.current_snapshot() is second

    def test_initial_version(self, records):
        index = InventoryIndex(initial_version=5)

        assert index.current_snapshot() is None
        assert index.replace(records).version == 6

    def test_replace_swaps_whole_snapshot(self, records):
        index = InventoryIndex()
        old = index.replace(records)

        index.replace([ItemRecord(item_id="C300", expected_bin="DEF")])

        # The old snapshot is untouched
        assert old.lookup_item("A100") is not None
        assert index.lookup_item("A100") is None
        assert index.is_known_bin("DEF")


class TestInventoryLoader:
    """Tests for CSV parsing."""

    def test_parse_csv(self):
        text = (
            "Item ID,Warehouse Bin ID,Status,Category,Subcategory,Received At Warehouse\n"
            " a100 , abc ,Active,Apparel,Shirts,2024-03-01\n"
            "A101,XYZ,Shappi Closed,,,\n"
        )
        records = parse_inventory_csv(text)

        assert [r.item_id for r in records] == ["A100", "A101"]
        assert records[0].expected_bin == "ABC"
        assert records[0].category == "Apparel"
        assert records[1].vendor_status == "Shappi Closed"

    def test_header_match_is_case_insensitive(self):
        records = parse_inventory_csv("item id,WAREHOUSE BIN ID\nA100,ABC\n")
        assert records[0].expected_bin == "ABC"

    def test_unknown_columns_are_ignored(self):
        records = parse_inventory_csv("Item ID,Color\nA100,Red\n")
        assert records[0].item_id == "A100"

    def test_missing_item_column(self):
        with pytest.raises(AppException) as exc_info:
            parse_inventory_csv("Warehouse Bin ID\nABC\n")
        assert exc_info.value.code == "INVALID_INVENTORY_FILE"

    def test_empty_file(self):
        with pytest.raises(AppException) as exc_info:
            parse_inventory_csv("")
        assert exc_info.value.code == "INVALID_INVENTORY_FILE"

    def test_decode_upload_strips_bom(self):
        assert decode_upload("\ufeffItem ID\n".encode("utf-8")) == "Item ID\n"

    def test_decode_upload_latin1_fallback(self):
        assert decode_upload("Caf\xe9".encode("latin-1")) == "Caf\xe9"
