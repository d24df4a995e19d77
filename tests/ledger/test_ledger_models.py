"""Tests for inventory_ledger.models -- pure DTOs and their invariants."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from inventory_kernel.exceptions import InvalidInventoryError
from inventory_ledger.models import CategoryInventory, Severity

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestCategoryInventory:

    def test_default_zero_record(self):
        inv = CategoryInventory.default(NOW)
        assert inv.total_quantity == 0
        assert inv.low_stock_threshold == 5
        assert inv.last_updated == NOW
        assert inv.product_count == 0
        assert inv.reserved_quantity is None

    @pytest.mark.parametrize("kwargs,field", [
        ({"total_quantity": -1, "low_stock_threshold": 5}, "total_quantity"),
        ({"total_quantity": 0, "low_stock_threshold": 0}, "low_stock_threshold"),
        ({"total_quantity": 1.5, "low_stock_threshold": 5}, "total_quantity"),
        ({"total_quantity": True, "low_stock_threshold": 5}, "total_quantity"),
        ({"total_quantity": 1, "low_stock_threshold": 5, "product_count": -2}, "product_count"),
    ])
    def test_invariants(self, kwargs, field):
        with pytest.raises(InvalidInventoryError) as exc_info:
            CategoryInventory(last_updated=NOW, **kwargs)
        assert exc_info.value.field == field

    def test_frozen(self):
        inv = CategoryInventory.default(NOW)
        with pytest.raises(FrozenInstanceError):
            inv.total_quantity = 3

    def test_document_round_trip_keeps_reserved(self):
        inv = CategoryInventory(
            total_quantity=12, low_stock_threshold=3, last_updated=NOW,
            product_count=4, reserved_quantity=2,
        )
        doc = inv.to_document()
        assert doc == {
            "totalQuantity": 12,
            "lowStockThreshold": 3,
            "lastUpdated": NOW.isoformat(),
            "productCount": 4,
            "reservedQuantity": 2,
        }
        assert CategoryInventory.from_document(doc, NOW) == inv

    def test_from_partial_document_uses_defaults(self):
        inv = CategoryInventory.from_document({"totalQuantity": 9}, NOW)
        assert inv.total_quantity == 9
        assert inv.low_stock_threshold == 5
        assert inv.last_updated == NOW
        assert inv.product_count == 0

    def test_from_document_floors_out_of_range_numbers(self):
        inv = CategoryInventory.from_document(
            {"totalQuantity": -4, "lowStockThreshold": 0, "productCount": -1}, NOW,
        )
        assert inv.total_quantity == 0
        assert inv.low_stock_threshold == 1
        assert inv.product_count == 0

    @pytest.mark.parametrize("raw", ["yesterday", 42, None])
    def test_from_document_unreadable_timestamp(self, raw):
        inv = CategoryInventory.from_document({"totalQuantity": 1, "lastUpdated": raw}, NOW)
        assert inv.last_updated == NOW

    def test_from_document_naive_timestamp_is_utc(self):
        inv = CategoryInventory.from_document({"lastUpdated": "2024-03-01T08:00:00"}, NOW)
        assert inv.last_updated == datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)

    def test_from_document_rejects_wrong_types(self):
        with pytest.raises(InvalidInventoryError) as exc_info:
            CategoryInventory.from_document({"totalQuantity": "12"}, NOW)
        assert exc_info.value.field == "total_quantity"

    def test_with_quantity_stamps_time(self):
        later = datetime(2024, 2, 1, tzinfo=timezone.utc)
        inv = CategoryInventory.default(NOW).with_quantity(7, later)
        assert (inv.total_quantity, inv.last_updated) == (7, later)

    def test_with_quantity_cannot_go_negative(self):
        with pytest.raises(InvalidInventoryError):
            CategoryInventory.default(NOW).with_quantity(-1, NOW)


class TestSeverity:

    def test_rank_order(self):
        ranked = sorted(Severity, key=lambda s: s.rank)
        assert ranked == [Severity.OUT_OF_STOCK, Severity.CRITICAL, Severity.LOW]

    def test_wire_values(self):
        assert Severity("out-of-stock") is Severity.OUT_OF_STOCK
