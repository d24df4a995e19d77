"""Tests for CategoryInventoryRepository -- default materialization and reads."""

import pytest
from sqlalchemy.exc import OperationalError

from inventory_kernel.exceptions import RepositoryError
from inventory_ledger.orm import CategoryModel


class TestGet:

    def test_unknown_returns_none(self, orchestrator):
        assert orchestrator.get("nope") is None

    def test_stored_inventory(self, orchestrator, add_category):
        add_category("shoes", name="Shoes", quantity=40, threshold=8, product_count=3)
        category = orchestrator.get("shoes")
        assert category.name == "Shoes"
        assert category.has_inventory_record
        assert category.inventory.total_quantity == 40
        assert category.inventory.low_stock_threshold == 8
        assert category.inventory.product_count == 3

    def test_missing_inventory_defaults_without_persisting(
        self, orchestrator, add_category, store, clock,
    ):
        add_category("hats")
        category = orchestrator.get("hats")
        assert not category.has_inventory_record
        assert category.inventory.total_quantity == 0
        assert category.inventory.low_stock_threshold == 5
        assert category.inventory.last_updated == clock.now()
        with store.read() as session:
            assert session.get(CategoryModel, "hats").inventory is None


class TestGetAll:

    def test_ordered_by_id_with_defaults(self, orchestrator, add_category):
        add_category("b", quantity=2)
        add_category("a")
        add_category("c", quantity=9)
        categories = orchestrator.get_all()
        assert [c.id for c in categories] == ["a", "b", "c"]
        assert [c.inventory.total_quantity for c in categories] == [0, 2, 9]

    def test_empty(self, orchestrator):
        assert orchestrator.get_all() == ()


class TestFailures:

    def test_driver_error_becomes_repository_error(self, orchestrator, engine):
        with engine.begin() as conn:
            conn.exec_driver_sql("DROP TABLE inventory_operations")
            conn.exec_driver_sql("DROP TABLE categories")
        with pytest.raises(RepositoryError) as exc_info:
            orchestrator.get("shoes")
        assert isinstance(exc_info.value.__cause__, OperationalError)


class TestHandEditedRecords:

    def test_out_of_range_document_does_not_break_reads(
        self, orchestrator, add_category, store, clock,
    ):
        add_category("ok", quantity=50)
        add_category("edited", quantity=1)
        with store.transaction() as session:
            session.get(CategoryModel, "edited").inventory = {
                "totalQuantity": 2,
                "lowStockThreshold": 0,
                "lastUpdated": "last tuesday",
            }

        edited = orchestrator.get("edited").inventory
        assert edited.low_stock_threshold == 1
        assert edited.last_updated == clock.now()
        assert [c.id for c in orchestrator.get_all()] == ["edited", "ok"]
        assert orchestrator.low_stock_alerts() == ()
        assert orchestrator.report().total_quantity == 52
