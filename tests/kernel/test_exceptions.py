"""Tests for the typed exception hierarchy (inventory_kernel/exceptions.py)."""

from datetime import datetime, timezone

import pytest

from inventory_kernel.exceptions import (
    CategoryNotFoundError,
    InsufficientInventoryError,
    InvalidInventoryError,
    InvalidQuantityError,
    InventoryLedgerError,
    LedgerError,
    MigrationAlreadyRunningError,
    MigrationAnalysisFailedError,
    MigrationError,
    MigrationExecutionFailedError,
    MigrationRollbackFailedError,
    RepositoryError,
    StoreError,
    StoreUnavailableError,
    ValidationFailedError,
)


class TestHierarchy:

    @pytest.mark.parametrize("exc_cls,parent", [
        (CategoryNotFoundError, LedgerError),
        (InsufficientInventoryError, LedgerError),
        (InvalidQuantityError, LedgerError),
        (InvalidInventoryError, LedgerError),
        (StoreUnavailableError, StoreError),
        (RepositoryError, StoreUnavailableError),
        (MigrationAnalysisFailedError, MigrationError),
        (MigrationExecutionFailedError, MigrationError),
        (ValidationFailedError, MigrationError),
        (MigrationRollbackFailedError, MigrationError),
        (MigrationAlreadyRunningError, MigrationError),
    ])
    def test_parent(self, exc_cls, parent):
        assert issubclass(exc_cls, parent)
        assert issubclass(exc_cls, InventoryLedgerError)

    def test_codes_are_unique(self):
        classes = [
            InventoryLedgerError, LedgerError, CategoryNotFoundError,
            InsufficientInventoryError, InvalidQuantityError, InvalidInventoryError,
            StoreError, StoreUnavailableError, RepositoryError, MigrationError,
            MigrationAnalysisFailedError, MigrationExecutionFailedError,
            ValidationFailedError, MigrationRollbackFailedError,
            MigrationAlreadyRunningError,
        ]
        codes = [c.code for c in classes]
        assert len(codes) == len(set(codes))


class TestStructuredData:

    def test_category_not_found(self):
        exc = CategoryNotFoundError("shoes")
        assert exc.category_id == "shoes"
        assert exc.code == "CATEGORY_NOT_FOUND"
        assert "shoes" in str(exc)

    def test_insufficient_inventory(self):
        exc = InsufficientInventoryError("shoes", available=50, requested=999)
        assert (exc.available, exc.requested) == (50, 999)
        assert str(exc).startswith("Insufficient inventory in source category")

    def test_repository_error_keeps_store_fields(self):
        exc = RepositoryError("get_category", "connection refused")
        assert exc.operation == "get_category"
        assert exc.attempts == 1
        assert exc.code == "REPOSITORY_ERROR"

    def test_execution_failed_wraps_errors(self):
        exc = MigrationExecutionFailedError(["first", "second"])
        assert exc.errors == ["first", "second"]
        assert "last: second" in str(exc)

    def test_execution_failed_with_no_errors(self):
        assert "unknown error" in str(MigrationExecutionFailedError([]))

    def test_already_running(self):
        expires = datetime(2024, 1, 1, tzinfo=timezone.utc)
        exc = MigrationAlreadyRunningError("run-1", expires)
        assert exc.lease_owner == "run-1"
        assert exc.lease_expires_at == expires

    def test_rollback_failed(self):
        exc = MigrationRollbackFailedError("db down", categories_cleared=4)
        assert exc.categories_cleared == 4
        assert "4 categories" in str(exc)
