"""
inventory_migration.domain.types -- Pure frozen dataclasses for the migration.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples for
immutable collections.

Invariants enforced:
    - ``MigrationRule.aggregated_quantity`` is the sum of its products'
      quantities (computed, never stored separately).
    - ``BatchOutcome.merge`` is associative; the batch loop threads one
      outcome value through every batch instead of mutating shared state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from inventory_kernel.exceptions import MigrationExecutionFailedError


class MigrationState(str, Enum):
    """Migration lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"
    ROLLED_BACK = "rolled-back"


# =============================================================================
# Source records
# =============================================================================


@dataclass(frozen=True)
class LegacyProduct:
    """Read-only per-product inventory record of the old model."""

    sku: str
    name: str
    category_id: str | None = None
    quantity: int | None = None
    low_stock_threshold: int | None = None


# =============================================================================
# Analysis
# =============================================================================


@dataclass(frozen=True)
class RuleProduct:
    sku: str
    name: str
    quantity: int
    low_stock_threshold: int | None = None


@dataclass(frozen=True)
class MigrationRule:
    """Aggregation of legacy products into one category inventory."""

    category_id: str
    category_name: str
    products: tuple[RuleProduct, ...]
    low_stock_threshold: int

    @property
    def aggregated_quantity(self) -> int:
        return sum(p.quantity for p in self.products)

    @property
    def product_count(self) -> int:
        return len(self.products)


@dataclass(frozen=True)
class MigrationAnalysis:
    total_categories: int
    categories_with_products: int
    uncategorized_products: int
    rules: tuple[MigrationRule, ...]
    uncategorized_category_id: str | None = None
    skipped_products: tuple[str, ...] = ()  # SKUs pointing at missing categories

    @property
    def total_products(self) -> int:
        return sum(r.product_count for r in self.rules)


# =============================================================================
# Status
# =============================================================================


@dataclass(frozen=True)
class MigrationStatus:
    """Snapshot of the singleton migration status record."""

    status: MigrationState
    progress: int
    current_phase: str
    categories_processed: int = 0
    total_categories: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    last_error: str | None = None
    lease_owner: str | None = None
    lease_expires_at: datetime | None = None

    def lease_active(self, now: datetime) -> bool:
        return (
            self.status is MigrationState.IN_PROGRESS
            and self.lease_owner is not None
            and self.lease_expires_at is not None
            and self.lease_expires_at > now
        )


# =============================================================================
# Validation
# =============================================================================


@dataclass(frozen=True)
class CategoryDiscrepancy:
    category_id: str
    category_name: str
    expected_quantity: int
    actual_quantity: int

    @property
    def difference(self) -> int:
        return abs(self.actual_quantity - self.expected_quantity)


@dataclass(frozen=True)
class ValidationResult:
    category_discrepancies: tuple[CategoryDiscrepancy, ...] = ()
    orphaned_products: tuple[str, ...] = ()
    duplicate_products: tuple[str, ...] = ()

    @property
    def total_discrepancies(self) -> int:
        return len(self.category_discrepancies)

    @property
    def is_valid(self) -> bool:
        return not self.category_discrepancies and not self.orphaned_products


# =============================================================================
# Execution
# =============================================================================


@dataclass(frozen=True)
class BatchFailure:
    start_index: int
    category_ids: tuple[str, ...]
    message: str

    @property
    def error(self) -> str:
        return (
            f"Failed to migrate batch starting at index "
            f"{self.start_index}: {self.message}"
        )


@dataclass(frozen=True)
class BatchOutcome:
    """Accumulated result of the batch loop."""

    committed: tuple[str, ...] = ()
    products_processed: int = 0
    failed: tuple[BatchFailure, ...] = ()

    def merge(self, other: BatchOutcome) -> BatchOutcome:
        return BatchOutcome(
            committed=self.committed + other.committed,
            products_processed=self.products_processed + other.products_processed,
            failed=self.failed + other.failed,
        )

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(f.error for f in self.failed)

    @property
    def attempted(self) -> int:
        return len(self.committed) + sum(len(f.category_ids) for f in self.failed)


@dataclass(frozen=True)
class MigrationResult:
    """Returned by ``MigrationService.execute()``."""

    outcome: BatchOutcome
    warnings: tuple[str, ...]
    started_at: datetime
    completed_at: datetime
    validation: ValidationResult | None = None

    @property
    def success(self) -> bool:
        return not self.outcome.failed

    @property
    def categories_migrated(self) -> int:
        return len(self.outcome.committed)

    @property
    def total_products_processed(self) -> int:
        return self.outcome.products_processed

    @property
    def errors(self) -> tuple[str, ...]:
        return self.outcome.errors

    @property
    def duration_ms(self) -> int:
        return int((self.completed_at - self.started_at).total_seconds() * 1000)

    def raise_for_errors(self) -> None:
        """Raise ``MigrationExecutionFailedError`` if any batch failed."""
        if self.outcome.failed:
            raise MigrationExecutionFailedError(self.errors)
