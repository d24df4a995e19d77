"""
Category Inventory Domain Models.

Pure frozen dataclasses for the category ledger.  ZERO I/O.

Invariants enforced:
    - ``CategoryInventory.total_quantity`` is never negative.
    - ``CategoryInventory.low_stock_threshold`` is never below 1.
    Violations raise ``InvalidInventoryError`` at construction, so no
    invalid record can reach the store.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping
from uuid import UUID

from inventory_kernel.exceptions import InvalidInventoryError

DEFAULT_LOW_STOCK_THRESHOLD = 5


class OperationType(str, Enum):
    """Kind of quantity-changing action recorded in the operation log."""

    ADD = "add"
    REMOVE = "remove"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"  # zero-delta adjust


class Severity(str, Enum):
    """Low-stock alert severity, most urgent first."""

    OUT_OF_STOCK = "out-of-stock"
    CRITICAL = "critical"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.OUT_OF_STOCK: 0,
    Severity.CRITICAL: 1,
    Severity.LOW: 2,
}


class StockStatus(str, Enum):
    """Report-level stock status of a category."""

    IN_STOCK = "in-stock"
    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"


def _require_int(field_name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInventoryError(field_name, value, "must be an integer")


@dataclass(frozen=True)
class CategoryInventory:
    """Quantity-on-hand and alerting threshold of one category."""

    total_quantity: int
    low_stock_threshold: int
    last_updated: datetime
    product_count: int = 0
    reserved_quantity: int | None = None  # carried through, never interpreted

    def __post_init__(self):
        _require_int("total_quantity", self.total_quantity)
        _require_int("low_stock_threshold", self.low_stock_threshold)
        _require_int("product_count", self.product_count)
        if self.total_quantity < 0:
            raise InvalidInventoryError(
                "total_quantity", self.total_quantity, "cannot be negative",
            )
        if self.low_stock_threshold < 1:
            raise InvalidInventoryError(
                "low_stock_threshold", self.low_stock_threshold, "must be at least 1",
            )
        if self.product_count < 0:
            raise InvalidInventoryError(
                "product_count", self.product_count, "cannot be negative",
            )

    @classmethod
    def default(
        cls,
        now: datetime,
        threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ) -> "CategoryInventory":
        """Zero record used for categories with no stored inventory."""
        return cls(
            total_quantity=0,
            low_stock_threshold=threshold,
            last_updated=now,
            product_count=0,
        )

    def with_quantity(self, quantity: int, now: datetime) -> "CategoryInventory":
        return replace(self, total_quantity=quantity, last_updated=now)

    def with_threshold(self, threshold: int, now: datetime) -> "CategoryInventory":
        return replace(self, low_stock_threshold=threshold, last_updated=now)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the stored JSON sub-document."""
        doc: dict[str, Any] = {
            "totalQuantity": self.total_quantity,
            "lowStockThreshold": self.low_stock_threshold,
            "lastUpdated": self.last_updated.isoformat(),
            "productCount": self.product_count,
        }
        if self.reserved_quantity is not None:
            doc["reservedQuantity"] = self.reserved_quantity
        return doc

    @classmethod
    def from_document(
        cls,
        doc: Mapping[str, Any],
        default_time: datetime,
        default_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ) -> "CategoryInventory":
        """
        Parse a stored sub-document.

        Missing keys fall back to the zero-record defaults.  Out-of-range
        numbers are floored (quantity and product count at 0, threshold at
        1) and an unreadable ``lastUpdated`` becomes ``default_time``.
        Values of the wrong type still raise ``InvalidInventoryError``.
        """
        total_quantity = doc.get("totalQuantity", 0)
        threshold = doc.get("lowStockThreshold", default_threshold)
        product_count = doc.get("productCount", 0)
        return cls(
            total_quantity=_floored(total_quantity, 0),
            low_stock_threshold=_floored(threshold, 1),
            last_updated=_parse_timestamp(doc.get("lastUpdated"), default_time),
            product_count=_floored(product_count, 0),
            reserved_quantity=doc.get("reservedQuantity"),
        )


def _floored(value: Any, floor: int) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return max(floor, value)
    return value


def _parse_timestamp(raw: Any, default_time: datetime) -> datetime:
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, str):
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return default_time
    else:
        return default_time
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class CategoryWithInventory:
    """A category together with its (possibly defaulted) inventory."""

    id: str
    name: str
    inventory: CategoryInventory
    description: str | None = None
    tag: str | None = None
    cost_price: float | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    has_inventory_record: bool = True  # False when inventory was defaulted


@dataclass(frozen=True)
class InventoryOperation:
    """One append-only operation-log entry."""

    operation_id: UUID
    category_id: str
    operation_type: OperationType
    quantity: int  # magnitude
    previous_quantity: int
    new_quantity: int
    performed_by: str
    timestamp: datetime
    reason: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LowStockAlert:
    category_id: str
    category_name: str
    current_quantity: int
    low_stock_threshold: int
    severity: Severity
    product_count: int
    last_restocked: datetime


@dataclass(frozen=True)
class CategoryStockRow:
    id: str
    name: str
    quantity: int
    threshold: int
    status: StockStatus
    product_count: int


@dataclass(frozen=True)
class InventoryReport:
    """Point-in-time summary of every category's stock."""

    total_categories: int
    total_quantity: int
    low_stock_categories: int
    out_of_stock_categories: int
    categories: tuple[CategoryStockRow, ...]
    generated_at: datetime
