"""
ORM models for the category ledger.

Contract:
    CategoryModel holds category identity plus the nullable JSON
    ``inventory`` sub-document.  InventoryOperationModel is the append-only
    operation log.  Both have ``to_dto()`` methods; the operation log also
    has ``from_dto()``.

Architecture: inventory_ledger.  Imports from inventory_kernel.db.base only
    (plus the ledger's own DTOs).

Invariants enforced:
    - ``inventory`` NULL means "no inventory record"; readers materialize the
      zero default without writing it back.
    - Operation rows are never updated; ``seq`` preserves insertion order
      for entries sharing a timestamp.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    BigInteger,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString
from inventory_ledger.models import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    CategoryInventory,
    CategoryWithInventory,
    InventoryOperation,
    OperationType,
)


class CategoryModel(Base):
    """Product category with its embedded inventory sub-document."""

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tag: Mapped[str | None] = mapped_column(String(100), nullable=True)
    cost_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    inventory: Mapped[dict[str, Any] | None] = mapped_column(
        JSON(none_as_null=True), nullable=True,
    )
    created_at: Mapped[datetime | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def inventory_dto(
        self,
        default_time: datetime,
        default_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ) -> CategoryInventory:
        if self.inventory is None:
            return CategoryInventory.default(default_time, default_threshold)
        return CategoryInventory.from_document(
            self.inventory, default_time, default_threshold,
        )

    def to_dto(
        self,
        default_time: datetime,
        default_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ) -> CategoryWithInventory:
        """Materialize the category, defaulting a missing inventory record."""
        return CategoryWithInventory(
            id=self.id,
            name=self.name,
            inventory=self.inventory_dto(default_time, default_threshold),
            description=self.description,
            tag=self.tag,
            cost_price=self.cost_price,
            created_at=self.created_at,
            updated_at=self.updated_at,
            has_inventory_record=self.inventory is not None,
        )

    def store_inventory(self, inventory: CategoryInventory, now: datetime) -> None:
        self.inventory = inventory.to_document()
        self.updated_at = now

    def clear_inventory(self, now: datetime) -> None:
        self.inventory = None
        self.updated_at = now


class InventoryOperationModel(Base):
    """Append-only operation log entry."""

    __tablename__ = "inventory_operations"

    __table_args__ = (
        Index("ix_inventory_operations_category_ts", "category_id", "timestamp"),
        Index("ix_inventory_operations_performed_by", "performed_by"),
    )

    # SQLite only autoincrements INTEGER PRIMARY KEY
    seq: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    operation_id: Mapped[UUID] = mapped_column(
        UUIDString(), nullable=False, unique=True, default=uuid4,
    )
    category_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("categories.id"), nullable=False,
    )
    operation_type: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    new_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    performed_by: Mapped[str] = mapped_column(String(200), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)
    # "metadata" is reserved on declarative classes
    operation_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON(none_as_null=True), nullable=True,
    )

    def to_dto(self) -> InventoryOperation:
        return InventoryOperation(
            operation_id=self.operation_id,
            category_id=self.category_id,
            operation_type=OperationType(self.operation_type),
            quantity=self.quantity,
            previous_quantity=self.previous_quantity,
            new_quantity=self.new_quantity,
            performed_by=self.performed_by,
            timestamp=self.timestamp,
            reason=self.reason,
            metadata=dict(self.operation_metadata or {}),
        )

    @classmethod
    def from_dto(cls, dto: InventoryOperation) -> InventoryOperationModel:
        return cls(
            operation_id=dto.operation_id,
            category_id=dto.category_id,
            operation_type=dto.operation_type.value,
            quantity=dto.quantity,
            previous_quantity=dto.previous_quantity,
            new_quantity=dto.new_quantity,
            reason=dto.reason,
            performed_by=dto.performed_by,
            timestamp=dto.timestamp,
            operation_metadata=dto.metadata or None,
        )
