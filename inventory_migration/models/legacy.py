"""
ORM model for legacy per-product inventory records.

Read-only for the migration engine.  ``category_id`` carries no foreign key:
legacy data may reference categories that no longer exist, and validation
reports those products as orphans.
"""

from __future__ import annotations

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base
from inventory_migration.domain.types import LegacyProduct


class LegacyProductModel(Base):

    __tablename__ = "legacy_products"

    # Surrogate key: legacy exports may repeat a SKU
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sku: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    low_stock_threshold: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def to_dto(self) -> LegacyProduct:
        return LegacyProduct(
            sku=self.sku,
            name=self.name,
            category_id=self.category_id,
            quantity=self.quantity,
            low_stock_threshold=self.low_stock_threshold,
        )

    @classmethod
    def from_dto(cls, dto: LegacyProduct) -> LegacyProductModel:
        return cls(
            sku=dto.sku,
            name=dto.name,
            category_id=dto.category_id,
            quantity=dto.quantity,
            low_stock_threshold=dto.low_stock_threshold,
        )
