"""
Category Inventory Ledger (``inventory_ledger``).

Responsibility
--------------
Authoritative quantity-on-hand per product category: typed reads with
default filling, atomic adjust / threshold / transfer mutations, an
append-only operation log, low-stock classification and a summary report.

Architecture
------------
- ``models``      -- frozen DTOs and enums (pure).
- ``orm``         -- SQLAlchemy models for categories and the operation log.
- ``helpers``     -- pure severity / status / report functions.
- ``repository``  -- read access with default materialization.
- ``service``     -- mutation engine; owns its transaction boundaries.
- ``reporting``   -- alerts and report over a repository snapshot.
- ``history``     -- operation-log selector.

Depends on ``inventory_kernel`` only; ``inventory_migration`` builds on top
of this package, never the reverse.
"""

from inventory_ledger.models import (
    CategoryInventory,
    CategoryStockRow,
    CategoryWithInventory,
    InventoryOperation,
    InventoryReport,
    LowStockAlert,
    OperationType,
    Severity,
    StockStatus,
)

__all__ = [
    "CategoryInventory",
    "CategoryStockRow",
    "CategoryWithInventory",
    "InventoryOperation",
    "InventoryReport",
    "LowStockAlert",
    "OperationType",
    "Severity",
    "StockStatus",
]
