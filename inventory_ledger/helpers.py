"""
Ledger Pure Functions (``inventory_ledger.helpers``).

Responsibility
--------------
Stateless low-stock classification, alert ranking and report aggregation
over already-materialized categories.

Architecture
------------
Layer: **Ledger** -- pure helper functions.  No I/O, no session, no clock.
Callers (``InventoryReporter``) supply the categories and the timestamp.

Failure Modes
-------------
- ``classify_severity`` raises ``ValueError`` if ``critical_ratio`` is not
  within (0, 1).
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from inventory_ledger.models import (
    CategoryStockRow,
    CategoryWithInventory,
    InventoryReport,
    LowStockAlert,
    Severity,
    StockStatus,
)

DEFAULT_CRITICAL_RATIO = 0.5


def classify_severity(
    quantity: int,
    threshold: int,
    critical_ratio: float = DEFAULT_CRITICAL_RATIO,
) -> Severity:
    """
    Classify a category's low-stock severity.

    Preconditions:
        - Only meaningful when ``quantity <= threshold``.
        - ``0 < critical_ratio < 1``.

    Postconditions:
        - ``OUT_OF_STOCK`` iff quantity == 0.
        - ``CRITICAL`` iff 0 < quantity <= threshold * critical_ratio.
        - ``LOW`` otherwise.

    Raises:
        ValueError: If critical_ratio is outside (0, 1).
    """
    if not 0 < critical_ratio < 1:
        raise ValueError(f"critical_ratio must be in (0, 1), got {critical_ratio}")
    if quantity == 0:
        return Severity.OUT_OF_STOCK
    if quantity <= threshold * critical_ratio:
        return Severity.CRITICAL
    return Severity.LOW


def build_low_stock_alerts(
    categories: Iterable[CategoryWithInventory],
    critical_ratio: float = DEFAULT_CRITICAL_RATIO,
) -> tuple[LowStockAlert, ...]:
    """
    Build alerts for every category at or below its threshold.

    Postconditions:
        - Sorted by severity rank (out-of-stock, critical, low).
        - Input order is preserved within a rank.
    """
    alerts = []
    for category in categories:
        inv = category.inventory
        if inv.total_quantity > inv.low_stock_threshold:
            continue
        alerts.append(
            LowStockAlert(
                category_id=category.id,
                category_name=category.name,
                current_quantity=inv.total_quantity,
                low_stock_threshold=inv.low_stock_threshold,
                severity=classify_severity(
                    inv.total_quantity, inv.low_stock_threshold, critical_ratio,
                ),
                product_count=inv.product_count,
                last_restocked=inv.last_updated,
            )
        )
    # sorted() is stable
    return tuple(sorted(alerts, key=lambda a: a.severity.rank))


def stock_status(quantity: int, threshold: int) -> StockStatus:
    if quantity == 0:
        return StockStatus.OUT_OF_STOCK
    if quantity <= threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def build_report(
    categories: Iterable[CategoryWithInventory],
    generated_at: datetime,
) -> InventoryReport:
    """Aggregate the ledger into totals and one status row per category."""
    rows: list[CategoryStockRow] = []
    total_quantity = 0
    low_stock = 0
    out_of_stock = 0

    for category in categories:
        inv = category.inventory
        status = stock_status(inv.total_quantity, inv.low_stock_threshold)
        total_quantity += inv.total_quantity
        if status is StockStatus.OUT_OF_STOCK:
            out_of_stock += 1
        elif status is StockStatus.LOW_STOCK:
            low_stock += 1
        rows.append(
            CategoryStockRow(
                id=category.id,
                name=category.name,
                quantity=inv.total_quantity,
                threshold=inv.low_stock_threshold,
                status=status,
                product_count=inv.product_count,
            )
        )

    return InventoryReport(
        total_categories=len(rows),
        total_quantity=total_quantity,
        low_stock_categories=low_stock,
        out_of_stock_categories=out_of_stock,
        categories=tuple(rows),
        generated_at=generated_at,
    )
