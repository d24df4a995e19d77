"""
InventoryReporter -- low-stock alerts and summary report over the ledger.

Thin wrapper: reads every category through the repository and hands the
snapshot to the pure functions in ``inventory_ledger.helpers``.
"""

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.logging_config import get_logger
from inventory_ledger.helpers import (
    DEFAULT_CRITICAL_RATIO,
    build_low_stock_alerts,
    build_report,
)
from inventory_ledger.models import InventoryReport, LowStockAlert
from inventory_ledger.repository import CategoryInventoryRepository

logger = get_logger("ledger.reporting")


class InventoryReporter:
    """Low-stock alerts and the stock report, built from one repository snapshot.

    A category is critical when its quantity is at or below
    ``critical_ratio`` times its threshold.
    """

    def __init__(
        self,
        repository: CategoryInventoryRepository,
        clock: Clock | None = None,
        critical_ratio: float = DEFAULT_CRITICAL_RATIO,
    ):
        self._repository = repository
        self._clock = clock or SystemClock()
        self._critical_ratio = critical_ratio

    def low_stock_alerts(self) -> tuple[LowStockAlert, ...]:
        """Alerts for every category at or below threshold, most urgent first."""
        alerts = build_low_stock_alerts(
            self._repository.get_all(), self._critical_ratio,
        )
        logger.info("low_stock_alerts_built", extra={"alerts": len(alerts)})
        return alerts

    def report(self) -> InventoryReport:
        report = build_report(self._repository.get_all(), self._clock.now())
        logger.info("inventory_report_generated", extra={
            "total_categories": report.total_categories,
            "total_quantity": report.total_quantity,
            "low_stock_categories": report.low_stock_categories,
            "out_of_stock_categories": report.out_of_stock_categories,
        })
        return report
