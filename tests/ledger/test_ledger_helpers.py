"""Tests for inventory_ledger.helpers -- classifier and report arithmetic."""

from datetime import datetime, timedelta, timezone

import pytest

from inventory_ledger.helpers import (
    build_low_stock_alerts,
    build_report,
    classify_severity,
    stock_status,
)
from inventory_ledger.models import (
    CategoryInventory,
    CategoryWithInventory,
    Severity,
    StockStatus,
)

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _category(cid: str, quantity: int, threshold: int = 10, products: int = 1):
    return CategoryWithInventory(
        id=cid,
        name=cid.upper(),
        inventory=CategoryInventory(
            total_quantity=quantity,
            low_stock_threshold=threshold,
            last_updated=NOW - timedelta(days=1),
            product_count=products,
        ),
    )


class TestClassifySeverity:

    @pytest.mark.parametrize("quantity,expected", [
        (0, Severity.OUT_OF_STOCK),
        (1, Severity.CRITICAL),
        (5, Severity.CRITICAL),
        (6, Severity.LOW),
        (10, Severity.LOW),
    ])
    def test_boundaries_threshold_10(self, quantity, expected):
        assert classify_severity(quantity, 10) is expected

    def test_custom_ratio(self):
        assert classify_severity(3, 10, critical_ratio=0.25) is Severity.LOW
        assert classify_severity(2, 10, critical_ratio=0.25) is Severity.CRITICAL

    @pytest.mark.parametrize("ratio", [0, 1, 1.5, -0.1])
    def test_rejects_bad_ratio(self, ratio):
        with pytest.raises(ValueError):
            classify_severity(1, 10, ratio)


class TestLowStockAlerts:

    def test_excludes_above_threshold(self):
        alerts = build_low_stock_alerts([_category("a", 11), _category("b", 10)])
        assert [a.category_id for a in alerts] == ["b"]

    def test_sorted_by_rank_stable_within_rank(self):
        alerts = build_low_stock_alerts([
            _category("low1", 8),
            _category("crit1", 4),
            _category("out1", 0),
            _category("low2", 7),
            _category("crit2", 2),
            _category("out2", 0),
        ])
        assert [a.category_id for a in alerts] == [
            "out1", "out2", "crit1", "crit2", "low1", "low2",
        ]

    def test_alert_fields(self):
        (alert,) = build_low_stock_alerts([_category("a", 3, threshold=10, products=7)])
        assert alert.category_name == "A"
        assert alert.current_quantity == 3
        assert alert.low_stock_threshold == 10
        assert alert.severity is Severity.CRITICAL
        assert alert.product_count == 7
        assert alert.last_restocked == NOW - timedelta(days=1)

    def test_empty(self):
        assert build_low_stock_alerts([]) == ()


class TestReport:

    def test_stock_status(self):
        assert stock_status(0, 5) is StockStatus.OUT_OF_STOCK
        assert stock_status(5, 5) is StockStatus.LOW_STOCK
        assert stock_status(6, 5) is StockStatus.IN_STOCK

    def test_build_report(self):
        report = build_report(
            [_category("a", 0), _category("b", 4), _category("c", 50, products=3)],
            NOW,
        )
        assert report.total_categories == 3
        assert report.total_quantity == 54
        assert report.low_stock_categories == 1
        assert report.out_of_stock_categories == 1
        assert report.generated_at == NOW
        assert [r.status for r in report.categories] == [
            StockStatus.OUT_OF_STOCK, StockStatus.LOW_STOCK, StockStatus.IN_STOCK,
        ]
        assert report.categories[2].product_count == 3

    def test_empty_report(self):
        report = build_report([], NOW)
        assert report.total_categories == 0
        assert report.total_quantity == 0
        assert report.categories == ()
