"""
Pytest fixtures for the inventory ledger test suite.

Provides:
- A file-backed SQLite engine per test (several sessions see one database)
- LedgerStore, DeterministicClock, LedgerConfig and a wired orchestrator
- Seeding helpers for categories and legacy products
- Structured log capture

Environment Variables:
- INVENTORY_LEDGER_TEST_DATABASE_URL: PostgreSQL URL for tests marked
  ``postgres``.  Those tests are skipped when it is not set.
"""

import json
import logging
import os
from io import StringIO
from typing import Callable

import pytest
from sqlalchemy.engine import Engine

from inventory_kernel.config import LedgerConfig
from inventory_kernel.db.engine import (
    build_engine,
    build_session_factory,
    create_tables,
    drop_tables,
)
from inventory_kernel.db.store import LedgerStore
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.retry import RetryPolicy, no_backoff
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from inventory_ledger.models import CategoryInventory
from inventory_ledger.orm import CategoryModel
from inventory_migration.domain.types import LegacyProduct
from inventory_migration.models.legacy import LegacyProductModel
from inventory_migration.orchestrator import LedgerOrchestrator

POSTGRES_URL_ENV = "INVENTORY_LEDGER_TEST_DATABASE_URL"


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )


def pytest_collection_modifyitems(config, items):
    if os.environ.get(POSTGRES_URL_ENV):
        return
    skip_pg = pytest.mark.skip(reason=f"{POSTGRES_URL_ENV} not set")
    for item in items:
        if "postgres" in item.keywords:
            item.add_marker(skip_pg)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture inventory_ledger logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.adjust("c1", 5)
            logs = captured_logs()
            assert any(r["message"] == "inventory_adjusted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory_ledger")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine(tmp_path) -> Engine:
    engine = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def postgres_engine() -> Engine:
    url = os.environ.get(POSTGRES_URL_ENV)
    if not url:
        pytest.skip(f"{POSTGRES_URL_ENV} not set")
    engine = build_engine(url)
    drop_tables(engine)
    create_tables(engine)
    yield engine
    drop_tables(engine)
    engine.dispose()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def config() -> LedgerConfig:
    return LedgerConfig(migration_batch_size=2)


@pytest.fixture
def store(engine) -> LedgerStore:
    return LedgerStore(
        build_session_factory(engine),
        RetryPolicy(max_attempts=3, backoff=no_backoff),
    )


@pytest.fixture
def orchestrator(store, clock, config) -> LedgerOrchestrator:
    return LedgerOrchestrator(store, clock=clock, config=config)


@pytest.fixture
def ledger(orchestrator):
    return orchestrator.ledger


@pytest.fixture
def add_category(store, clock) -> Callable[..., None]:
    """Insert a category, with an inventory record when ``quantity`` is given."""

    def _add(
        category_id: str,
        name: str | None = None,
        quantity: int | None = None,
        threshold: int = 5,
        product_count: int = 0,
    ) -> None:
        now = clock.now()
        model = CategoryModel(
            id=category_id,
            name=name or category_id.title(),
            created_at=now,
            updated_at=now,
        )
        if quantity is not None:
            model.store_inventory(
                CategoryInventory(
                    total_quantity=quantity,
                    low_stock_threshold=threshold,
                    last_updated=now,
                    product_count=product_count,
                ),
                now,
            )
        with store.transaction() as session:
            session.add(model)

    return _add


@pytest.fixture
def add_legacy_product(store) -> Callable[..., None]:
    def _add(
        sku: str,
        category_id: str | None = None,
        quantity: int | None = None,
        threshold: int | None = None,
        name: str | None = None,
    ) -> None:
        with store.transaction() as session:
            session.add(LegacyProductModel.from_dto(LegacyProduct(
                sku=sku,
                name=name or f"Product {sku}",
                category_id=category_id,
                quantity=quantity,
                low_stock_threshold=threshold,
            )))

    return _add
