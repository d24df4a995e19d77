"""
LedgerOrchestrator -- DI container for the ledger and the migration engine.

Contract:
    Wires one LedgerStore, Clock and LedgerConfig into the repository,
    mutation engine, reporter, operation-log selector and migration service,
    and exposes the whole API surface from one object.

Architecture: inventory_migration (top-level).  Canonical entry point for
    callers and the CLI.  Nothing in inventory_kernel or inventory_ledger
    imports from here.
"""

from __future__ import annotations

from datetime import datetime
from typing import Mapping, Sequence

from inventory_kernel.config import LedgerConfig
from inventory_kernel.db.engine import build_engine, build_session_factory, create_tables
from inventory_kernel.db.store import LedgerStore
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.logging_config import get_logger
from inventory_ledger.history import OperationLogSelector
from inventory_ledger.models import (
    CategoryInventory,
    CategoryWithInventory,
    InventoryOperation,
    InventoryReport,
    LowStockAlert,
    OperationType,
)
from inventory_ledger.reporting import InventoryReporter
from inventory_ledger.repository import CategoryInventoryRepository
from inventory_ledger.service import InventoryLedgerService
from inventory_migration.domain.types import (
    MigrationAnalysis,
    MigrationResult,
    MigrationStatus,
    ValidationResult,
)
from inventory_migration.services.migration_service import MigrationService

logger = get_logger("orchestrator")


class LedgerOrchestrator:
    """DI container exposing the category ledger API.

    Non-goals:
        - Does NOT own the engine lifecycle when built from a store.
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._config = config or LedgerConfig()
        threshold = self._config.default_low_stock_threshold

        self.repository = CategoryInventoryRepository(store, self._clock, threshold)
        self.ledger = InventoryLedgerService(store, self._clock, threshold)
        self.reporter = InventoryReporter(
            self.repository, self._clock, self._config.critical_ratio,
        )
        self.operations = OperationLogSelector(
            store, self._config.history_default_limit,
        )
        self.migration = MigrationService(
            store, self.ledger, self._clock, self._config,
        )

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def from_url(
        cls,
        database_url: str,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
        create_schema: bool = False,
    ) -> LedgerOrchestrator:
        """Build engine, session factory and store for ``database_url``."""
        config = config or LedgerConfig()
        engine = build_engine(database_url)
        if create_schema:
            create_tables(engine)
        store = LedgerStore(build_session_factory(engine), config.retry_policy())
        logger.info("orchestrator_created", extra={"dialect": engine.dialect.name})
        return cls(store, clock=clock, config=config)

    @property
    def store(self) -> LedgerStore:
        return self._store

    @property
    def config(self) -> LedgerConfig:
        return self._config

    # -------------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------------

    def get(self, category_id: str) -> CategoryWithInventory | None:
        return self.repository.get(category_id)

    def get_all(self) -> tuple[CategoryWithInventory, ...]:
        return self.repository.get_all()

    def adjust(
        self,
        category_id: str,
        delta: int,
        reason: str | None = None,
        performed_by: str | None = None,
    ) -> CategoryInventory:
        return self.ledger.adjust(category_id, delta, reason, performed_by)

    def set_threshold(self, category_id: str, threshold: int) -> CategoryInventory:
        return self.ledger.set_threshold(category_id, threshold)

    def transfer(
        self,
        from_category_id: str,
        to_category_id: str,
        quantity: int,
        performed_by: str,
        reason: str | None = None,
        product_skus: Sequence[str] | None = None,
    ) -> InventoryOperation:
        return self.ledger.transfer(
            from_category_id, to_category_id, quantity, performed_by,
            reason=reason, product_skus=product_skus,
        )

    def bulk_update(self, updates: Mapping[str, CategoryInventory]) -> int:
        return self.ledger.bulk_update(updates)

    def low_stock_alerts(self) -> tuple[LowStockAlert, ...]:
        return self.reporter.low_stock_alerts()

    def report(self) -> InventoryReport:
        return self.reporter.report()

    def history(
        self,
        category_id: str,
        limit: int | None = None,
        *,
        offset: int = 0,
        operation_type: OperationType | None = None,
        performed_by: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> tuple[InventoryOperation, ...]:
        return self.operations.history(
            category_id, limit,
            offset=offset,
            operation_type=operation_type,
            performed_by=performed_by,
            since=since,
            until=until,
        )

    # -------------------------------------------------------------------------
    # Migration
    # -------------------------------------------------------------------------

    def analyze(self) -> MigrationAnalysis:
        return self.migration.analyze()

    def execute(self) -> MigrationResult:
        return self.migration.execute()

    def validate(self) -> ValidationResult:
        return self.migration.validate()

    def rollback(self) -> int:
        return self.migration.rollback()

    def status(self) -> MigrationStatus | None:
        return self.migration.status()
