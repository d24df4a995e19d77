"""
MigrationService -- legacy per-product inventory to category aggregates.

Contract:
    analyze -> execute (batched) -> validate, with rollback on demand.
    Progress and lifecycle are persisted in the singleton status record so
    any process can observe a run.

Architecture: inventory_migration/services.  Imports from
    inventory_migration.domain, inventory_migration.models, the ledger
    service and ORM, and the kernel.

Invariants enforced:
    - Execution lease: at most one execute/rollback run holds the status
      row at a time; an expired lease may be taken over.
    - Batch isolation: each batch is one ``bulk_update`` transaction; a
      failed batch is recorded and the loop continues.
    - Progress is monotonic within a run and capped at 90 until validation.
    - All timestamps come from the injected Clock.

Failure modes:
    - ``MigrationAlreadyRunningError`` before any work if a live lease is
      held elsewhere, or mid-run if the lease was lost.
    - ``MigrationAnalysisFailedError`` from ``analyze()``.
    - ``MigrationExecutionFailedError`` if ``execute()`` aborts before or
      outside the batch loop (status set to failed, lease released).
      Batch failures do NOT raise; they are returned in the result.
    - ``ValidationFailedError`` from ``validate()``.
    - ``MigrationRollbackFailedError`` if a rollback batch fails.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Sequence
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from inventory_kernel.config import LedgerConfig
from inventory_kernel.db.store import LedgerStore
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import (
    InventoryLedgerError,
    MigrationAlreadyRunningError,
    MigrationAnalysisFailedError,
    MigrationExecutionFailedError,
    MigrationRollbackFailedError,
    StoreUnavailableError,
    ValidationFailedError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_ledger.models import CategoryInventory
from inventory_ledger.orm import CategoryModel
from inventory_ledger.service import InventoryLedgerService
from inventory_migration.domain.analysis import (
    ANALYSIS_PROGRESS,
    VALIDATION_PROGRESS,
    batch_progress,
    build_analysis,
    build_validation,
    chunked,
    discrepancy_warnings,
    resolve_uncategorized_id,
)
from inventory_migration.domain.types import (
    BatchFailure,
    BatchOutcome,
    LegacyProduct,
    MigrationAnalysis,
    MigrationResult,
    MigrationRule,
    MigrationState,
    MigrationStatus,
    ValidationResult,
)
from inventory_migration.models.legacy import LegacyProductModel
from inventory_migration.models.status import CURRENT_STATUS_ID, MigrationStatusModel

logger = get_logger("migration.service")

UNCATEGORIZED_DESCRIPTION = "Products without assigned categories"
UNCATEGORIZED_TAG = "uncategorized"

PHASE_ANALYZING = "Analyzing data"
PHASE_MIGRATING = "Migrating inventory data"
PHASE_VALIDATING = "Validating migration"
PHASE_COMPLETED = "Migration completed"
PHASE_FAILED = "Migration failed"
PHASE_ROLLING_BACK = "Rolling back migration"
PHASE_ROLLED_BACK = "Migration rolled back"
PHASE_ROLLBACK_FAILED = "Rollback failed"


def _locked_status(session: Session) -> MigrationStatusModel | None:
    return session.execute(
        select(MigrationStatusModel)
        .where(MigrationStatusModel.id == CURRENT_STATUS_ID)
        .with_for_update()
    ).scalar_one_or_none()


class MigrationService:
    """Migration engine with persisted status and an execution lease.

    Contract:
        - ``analyze()`` groups legacy products into per-category rules.
        - ``execute()`` runs analysis, batched writes and validation.
        - ``validate()`` compares persisted inventory with a fresh analysis.
        - ``rollback()`` clears every category's inventory record.
        - ``status()`` reads the status record.

    Non-goals:
        - No cancellation of an in-progress run.
        - No background scheduling; callers run it on their own thread.
    """

    def __init__(
        self,
        store: LedgerStore,
        ledger: InventoryLedgerService,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
    ):
        self._store = store
        self._ledger = ledger
        self._clock = clock or SystemClock()
        self._config = config or LedgerConfig()
        self._lease = timedelta(seconds=self._config.migration_lease_seconds)

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def status(self) -> MigrationStatus | None:
        def _work(session: Session) -> MigrationStatus | None:
            row = session.get(MigrationStatusModel, CURRENT_STATUS_ID)
            return row.to_dto() if row is not None else None

        return self._store.fetch(_work, operation="migration_status")

    def _acquire_lease(self, run_id: str, phase: str) -> MigrationStatus:
        def _work(session: Session) -> MigrationStatus:
            now = self._clock.now()
            row = _locked_status(session)
            if row is None:
                row = MigrationStatusModel(id=CURRENT_STATUS_ID)
                session.add(row)
            else:
                current = row.to_dto()
                if current.lease_active(now):
                    raise MigrationAlreadyRunningError(
                        current.lease_owner, current.lease_expires_at,
                    )
                if current.status is MigrationState.IN_PROGRESS:
                    logger.warning("migration_lease_taken_over", extra={
                        "previous_owner": current.lease_owner,
                        "previous_lease_expires_at": current.lease_expires_at,
                    })
            row.status = MigrationState.IN_PROGRESS.value
            row.progress = 0
            row.current_phase = phase
            row.categories_processed = 0
            row.total_categories = 0
            row.started_at = now
            row.completed_at = None
            row.last_error = None
            row.lease_owner = run_id
            row.lease_expires_at = now + self._lease
            # Surface a concurrent first insert as IntegrityError here
            session.flush()
            return row.to_dto()

        return self._store.run(
            _work,
            operation="acquire_migration_lease",
            retry_on=(OperationalError, IntegrityError),
        )

    def _owned_status(self, session: Session, run_id: str) -> MigrationStatusModel:
        row = _locked_status(session)
        if row is None or row.lease_owner != run_id:
            logger.error("migration_lease_lost", extra={
                "lease_owner": row.lease_owner if row is not None else None,
            })
            raise MigrationAlreadyRunningError(
                row.lease_owner if row is not None else None,
                row.lease_expires_at if row is not None else None,
            )
        return row

    def _update_status(
        self,
        run_id: str,
        *,
        progress: int | None = None,
        current_phase: str | None = None,
        categories_processed: int | None = None,
        total_categories: int | None = None,
    ) -> MigrationStatus:
        """Record progress and renew the lease.  Progress never decreases."""

        def _work(session: Session) -> MigrationStatus:
            row = self._owned_status(session, run_id)
            if progress is not None:
                row.progress = max(row.progress, progress)
            if current_phase is not None:
                row.current_phase = current_phase
            if categories_processed is not None:
                row.categories_processed = categories_processed
            if total_categories is not None:
                row.total_categories = total_categories
            row.lease_expires_at = self._clock.now() + self._lease
            return row.to_dto()

        return self._store.run(_work, operation="update_migration_status")

    def _finish(
        self,
        run_id: str,
        state: MigrationState,
        phase: str,
        last_error: str | None = None,
    ) -> MigrationStatus:
        """Write the terminal state and release the lease."""

        def _work(session: Session) -> MigrationStatus:
            row = self._owned_status(session, run_id)
            row.status = state.value
            row.progress = 100
            row.current_phase = phase
            row.completed_at = self._clock.now()
            row.last_error = last_error
            row.lease_owner = None
            row.lease_expires_at = None
            return row.to_dto()

        return self._store.run(_work, operation="finish_migration")

    def _abort(self, run_id: str, error: str, phase: str = PHASE_FAILED) -> None:
        try:
            self._finish(run_id, MigrationState.FAILED, phase, last_error=error)
        except InventoryLedgerError:
            # The caller re-raises the original failure
            logger.error("migration_abort_status_write_failed", exc_info=True)

    # -------------------------------------------------------------------------
    # Analyze
    # -------------------------------------------------------------------------

    def _analyze(
        self,
    ) -> tuple[MigrationAnalysis, list[LegacyProduct], dict[str, str]]:
        cfg = self._config

        def _work(
            session: Session,
        ) -> tuple[MigrationAnalysis, list[LegacyProduct], dict[str, str]]:
            categories = dict(
                session.execute(select(CategoryModel.id, CategoryModel.name)).all()
            )
            products = [
                m.to_dto() for m in session.scalars(
                    select(LegacyProductModel).order_by(
                        LegacyProductModel.sku, LegacyProductModel.id,
                    )
                )
            ]
            uncategorized_id = resolve_uncategorized_id(
                categories,
                cfg.uncategorized_category_id,
                cfg.uncategorized_category_name,
            )
            if uncategorized_id is None and any(not p.category_id for p in products):
                now = self._clock.now()
                session.add(CategoryModel(
                    id=cfg.uncategorized_category_id,
                    name=cfg.uncategorized_category_name,
                    description=UNCATEGORIZED_DESCRIPTION,
                    tag=UNCATEGORIZED_TAG,
                    created_at=now,
                    updated_at=now,
                ))
                session.flush()
                uncategorized_id = cfg.uncategorized_category_id
                categories[uncategorized_id] = cfg.uncategorized_category_name
                logger.info("uncategorized_category_created", extra={
                    "category_id": uncategorized_id,
                })
            analysis = build_analysis(
                products, categories, uncategorized_id,
                cfg.default_low_stock_threshold,
            )
            return analysis, products, categories

        try:
            analysis, products, categories = self._store.run(
                _work,
                operation="analyze_migration",
                retry_on=(OperationalError, IntegrityError),
            )
        except StoreUnavailableError as exc:
            logger.error("migration_analysis_failed", extra={"error": str(exc)})
            raise MigrationAnalysisFailedError(str(exc)) from exc

        if analysis.skipped_products:
            logger.warning("migration_products_skipped", extra={
                "count": len(analysis.skipped_products),
                "skus": list(analysis.skipped_products),
            })
        logger.info("migration_analyzed", extra={
            "total_categories": analysis.total_categories,
            "categories_with_products": analysis.categories_with_products,
            "uncategorized_products": analysis.uncategorized_products,
            "total_products": analysis.total_products,
        })
        return analysis, products, categories

    def analyze(self) -> MigrationAnalysis:
        """
        Group legacy products into per-category migration rules.

        Creates the uncategorized category if products need it and it does
        not exist yet.

        Raises:
            MigrationAnalysisFailedError: Store failure while reading.
        """
        return self._analyze()[0]

    # -------------------------------------------------------------------------
    # Validate
    # -------------------------------------------------------------------------

    def validate(self) -> ValidationResult:
        """
        Compare persisted inventories with a fresh analysis.

        A category without an inventory record counts as quantity 0.

        Raises:
            ValidationFailedError: Analysis or store failure.
        """
        try:
            analysis, products, categories = self._analyze()
        except MigrationAnalysisFailedError as exc:
            raise ValidationFailedError(exc.reason) from exc

        def _work(session: Session) -> dict[str, int]:
            now = self._clock.now()
            rows = session.scalars(
                select(CategoryModel).where(CategoryModel.inventory.is_not(None))
            ).all()
            return {row.id: row.inventory_dto(now).total_quantity for row in rows}

        try:
            actual = self._store.fetch(_work, operation="validate_migration")
        except StoreUnavailableError as exc:
            raise ValidationFailedError(str(exc)) from exc

        result = build_validation(analysis, products, categories, actual)
        log = logger.info if result.is_valid else logger.warning
        log("migration_validated", extra={
            "is_valid": result.is_valid,
            "total_discrepancies": result.total_discrepancies,
            "orphaned_products": len(result.orphaned_products),
            "duplicate_products": len(result.duplicate_products),
        })
        return result

    # -------------------------------------------------------------------------
    # Execute
    # -------------------------------------------------------------------------

    def _migrate_batch(
        self, start_index: int, rules: Sequence[MigrationRule],
    ) -> BatchOutcome:
        category_ids = tuple(r.category_id for r in rules)
        try:
            now = self._clock.now()
            updates = {
                rule.category_id: CategoryInventory(
                    total_quantity=rule.aggregated_quantity,
                    low_stock_threshold=rule.low_stock_threshold,
                    last_updated=now,
                    product_count=rule.product_count,
                )
                for rule in rules
            }
            self._ledger.bulk_update(updates)
        except InventoryLedgerError as exc:
            failure = BatchFailure(start_index, category_ids, str(exc))
            logger.error("migration_batch_failed", extra={
                "start_index": start_index,
                "category_ids": list(category_ids),
                "error": failure.error,
                "error_code": exc.code,
            })
            return BatchOutcome(failed=(failure,))

        logger.info("migration_batch_committed", extra={
            "start_index": start_index,
            "categories": len(category_ids),
        })
        return BatchOutcome(
            committed=category_ids,
            products_processed=sum(r.product_count for r in rules),
        )

    def _run(self, run_id: str) -> MigrationResult:
        started_at = self._clock.now()
        analysis = self.analyze()
        total = len(analysis.rules)
        self._update_status(
            run_id,
            progress=ANALYSIS_PROGRESS,
            current_phase=PHASE_MIGRATING,
            total_categories=total,
        )

        outcome = BatchOutcome()
        for start, batch in chunked(analysis.rules, self._config.migration_batch_size):
            outcome = outcome.merge(self._migrate_batch(start, batch))
            self._update_status(
                run_id,
                progress=batch_progress(outcome.attempted, total),
                current_phase=f"Migrated {len(outcome.committed)}/{total} categories",
                categories_processed=len(outcome.committed),
            )

        self._update_status(
            run_id, progress=VALIDATION_PROGRESS, current_phase=PHASE_VALIDATING,
        )
        warnings: list[str] = []
        if analysis.skipped_products:
            warnings.append(
                f"Skipped {len(analysis.skipped_products)} products "
                f"referencing missing categories"
            )
        validation: ValidationResult | None = None
        try:
            validation = self.validate()
            warnings.extend(discrepancy_warnings(validation))
        except ValidationFailedError as exc:
            warnings.append(str(exc))
            logger.warning("migration_validation_skipped", extra={"error": str(exc)})

        state = MigrationState.FAILED if outcome.failed else MigrationState.COMPLETED
        self._finish(
            run_id,
            state,
            PHASE_COMPLETED,
            last_error=outcome.errors[-1] if outcome.failed else None,
        )
        return MigrationResult(
            outcome=outcome,
            warnings=tuple(warnings),
            started_at=started_at,
            completed_at=self._clock.now(),
            validation=validation,
        )

    def execute(self) -> MigrationResult:
        """
        Run the full migration.

        Postconditions:
            - Status is COMPLETED if every batch committed, else FAILED with
              ``last_error`` set to the last batch error.
            - The lease is released.

        Raises:
            MigrationAlreadyRunningError: Another run holds a live lease.
            MigrationExecutionFailedError: The run aborted outside the
                batch loop.
        """
        run_id = uuid4().hex
        with LogContext.bind(migration_run_id=run_id):
            self._acquire_lease(run_id, PHASE_ANALYZING)
            logger.info("migration_started", extra={
                "batch_size": self._config.migration_batch_size,
            })
            try:
                result = self._run(run_id)
            except MigrationAlreadyRunningError:
                raise
            except InventoryLedgerError as exc:
                self._abort(run_id, str(exc))
                logger.error("migration_aborted", exc_info=True)
                raise MigrationExecutionFailedError([str(exc)]) from exc
            except Exception as exc:
                self._abort(run_id, str(exc))
                raise

            logger.info("migration_finished", extra={
                "success": result.success,
                "categories_migrated": result.categories_migrated,
                "total_products_processed": result.total_products_processed,
                "errors": len(result.errors),
                "warnings": len(result.warnings),
                "duration_ms": result.duration_ms,
            })
            return result

    # -------------------------------------------------------------------------
    # Rollback
    # -------------------------------------------------------------------------

    def _clear_batch(self, category_ids: Sequence[str]) -> int:
        def _work(session: Session) -> int:
            now = self._clock.now()
            rows = session.scalars(
                select(CategoryModel)
                .where(CategoryModel.id.in_(category_ids))
                .order_by(CategoryModel.id)
                .with_for_update()
            ).all()
            for row in rows:
                row.clear_inventory(now)
            return len(rows)

        return self._store.run(_work, operation="rollback_batch")

    def _rollback(self, run_id: str) -> int:
        def _ids(session: Session) -> list[str]:
            return list(session.scalars(
                select(CategoryModel.id)
                .where(CategoryModel.inventory.is_not(None))
                .order_by(CategoryModel.id)
            ))

        category_ids = self._store.fetch(_ids, operation="rollback_scan")
        total = len(category_ids)
        self._update_status(run_id, total_categories=total)

        cleared = 0
        for start, batch in chunked(category_ids, self._config.migration_batch_size):
            try:
                cleared += self._clear_batch(batch)
            except InventoryLedgerError as exc:
                logger.error("migration_rollback_batch_failed", extra={
                    "start_index": start,
                    "categories_cleared": cleared,
                    "error": str(exc),
                })
                self._abort(run_id, str(exc), phase=PHASE_ROLLBACK_FAILED)
                raise MigrationRollbackFailedError(str(exc), cleared) from exc
            self._update_status(
                run_id,
                progress=min(99, cleared * 100 // total),
                categories_processed=cleared,
            )

        self._finish(run_id, MigrationState.ROLLED_BACK, PHASE_ROLLED_BACK)
        return cleared

    def rollback(self) -> int:
        """
        Clear the inventory record of every category.

        Idempotent: a second call finds nothing to clear and ends in the
        same ROLLED_BACK state.

        Returns:
            Number of categories whose inventory was cleared.

        Raises:
            MigrationAlreadyRunningError: Another run holds a live lease.
            MigrationRollbackFailedError: A batch or status write failed.
        """
        run_id = uuid4().hex
        with LogContext.bind(migration_run_id=run_id):
            self._acquire_lease(run_id, PHASE_ROLLING_BACK)
            logger.info("migration_rollback_started")
            try:
                cleared = self._rollback(run_id)
            except (MigrationAlreadyRunningError, MigrationRollbackFailedError):
                raise
            except InventoryLedgerError as exc:
                self._abort(run_id, str(exc), phase=PHASE_ROLLBACK_FAILED)
                raise MigrationRollbackFailedError(str(exc), 0) from exc
            except Exception as exc:
                self._abort(run_id, str(exc), phase=PHASE_ROLLBACK_FAILED)
                raise

            logger.info("migration_rolled_back", extra={"categories_cleared": cleared})
            return cleared
