"""
Category Ledger Service (``inventory_ledger.service``).

Responsibility
--------------
The only writer of category quantity and threshold outside the migration
engine: atomic adjust, threshold update, cross-category transfer and bulk
inventory replacement.  Each mutation that carries an actor appends exactly
one operation-log entry in the same transaction.

Invariants
----------
- Each public method owns its transaction boundary (``LedgerStore.run``):
  commit on success, rollback on any failure.
- Category rows are locked (``SELECT ... FOR UPDATE``) before being read
  for modification; multi-row locks are taken in ascending id order.
- ``total_quantity`` never goes below 0: decrements are truncated at 0.
- ``low_stock_threshold`` never goes below 1.
- Transfer conserves the sum of both quantities.

Failure Modes
-------------
- ``CategoryNotFoundError`` -- unknown category id.
- ``InsufficientInventoryError`` -- transfer source holds less than asked.
- ``InvalidQuantityError`` -- non-integer delta, non-positive transfer,
  or a transfer onto the same category.
- ``StoreUnavailableError`` -- store failure or conflict retries exhausted.

Usage::

    ledger = InventoryLedgerService(store, clock)
    ledger.adjust("shoes", -3, reason="Sold", performed_by="user-1")
    ledger.transfer("shoes", "outlet", 10, performed_by="user-1")
"""

from __future__ import annotations

from typing import Mapping, Sequence
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.db.store import LedgerStore
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import (
    CategoryNotFoundError,
    InsufficientInventoryError,
    InvalidQuantityError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_ledger.models import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    CategoryInventory,
    InventoryOperation,
    OperationType,
)
from inventory_ledger.orm import CategoryModel, InventoryOperationModel

logger = get_logger("ledger.service")


def _require_int(value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantityError(value, "must be an integer")


def _lock_categories(
    session: Session, category_ids: Sequence[str],
) -> dict[str, CategoryModel]:
    """Lock the given category rows in id order; raise on the first missing id."""
    wanted = sorted(set(category_ids))
    rows = session.scalars(
        select(CategoryModel)
        .where(CategoryModel.id.in_(wanted))
        .order_by(CategoryModel.id)
        .with_for_update()
    ).all()
    found = {row.id: row for row in rows}
    for category_id in wanted:
        if category_id not in found:
            raise CategoryNotFoundError(category_id)
    return found


class InventoryLedgerService:
    """
    Mutation engine for category inventory.

    Transaction boundary: every public method runs in its own store
    transaction and commits or rolls back before returning.
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        default_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._default_threshold = default_threshold

    # -------------------------------------------------------------------------
    # Adjust
    # -------------------------------------------------------------------------

    def adjust(
        self,
        category_id: str,
        delta: int,
        reason: str | None = None,
        performed_by: str | None = None,
    ) -> CategoryInventory:
        """
        Add ``delta`` (may be negative) to a category's quantity.

        Preconditions:
            - ``delta`` is an int.
        Postconditions:
            - new quantity == max(0, previous + delta).
            - ``last_updated`` is the clock's current time.
            - If ``performed_by`` is given, one operation is logged with
              type ADD (delta > 0), REMOVE (delta < 0) or ADJUSTMENT
              (delta == 0) and magnitude |delta|.

        Raises:
            CategoryNotFoundError: Category does not exist.
            InvalidQuantityError: ``delta`` is not an int.
        """
        _require_int(delta)

        def _work(session: Session) -> CategoryInventory:
            model = _lock_categories(session, [category_id])[category_id]
            now = self._clock.now()
            current = model.inventory_dto(now, self._default_threshold)
            previous = current.total_quantity
            new_quantity = max(0, previous + delta)
            updated = current.with_quantity(new_quantity, now)
            model.store_inventory(updated, now)

            if performed_by is not None:
                if delta > 0:
                    op_type = OperationType.ADD
                elif delta < 0:
                    op_type = OperationType.REMOVE
                else:
                    op_type = OperationType.ADJUSTMENT
                session.add(InventoryOperationModel.from_dto(
                    InventoryOperation(
                        operation_id=uuid4(),
                        category_id=category_id,
                        operation_type=op_type,
                        quantity=abs(delta),
                        previous_quantity=previous,
                        new_quantity=new_quantity,
                        performed_by=performed_by,
                        timestamp=now,
                        reason=reason,
                    )
                ))

            if previous + delta < 0:
                logger.warning("inventory_decrement_truncated", extra={
                    "previous_quantity": previous,
                    "delta": delta,
                })
            logger.info("inventory_adjusted", extra={
                "previous_quantity": previous,
                "new_quantity": new_quantity,
                "delta": delta,
                "logged": performed_by is not None,
            })
            return updated

        with LogContext.bind(category_id=category_id, actor_id=performed_by):
            return self._store.run(_work, operation="adjust")

    # -------------------------------------------------------------------------
    # Threshold
    # -------------------------------------------------------------------------

    def set_threshold(self, category_id: str, threshold: int) -> CategoryInventory:
        """
        Set the low-stock threshold, floored at 1.

        Raises:
            CategoryNotFoundError: Category does not exist.
            InvalidQuantityError: ``threshold`` is not an int.
        """
        _require_int(threshold)
        stored_threshold = max(1, threshold)

        def _work(session: Session) -> CategoryInventory:
            model = _lock_categories(session, [category_id])[category_id]
            now = self._clock.now()
            current = model.inventory_dto(now, self._default_threshold)
            updated = current.with_threshold(stored_threshold, now)
            model.store_inventory(updated, now)
            logger.info("inventory_threshold_set", extra={
                "requested_threshold": threshold,
                "low_stock_threshold": stored_threshold,
            })
            return updated

        with LogContext.bind(category_id=category_id):
            return self._store.run(_work, operation="set_threshold")

    # -------------------------------------------------------------------------
    # Transfer
    # -------------------------------------------------------------------------

    def transfer(
        self,
        from_category_id: str,
        to_category_id: str,
        quantity: int,
        performed_by: str,
        reason: str | None = None,
        product_skus: Sequence[str] | None = None,
    ) -> InventoryOperation:
        """
        Move ``quantity`` units from one category to another atomically.

        Postconditions:
            - source decreases and destination increases by ``quantity``.
            - One TRANSFER operation is logged against the source, with
              metadata ``transferTo``, ``transferToCategoryName`` and
              ``productSkus``.
            - On any failure neither category changes and nothing is logged.

        Raises:
            InvalidQuantityError: quantity <= 0, not an int, or same ids.
            CategoryNotFoundError: Either category does not exist.
            InsufficientInventoryError: Source quantity < ``quantity``.
        """
        _require_int(quantity)
        if quantity <= 0:
            raise InvalidQuantityError(quantity, "transfer quantity must be positive")
        if from_category_id == to_category_id:
            raise InvalidQuantityError(
                quantity, "source and destination category must differ",
            )

        def _work(session: Session) -> InventoryOperation:
            rows = _lock_categories(session, [from_category_id, to_category_id])
            source, dest = rows[from_category_id], rows[to_category_id]
            now = self._clock.now()
            source_inv = source.inventory_dto(now, self._default_threshold)
            dest_inv = dest.inventory_dto(now, self._default_threshold)

            if source_inv.total_quantity < quantity:
                raise InsufficientInventoryError(
                    from_category_id, source_inv.total_quantity, quantity,
                )

            new_source = source_inv.total_quantity - quantity
            source.store_inventory(source_inv.with_quantity(new_source, now), now)
            dest.store_inventory(
                dest_inv.with_quantity(dest_inv.total_quantity + quantity, now), now,
            )

            operation = InventoryOperation(
                operation_id=uuid4(),
                category_id=from_category_id,
                operation_type=OperationType.TRANSFER,
                quantity=quantity,
                previous_quantity=source_inv.total_quantity,
                new_quantity=new_source,
                performed_by=performed_by,
                timestamp=now,
                reason=reason or f"Transfer to {dest.name}",
                metadata={
                    "transferTo": to_category_id,
                    "transferToCategoryName": dest.name,
                    "productSkus": list(product_skus or []),
                },
            )
            session.add(InventoryOperationModel.from_dto(operation))
            logger.info("inventory_transferred", extra={
                "from_category_id": from_category_id,
                "to_category_id": to_category_id,
                "quantity": quantity,
                "source_new_quantity": new_source,
            })
            return operation

        with LogContext.bind(actor_id=performed_by):
            try:
                return self._store.run(_work, operation="transfer")
            except InsufficientInventoryError as exc:
                logger.warning("inventory_transfer_rejected", extra={
                    "from_category_id": from_category_id,
                    "available": exc.available,
                    "requested": exc.requested,
                })
                raise

    # -------------------------------------------------------------------------
    # Bulk update
    # -------------------------------------------------------------------------

    def bulk_update(self, updates: Mapping[str, CategoryInventory]) -> int:
        """
        Replace the inventory record of every listed category, all or nothing.

        Does not write operation-log entries.

        Raises:
            CategoryNotFoundError: Any listed category does not exist.
        """
        if not updates:
            return 0

        def _work(session: Session) -> int:
            rows = _lock_categories(session, list(updates))
            now = self._clock.now()
            for category_id, inventory in updates.items():
                rows[category_id].store_inventory(inventory, now)
            return len(rows)

        count = self._store.run(_work, operation="bulk_update")
        logger.info("inventory_bulk_updated", extra={"categories": count})
        return count
