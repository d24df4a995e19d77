"""
OperationLogSelector -- paginated, filterable read of the operation log.

Contract:
    Read-only.  Results are newest first: timestamp descending, then
    insertion order descending for entries sharing a timestamp.

Failure modes:
    - ``ValueError`` for ``limit < 1`` or ``offset < 0``.
    - Store failures surface as ``RepositoryError``.
"""

from datetime import datetime

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from inventory_kernel.db.store import LedgerStore
from inventory_kernel.exceptions import RepositoryError
from inventory_ledger.models import InventoryOperation, OperationType
from inventory_ledger.orm import InventoryOperationModel

DEFAULT_HISTORY_LIMIT = 50


class OperationLogSelector:
    """Read-only view of the append-only operation log, one category at a time.

    ``default_limit`` applies when ``history`` is called without a limit.
    """

    def __init__(self, store: LedgerStore, default_limit: int = DEFAULT_HISTORY_LIMIT):
        self._store = store
        self._default_limit = default_limit

    @staticmethod
    def _filtered(
        stmt: Select,
        category_id: str,
        operation_type: OperationType | None,
        performed_by: str | None,
        since: datetime | None,
        until: datetime | None,
    ) -> Select:
        stmt = stmt.where(InventoryOperationModel.category_id == category_id)
        if operation_type is not None:
            stmt = stmt.where(
                InventoryOperationModel.operation_type == OperationType(operation_type).value
            )
        if performed_by is not None:
            stmt = stmt.where(InventoryOperationModel.performed_by == performed_by)
        if since is not None:
            stmt = stmt.where(InventoryOperationModel.timestamp >= since)
        if until is not None:
            stmt = stmt.where(InventoryOperationModel.timestamp < until)
        return stmt

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
        """
        Operation-log entries for one category, newest first.

        ``since`` is inclusive and ``until`` exclusive.
        """
        limit = self._default_limit if limit is None else limit
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        if offset < 0:
            raise ValueError(f"offset cannot be negative, got {offset}")

        stmt = self._filtered(
            select(InventoryOperationModel),
            category_id, operation_type, performed_by, since, until,
        ).order_by(
            InventoryOperationModel.timestamp.desc(),
            InventoryOperationModel.seq.desc(),
        ).limit(limit).offset(offset)

        def _work(session: Session) -> tuple[InventoryOperation, ...]:
            return tuple(m.to_dto() for m in session.scalars(stmt).all())

        return self._store.fetch(
            _work, operation="history", error_cls=RepositoryError,
        )

    def count(
        self,
        category_id: str,
        operation_type: OperationType | None = None,
    ) -> int:
        stmt = self._filtered(
            select(func.count()).select_from(InventoryOperationModel),
            category_id, operation_type, None, None, None,
        )

        def _work(session: Session) -> int:
            return session.scalar(stmt) or 0

        return self._store.fetch(
            _work, operation="history_count", error_cls=RepositoryError,
        )
