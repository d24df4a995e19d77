"""
CategoryInventoryRepository -- read access to category inventory.

Contract:
    Read-only.  Every category comes back with an inventory: the stored
    sub-document when present, otherwise the zero default
    (``CategoryInventory.default``), which is NOT written back.

Failure modes:
    - Store failures surface as ``RepositoryError``.
    - An unknown id returns ``None``.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.db.store import LedgerStore
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import RepositoryError
from inventory_kernel.logging_config import get_logger
from inventory_ledger.models import DEFAULT_LOW_STOCK_THRESHOLD, CategoryWithInventory
from inventory_ledger.orm import CategoryModel

logger = get_logger("ledger.repository")


class CategoryInventoryRepository:
    """Typed read access to categories and their inventory."""

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        default_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._default_threshold = default_threshold

    def get(self, category_id: str) -> CategoryWithInventory | None:
        def _work(session: Session) -> CategoryWithInventory | None:
            model = session.get(CategoryModel, category_id)
            if model is None:
                return None
            return model.to_dto(self._clock.now(), self._default_threshold)

        result = self._store.fetch(
            _work, operation="get_category", error_cls=RepositoryError,
        )
        if result is None:
            logger.debug("category_not_found", extra={"category_id": category_id})
        return result

    def get_all(self) -> tuple[CategoryWithInventory, ...]:
        """Every category ordered by id."""

        def _work(session: Session) -> tuple[CategoryWithInventory, ...]:
            now = self._clock.now()
            models = session.scalars(
                select(CategoryModel).order_by(CategoryModel.id)
            ).all()
            return tuple(m.to_dto(now, self._default_threshold) for m in models)

        categories = self._store.fetch(
            _work, operation="get_all_categories", error_cls=RepositoryError,
        )
        logger.debug("categories_loaded", extra={"count": len(categories)})
        return categories
