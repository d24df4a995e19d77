"""
LedgerStore -- transactional store handle injected into every service.

Contract:
    Wraps a SQLAlchemy ``sessionmaker`` and an explicit ``RetryPolicy``.
    Services never create engines or sessions themselves; they ask the store
    for a transaction, a read-only session, or to ``run`` a unit of work.

Guarantees:
    - ``transaction()`` commits on normal exit and rolls back on exception.
    - ``read()`` never commits.
    - ``run()`` retries only the exception types named in ``retry_on``
      (default: ``OperationalError`` -- deadlock, serialization failure,
      SQLite "database is locked"), up to ``policy.max_attempts``.
    - Ledger business errors raised inside ``work`` propagate unchanged
      after rollback and are never retried.
    - Any other ``SQLAlchemyError`` surfaces as ``StoreUnavailableError``
      (or the caller-supplied subtype), chained to the original.
"""

from contextlib import contextmanager
from typing import Callable, Generator, TypeVar

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.db.engine import session_scope
from inventory_kernel.domain.retry import RetryPolicy
from inventory_kernel.exceptions import InventoryLedgerError, StoreUnavailableError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.store")

T = TypeVar("T")


class LedgerStore:
    """Session factory plus retry policy."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        retry_policy: RetryPolicy | None = None,
    ):
        self._session_factory = session_factory
        self._retry = retry_policy or RetryPolicy()

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        with session_scope(self._session_factory) as session:
            yield session

    @contextmanager
    def read(self) -> Generator[Session, None, None]:
        session = self._session_factory()
        try:
            yield session
        finally:
            session.rollback()
            session.close()

    def run(
        self,
        work: Callable[[Session], T],
        *,
        operation: str,
        retry_on: tuple[type[Exception], ...] = (OperationalError,),
        error_cls: type[StoreUnavailableError] = StoreUnavailableError,
    ) -> T:
        """
        Execute ``work(session)`` in its own transaction, retrying transient
        store conflicts.

        Raises:
            InventoryLedgerError: Whatever ``work`` raised, unchanged.
            StoreUnavailableError: Store failure, or retries exhausted.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                with self.transaction() as session:
                    return work(session)
            except InventoryLedgerError:
                raise
            except retry_on as exc:
                if not self._retry.should_retry(attempt):
                    logger.error(
                        "store_retries_exhausted",
                        extra={"operation": operation, "attempts": attempt},
                    )
                    raise error_cls(operation, str(exc), attempt) from exc
                delay = self._retry.delay_for(attempt)
                logger.warning(
                    "store_conflict_retry",
                    extra={
                        "operation": operation,
                        "attempt": attempt,
                        "max_attempts": self._retry.max_attempts,
                        "delay_seconds": delay,
                        "error": type(exc).__name__,
                    },
                )
                self._retry.wait(attempt)
            except SQLAlchemyError as exc:
                raise error_cls(operation, str(exc), attempt) from exc

    def fetch(
        self,
        work: Callable[[Session], T],
        *,
        operation: str,
        error_cls: type[StoreUnavailableError] = StoreUnavailableError,
    ) -> T:
        """Run a read-only ``work(session)``; store failures become ``error_cls``."""
        try:
            with self.read() as session:
                return work(session)
        except SQLAlchemyError as exc:
            logger.error(
                "store_read_failed",
                extra={"operation": operation, "error": type(exc).__name__},
            )
            raise error_cls(operation, str(exc)) from exc
