"""
Module: inventory_kernel.db.engine
Responsibility: SQLAlchemy engine construction, session factories and the
    transactional scope used by LedgerStore.  Single point of database
    connection configuration for the ledger, the migration engine and the CLI.
Architecture position: Kernel > DB.  May import from db/base.py.  Imports ORM
    model modules only inside create_tables/drop_tables so that
    Base.metadata is complete.

Invariants enforced:
    - PostgreSQL runs at READ COMMITTED with explicit row locks
      (SELECT ... FOR UPDATE) for read-modify-write.
    - SQLite ignores FOR UPDATE, so every SQLite transaction starts with
      BEGIN IMMEDIATE and holds the database write lock from its first
      read.  A busy timeout makes other writers wait for it.
    - No module-level engine: callers build one and hand the session
      factory to a LedgerStore.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.logging_config import get_logger

logger = get_logger("db.engine")


def _serialize_sqlite_transactions(engine: Engine) -> None:
    # pysqlite defers BEGIN until the first write; take over transaction
    # control so the locking SELECT runs inside the write transaction.
    @event.listens_for(engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    sqlite_busy_timeout: float = 30.0,
) -> Engine:
    """Create an engine configured for the URL's dialect."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"timeout": sqlite_busy_timeout, "check_same_thread": False},
        )
        _serialize_sqlite_transactions(engine)
    else:
        engine = create_engine(
            url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            isolation_level="READ COMMITTED",
        )

    logger.info(
        "engine_initialized",
        extra={
            "dialect": url.get_backend_name(),
            "database": url.database,
            "echo": echo,
        },
    )
    return engine


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Postconditions: On normal exit, session is committed and closed.
        On exception, session is rolled back and closed, and the exception
        is re-raised to the caller.

    Usage:
        with session_scope(build_session_factory(engine)) as session:
            session.add(entity)
    """
    session = factory()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def _import_all_orm_models() -> None:
    import inventory_ledger.orm  # noqa: F401
    import inventory_migration.models  # noqa: F401


def create_tables(engine: Engine) -> None:
    """Create every ledger and migration table that does not exist yet."""
    from inventory_kernel.db.base import Base

    _import_all_orm_models()
    Base.metadata.create_all(engine)
    logger.info(
        "tables_created",
        extra={"tables": sorted(Base.metadata.tables)},
    )


def drop_tables(engine: Engine) -> None:
    """Drop all tables. Use with caution - primarily for testing."""
    from inventory_kernel.db.base import Base

    _import_all_orm_models()
    Base.metadata.drop_all(engine)
