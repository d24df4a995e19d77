"""Database layer - engine, base classes, column types and the store handle."""

from inventory_kernel.db.base import Base, UTCDateTime, UUIDString
from inventory_kernel.db.engine import (
    build_engine,
    build_session_factory,
    create_tables,
    drop_tables,
    session_scope,
)
from inventory_kernel.db.store import LedgerStore

__all__ = [
    "Base",
    "LedgerStore",
    "UTCDateTime",
    "UUIDString",
    "build_engine",
    "build_session_factory",
    "create_tables",
    "drop_tables",
    "session_scope",
]
