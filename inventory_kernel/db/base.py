"""
Module: inventory_kernel.db.base
Responsibility: Declarative base for all SQLAlchemy ORM models, plus the
    portable column types they share (UUID as string, UTC datetimes).
Architecture position: Kernel > DB.  Lowest-level import target for model
    files.  MUST NOT import from services or outer layers.

Invariants enforced:
    - Timestamps round-trip as timezone-aware UTC, including on SQLite which
      drops tzinfo on read.
"""

from datetime import datetime, timezone
from typing import ClassVar
from uuid import UUID as PyUUID

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Guarantees:
        - process_bind_param: UUID -> str on INSERT/UPDATE.
        - process_result_value: str -> UUID on SELECT.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime that always loads as UTC.

    Contract:
        Naive values are rejected on bind; aware values are converted to UTC.
        Values read back without tzinfo (SQLite) are tagged as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime not allowed: {value!r}")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """
    Declarative base for all inventory ledger models.

    Guarantees:
        - datetime maps to UTCDateTime -- always timezone-aware UTC.
        - UUID maps to UUIDString.
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: UTCDateTime(),
        PyUUID: UUIDString(),
    }
