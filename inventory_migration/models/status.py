"""
ORM model for the singleton migration status record.

Contract:
    One row, keyed ``"current"``, overwritten by every migration action.
    ``lease_owner`` / ``lease_expires_at`` carry the execution lease that
    keeps two runs from executing or rolling back at once.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base
from inventory_migration.domain.types import MigrationState, MigrationStatus

CURRENT_STATUS_ID = "current"


class MigrationStatusModel(Base):

    __tablename__ = "migration_status"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    current_phase: Mapped[str] = mapped_column(String(200), nullable=False)
    categories_processed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_categories: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    lease_owner: Mapped[str | None] = mapped_column(String(100), nullable=True)
    lease_expires_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def to_dto(self) -> MigrationStatus:
        return MigrationStatus(
            status=MigrationState(self.status),
            progress=self.progress,
            current_phase=self.current_phase,
            categories_processed=self.categories_processed,
            total_categories=self.total_categories,
            started_at=self.started_at,
            completed_at=self.completed_at,
            last_error=self.last_error,
            lease_owner=self.lease_owner,
            lease_expires_at=self.lease_expires_at,
        )
