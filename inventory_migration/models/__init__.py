"""
inventory_migration.models -- ORM models for migration persistence.

Architecture: inventory_migration/models. Imports from inventory_kernel.db.base
and the migration domain types.
"""

from inventory_migration.models.legacy import LegacyProductModel
from inventory_migration.models.status import CURRENT_STATUS_ID, MigrationStatusModel

__all__ = [
    "CURRENT_STATUS_ID",
    "LegacyProductModel",
    "MigrationStatusModel",
]
