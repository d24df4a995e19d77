"""
inventory_migration.domain -- Pure types and functions for the migration.

ZERO I/O.  All types are frozen dataclasses.
"""

from inventory_migration.domain.types import (
    BatchFailure,
    BatchOutcome,
    CategoryDiscrepancy,
    LegacyProduct,
    MigrationAnalysis,
    MigrationResult,
    MigrationRule,
    MigrationState,
    MigrationStatus,
    RuleProduct,
    ValidationResult,
)

__all__ = [
    "BatchFailure",
    "BatchOutcome",
    "CategoryDiscrepancy",
    "LegacyProduct",
    "MigrationAnalysis",
    "MigrationResult",
    "MigrationRule",
    "MigrationState",
    "MigrationStatus",
    "RuleProduct",
    "ValidationResult",
]
