"""
Typed Exception Hierarchy for the Inventory Ledger.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the ledger (dashboard handlers, the migration CLI, background
jobs) need to tell "the category does not exist" apart from "there is not
enough stock" apart from "the database is down" without parsing messages.

Every error therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (category ids, quantities, batch errors)

Example - WRONG way to handle errors:
    try:
        ledger.transfer("c1", "c2", 30, performed_by="u1")
    except Exception as e:
        if "Insufficient" in str(e):  # FRAGILE
            ...

Example - RIGHT way:
    try:
        ledger.transfer("c1", "c2", 30, performed_by="u1")
    except InsufficientInventoryError as e:
        respond(code=e.code, available=e.available, requested=e.requested)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryLedgerError (base)
    |
    +-- LedgerError
    |   +-- CategoryNotFoundError
    |   +-- InsufficientInventoryError
    |   +-- InvalidQuantityError
    |   +-- InvalidInventoryError
    |
    +-- StoreError
    |   +-- StoreUnavailableError
    |       +-- RepositoryError
    |
    +-- MigrationError
        +-- MigrationAnalysisFailedError
        +-- MigrationExecutionFailedError
        +-- ValidationFailedError
        +-- MigrationRollbackFailedError
        +-- MigrationAlreadyRunningError

===============================================================================
ERROR CODES
===============================================================================

    Code                          | Meaning
    ------------------------------|------------------------------------------
    CATEGORY_NOT_FOUND            | Mutation targeted an unknown category
    INSUFFICIENT_INVENTORY        | Transfer source holds less than requested
    INVALID_QUANTITY              | Quantity not an int, or not positive
    INVALID_INVENTORY             | Inventory record violates its invariants
    STORE_UNAVAILABLE             | Database failed or retries exhausted
    REPOSITORY_ERROR              | Read path failed at the store
    MIGRATION_ANALYSIS_FAILED     | Legacy data could not be analyzed
    MIGRATION_EXECUTION_FAILED    | Migration aborted or finished with errors
    VALIDATION_FAILED             | Post-migration comparison could not run
    MIGRATION_ROLLBACK_FAILED     | A rollback batch failed
    MIGRATION_ALREADY_RUNNING     | Another run holds the migration lease
"""

from datetime import datetime
from typing import Sequence


class InventoryLedgerError(Exception):
    """Base exception for all inventory ledger errors."""

    code: str = "INVENTORY_LEDGER_ERROR"


# =============================================================================
# Ledger errors
# =============================================================================


class LedgerError(InventoryLedgerError):
    """Base for category inventory mutation errors."""

    code: str = "LEDGER_ERROR"


class CategoryNotFoundError(LedgerError):
    """Category does not exist."""

    code: str = "CATEGORY_NOT_FOUND"

    def __init__(self, category_id: str):
        self.category_id = category_id
        super().__init__(f"Category not found: {category_id}")


class InsufficientInventoryError(LedgerError):
    """Transfer source does not hold enough units."""

    code: str = "INSUFFICIENT_INVENTORY"

    def __init__(self, category_id: str, available: int, requested: int):
        self.category_id = category_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient inventory in source category {category_id}: "
            f"available {available}, requested {requested}"
        )


class InvalidQuantityError(LedgerError):
    """Quantity argument is not usable for the requested operation."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: object, reason: str):
        self.quantity = quantity
        self.reason = reason
        super().__init__(f"Invalid quantity {quantity!r}: {reason}")


class InvalidInventoryError(LedgerError):
    """Inventory record would break the non-negative or threshold floor rules."""

    code: str = "INVALID_INVENTORY"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid inventory {field}={value!r}: {reason}")


# =============================================================================
# Store errors
# =============================================================================


class StoreError(InventoryLedgerError):
    """Base for persistence layer errors."""

    code: str = "STORE_ERROR"


class StoreUnavailableError(StoreError):
    """The transactional store failed, or transient conflicts outlasted retries."""

    code: str = "STORE_UNAVAILABLE"

    def __init__(self, operation: str, detail: str, attempts: int = 1):
        self.operation = operation
        self.detail = detail
        self.attempts = attempts
        super().__init__(
            f"Store unavailable during {operation} "
            f"after {attempts} attempt(s): {detail}"
        )


class RepositoryError(StoreUnavailableError):
    """Read path failed at the store."""

    code: str = "REPOSITORY_ERROR"


# =============================================================================
# Migration errors
# =============================================================================


class MigrationError(InventoryLedgerError):
    """Base for legacy inventory migration errors."""

    code: str = "MIGRATION_ERROR"


class MigrationAnalysisFailedError(MigrationError):
    """Legacy product data could not be read or grouped."""

    code: str = "MIGRATION_ANALYSIS_FAILED"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Migration analysis failed: {reason}")


class MigrationExecutionFailedError(MigrationError):
    """Migration run aborted, or completed with batch errors."""

    code: str = "MIGRATION_EXECUTION_FAILED"

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        last = self.errors[-1] if self.errors else "unknown error"
        super().__init__(
            f"Migration failed with {len(self.errors)} error(s); last: {last}"
        )


class ValidationFailedError(MigrationError):
    """Post-migration validation could not be carried out."""

    code: str = "VALIDATION_FAILED"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Migration validation failed: {reason}")


class MigrationRollbackFailedError(MigrationError):
    """A rollback batch failed; some categories may still hold inventory."""

    code: str = "MIGRATION_ROLLBACK_FAILED"

    def __init__(self, reason: str, categories_cleared: int):
        self.reason = reason
        self.categories_cleared = categories_cleared
        super().__init__(
            f"Migration rollback failed after clearing "
            f"{categories_cleared} categories: {reason}"
        )


class MigrationAlreadyRunningError(MigrationError):
    """Another migration run holds an unexpired lease."""

    code: str = "MIGRATION_ALREADY_RUNNING"

    def __init__(self, lease_owner: str | None, lease_expires_at: datetime | None):
        self.lease_owner = lease_owner
        self.lease_expires_at = lease_expires_at
        super().__init__(
            f"Migration already running (owner={lease_owner}, "
            f"lease expires {lease_expires_at})"
        )
