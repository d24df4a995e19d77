"""
inventory_migration -- One-time conversion of legacy per-product inventory
into category aggregates.

Provides analysis, batched execution with continue-on-error, validation
against the legacy source, rollback, a persisted status record with an
execution lease, and the LedgerOrchestrator composition root.

Architecture:
    inventory_migration/ is a top-level package built on inventory_ledger
    and inventory_kernel.  Neither of those imports from here (except
    create_tables, which loads every ORM model).
"""
