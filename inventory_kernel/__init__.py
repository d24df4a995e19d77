"""
Inventory Kernel

Shared infrastructure for the category inventory ledger and its legacy
migration engine:
- Typed exceptions with machine-readable codes
- Structured JSON logging
- SQLAlchemy engine, session scope and the retrying LedgerStore
- Injectable clock and retry policy
- Validated configuration
"""

__version__ = "0.1.0"
