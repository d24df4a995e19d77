#!/usr/bin/env python3
"""
Operate the category inventory ledger and the legacy inventory migration.

Reads the database URL from --database-url, else INVENTORY_LEDGER_DATABASE_URL,
else the database_url of the --config YAML file.  Output is JSON on stdout.
Ledger errors print their code and message to stderr and exit with status 1.

Usage:
    python3 scripts/ledger_cli.py [--database-url URL] [--config FILE] <command> [options]

Examples:
    # Create tables and load categories / legacy products from YAML
    python3 scripts/ledger_cli.py init-db
    python3 scripts/ledger_cli.py seed --file fixtures.yaml

    # Migration lifecycle
    python3 scripts/ledger_cli.py analyze
    python3 scripts/ledger_cli.py migrate
    python3 scripts/ledger_cli.py validate
    python3 scripts/ledger_cli.py status
    python3 scripts/ledger_cli.py rollback

    # Ledger operations
    python3 scripts/ledger_cli.py adjust shoes -3 --reason "Sold" --by user-1
    python3 scripts/ledger_cli.py transfer shoes outlet 10 --by user-1
    python3 scripts/ledger_cli.py threshold shoes 8
    python3 scripts/ledger_cli.py history shoes --limit 20
    python3 scripts/ledger_cli.py alerts
    python3 scripts/ledger_cli.py report
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import os
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import UUID

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

ENV_DATABASE_URL = "INVENTORY_LEDGER_DATABASE_URL"
DEFAULT_DATABASE_URL = "sqlite:///inventory_ledger.db"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Category inventory ledger and legacy migration CLI.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help=f"Database URL (default: ${ENV_DATABASE_URL} or {DEFAULT_DATABASE_URL!r}).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with ledger settings (optional).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for JSON logs on stderr (default: WARNING).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create all tables.")
    seed = sub.add_parser("seed", help="Load categories and legacy products from YAML.")
    seed.add_argument("--file", required=True, type=Path)

    sub.add_parser("status", help="Show the migration status record.")
    sub.add_parser("analyze", help="Analyze legacy products without writing inventory.")
    sub.add_parser("migrate", help="Run the migration.")
    sub.add_parser("validate", help="Compare persisted inventory with legacy data.")
    sub.add_parser("rollback", help="Clear every category's inventory record.")
    sub.add_parser("report", help="Inventory summary report.")
    sub.add_parser("alerts", help="Low-stock alerts, most urgent first.")

    history = sub.add_parser("history", help="Operation log of one category.")
    history.add_argument("category_id")
    history.add_argument("--limit", type=int, default=None)
    history.add_argument("--offset", type=int, default=0)
    history.add_argument("--type", dest="operation_type", default=None,
                         choices=["add", "remove", "transfer", "adjustment"])
    history.add_argument("--by", dest="performed_by", default=None)

    get = sub.add_parser("get", help="Show one category with its inventory.")
    get.add_argument("category_id")

    adjust = sub.add_parser("adjust", help="Add a (possibly negative) delta.")
    adjust.add_argument("category_id")
    adjust.add_argument("delta", type=int)
    adjust.add_argument("--reason", default=None)
    adjust.add_argument("--by", dest="performed_by", default=None)

    threshold = sub.add_parser("threshold", help="Set the low-stock threshold.")
    threshold.add_argument("category_id")
    threshold.add_argument("threshold", type=int)

    transfer = sub.add_parser("transfer", help="Move units between categories.")
    transfer.add_argument("from_category_id")
    transfer.add_argument("to_category_id")
    transfer.add_argument("quantity", type=int)
    transfer.add_argument("--by", dest="performed_by", required=True)
    transfer.add_argument("--reason", default=None)
    transfer.add_argument("--sku", dest="skus", action="append", default=None)

    return parser.parse_args(argv)


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        data = {f.name: _to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
        # Derived values exposed as properties
        for name in dir(type(value)):
            attr = getattr(type(value), name, None)
            if isinstance(attr, property) and not name.startswith("_"):
                data[name] = _to_jsonable(getattr(value, name))
        return data
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _emit(value: Any) -> None:
    print(json.dumps(_to_jsonable(value), indent=2, sort_keys=True))


def _seed(orchestrator, path: Path) -> dict[str, int]:
    import yaml

    from inventory_ledger.orm import CategoryModel
    from inventory_migration.domain.types import LegacyProduct
    from inventory_migration.models.legacy import LegacyProductModel

    with open(path) as f:
        data = yaml.safe_load(f) or {}
    categories = data.get("categories", [])
    products = data.get("products", [])

    with orchestrator.store.transaction() as session:
        for item in categories:
            session.merge(CategoryModel(
                id=str(item["id"]),
                name=item["name"],
                description=item.get("description"),
                tag=item.get("tag"),
                cost_price=item.get("cost_price"),
            ))
        for item in products:
            session.add(LegacyProductModel.from_dto(LegacyProduct(
                sku=str(item["sku"]),
                name=item["name"],
                category_id=item.get("category_id"),
                quantity=item.get("quantity"),
                low_stock_threshold=item.get("low_stock_threshold"),
            )))
    return {"categories": len(categories), "products": len(products)}


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    # Lazy imports so we fail fast on args first
    from inventory_kernel.config import LedgerConfig
    from inventory_kernel.exceptions import InventoryLedgerError
    from inventory_kernel.logging_config import configure_logging
    from inventory_migration.orchestrator import LedgerOrchestrator

    configure_logging(level=args.log_level.upper())

    config = LedgerConfig.from_yaml(args.config) if args.config else LedgerConfig()
    config = config.with_env_overrides()
    database_url = (
        args.database_url
        or os.environ.get(ENV_DATABASE_URL)
        or config.database_url
        or DEFAULT_DATABASE_URL
    )

    orchestrator = LedgerOrchestrator.from_url(
        database_url, config=config, create_schema=args.command in ("init-db", "seed"),
    )

    try:
        if args.command == "init-db":
            _emit({"database_url": database_url, "initialized": True})
        elif args.command == "seed":
            _emit(_seed(orchestrator, args.file))
        elif args.command == "status":
            _emit(orchestrator.status())
        elif args.command == "analyze":
            _emit(orchestrator.analyze())
        elif args.command == "migrate":
            result = orchestrator.execute()
            _emit(result)
            return 0 if result.success else 2
        elif args.command == "validate":
            _emit(orchestrator.validate())
        elif args.command == "rollback":
            _emit({"categories_cleared": orchestrator.rollback()})
        elif args.command == "report":
            _emit(orchestrator.report())
        elif args.command == "alerts":
            _emit(orchestrator.low_stock_alerts())
        elif args.command == "history":
            _emit(orchestrator.history(
                args.category_id,
                args.limit,
                offset=args.offset,
                operation_type=args.operation_type,
                performed_by=args.performed_by,
            ))
        elif args.command == "get":
            category = orchestrator.get(args.category_id)
            if category is None:
                print(f"ERROR: Category not found: {args.category_id}", file=sys.stderr)
                return 1
            _emit(category)
        elif args.command == "adjust":
            _emit(orchestrator.adjust(
                args.category_id, args.delta, args.reason, args.performed_by,
            ))
        elif args.command == "threshold":
            _emit(orchestrator.set_threshold(args.category_id, args.threshold))
        elif args.command == "transfer":
            _emit(orchestrator.transfer(
                args.from_category_id,
                args.to_category_id,
                args.quantity,
                args.performed_by,
                reason=args.reason,
                product_skus=args.skus,
            ))
    except InventoryLedgerError as e:
        print(f"ERROR [{e.code}]: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
