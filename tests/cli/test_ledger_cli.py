"""
Tests for scripts/ledger_cli.py -- end to end against a SQLite file.
"""

import json

import pytest
import yaml

from scripts.ledger_cli import main

FIXTURES = {
    "categories": [
        {"id": "shoes", "name": "Shoes"},
        {"id": "outlet", "name": "Outlet"},
    ],
    "products": [
        {"sku": "S1", "name": "Sneaker", "category_id": "shoes", "quantity": 30,
         "low_stock_threshold": 4},
        {"sku": "S2", "name": "Boot", "category_id": "shoes", "quantity": 12},
        {"sku": "X1", "name": "Loose item", "quantity": 2},
    ],
}


@pytest.fixture
def cli(tmp_path, capsys):
    """Run the CLI against a fresh database; returns (exit_code, parsed stdout)."""
    url = f"sqlite:///{tmp_path / 'cli.db'}"

    def _run(*args):
        code = main(["--database-url", url, *args])
        out = capsys.readouterr().out
        return code, (json.loads(out) if out.strip() else None)

    return _run


@pytest.fixture
def seeded_cli(cli, tmp_path):
    path = tmp_path / "fixtures.yaml"
    path.write_text(yaml.safe_dump(FIXTURES))
    code, out = cli("seed", "--file", str(path))
    assert code == 0
    assert out == {"categories": 2, "products": 3}
    return cli


class TestLedgerCli:

    def test_init_db(self, cli):
        code, out = cli("init-db")
        assert code == 0
        assert out["initialized"] is True

    def test_status_before_migration(self, seeded_cli):
        assert seeded_cli("status") == (0, None)

    def test_migration_lifecycle(self, seeded_cli):
        code, analysis = seeded_cli("analyze")
        assert code == 0
        assert [r["category_id"] for r in analysis["rules"]] == ["shoes", "uncategorized"]
        assert analysis["rules"][0]["aggregated_quantity"] == 42

        code, result = seeded_cli("migrate")
        assert code == 0
        assert result["success"] is True
        assert result["categories_migrated"] == 2

        code, status = seeded_cli("status")
        assert status["status"] == "completed"
        assert status["progress"] == 100

        code, validation = seeded_cli("validate")
        assert validation["is_valid"] is True

        code, out = seeded_cli("rollback")
        assert out == {"categories_cleared": 2}

    def test_ledger_commands(self, seeded_cli):
        seeded_cli("migrate")

        code, inv = seeded_cli("adjust", "shoes", "-2", "--reason", "Sold", "--by", "u1")
        assert code == 0
        assert inv["total_quantity"] == 40

        code, op = seeded_cli("transfer", "shoes", "outlet", "10", "--by", "u1", "--sku", "S1")
        assert op["operation_type"] == "transfer"
        assert op["metadata"]["productSkus"] == ["S1"]

        code, inv = seeded_cli("threshold", "outlet", "0")
        assert inv["low_stock_threshold"] == 1

        code, history = seeded_cli("history", "shoes", "--type", "remove")
        assert [h["quantity"] for h in history] == [2]

        code, category = seeded_cli("get", "outlet")
        assert category["inventory"]["total_quantity"] == 10

        code, report = seeded_cli("report")
        assert report["total_quantity"] == 42

        code, alerts = seeded_cli("alerts")
        assert [(a["category_id"], a["severity"]) for a in alerts] == [
            ("uncategorized", "critical"),
        ]

    def test_ledger_error_exit_code(self, seeded_cli):
        code, out = seeded_cli("transfer", "shoes", "outlet", "999", "--by", "u1")
        assert code == 1
        assert out is None

    def test_unknown_category(self, seeded_cli):
        assert seeded_cli("get", "nope") == (1, None)
        assert seeded_cli("adjust", "nope", "1")[0] == 1
