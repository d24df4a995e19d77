"""Tests for the structured logging system (inventory_kernel/logging_config.py)."""

import json
import logging
from enum import Enum
from io import StringIO
from uuid import uuid4

import pytest

from inventory_kernel.exceptions import InsufficientInventoryError
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


def _parse_log(stream: StringIO) -> dict:
    return _parse_all_logs(stream)[0]


class _Color(str, Enum):
    RED = "red"


class TestStructuredFormatter:

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "inventory_ledger.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info(
            "inventory_adjusted", extra={"delta": -3, "new_quantity": 7},
        )

        record = _parse_log(stream)
        assert record["delta"] == -3
        assert record["new_quantity"] == 7

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(correlation_id="abc-123", category_id="shoes")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["category_id"] == "shoes"

    def test_ledger_exception_fields_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise InsufficientInventoryError("shoes", 50, 999)
        except InsufficientInventoryError:
            get_logger("test").error("transfer_failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "INSUFFICIENT_INVENTORY"
        assert record["exc_type"] == "InsufficientInventoryError"
        assert record["exc_category_id"] == "shoes"
        assert record["exc_available"] == 50
        assert record["exc_requested"] == 999
        assert "traceback" in record

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "migration_run_id" not in record

    def test_uuid_and_enum_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info("typed", extra={"operation_id": uid, "color": _Color.RED})

        record = _parse_log(stream)
        assert record["operation_id"] == str(uid)
        assert record["color"] == "red"

    def test_debug_filtered_at_info(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        assert [r["message"] for r in logs] == ["first", "second"]


class TestLogContext:

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", migration_run_id="run-1")
        assert LogContext.get_all() == {"correlation_id": "x", "migration_run_id": "run-1"}

    def test_clear(self):
        LogContext.set(actor_id="u1")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_outer_value(self):
        LogContext.set(actor_id="outer")
        with LogContext.bind(actor_id="inner"):
            assert LogContext.get_all()["actor_id"] == "inner"
        assert LogContext.get_all()["actor_id"] == "outer"

    def test_bind_skips_none(self):
        with LogContext.bind(actor_id=None, category_id="c1"):
            assert LogContext.get_all() == {"category_id": "c1"}
        assert LogContext.get_all() == {}

    def test_all_fields(self):
        LogContext.set(
            correlation_id="c",
            actor_id="a",
            category_id="k",
            migration_run_id="m",
            trace_id="t",
        )
        assert len(LogContext.get_all()) == 5


class TestConfigureLogging:

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert len(logging.getLogger("inventory_ledger").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("ledger.service").name == "inventory_ledger.ledger.service"

    def test_reset_clears_handlers(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        reset_logging()
        assert logging.getLogger("inventory_ledger").handlers == []
