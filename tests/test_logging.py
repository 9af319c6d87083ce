"""Tests for the structured logging system (devspace_kernel/logging_config.py)."""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from devspace_kernel.domain.entities import TaskStatus
from devspace_kernel.exceptions import InvalidFieldError
from devspace_kernel.logging_config import (
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
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "devspace_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("project_added", extra={"count": 3, "kind": "project"})

        record = _parse_log(stream)
        assert record["count"] == 3
        assert record["kind"] == "project"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(session_id="s-1", entity_type="task", entity_id="t-9")
        get_logger("test").info("task_updated")

        record = _parse_log(stream)
        assert record["session_id"] == "s-1"
        assert record["entity_type"] == "task"
        assert record["entity_id"] == "t-9"

    def test_kernel_exception_fields_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise InvalidFieldError("task", "status", "bad value")
        except InvalidFieldError:
            get_logger("test").error("update_failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "InvalidFieldError"
        assert record["exc_code"] == "INVALID_FIELD"
        assert record["exc_entity_type"] == "task"
        assert record["exc_field_name"] == "status"
        assert "traceback" in record

    def test_special_types_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        when = datetime(2024, 1, 3, 12, 0, tzinfo=timezone.utc)
        get_logger("test").info(
            "typed",
            extra={"uid": uid, "when": when, "amount": Decimal("12.50"), "status": TaskStatus.DONE},
        )

        record = _parse_log(stream)
        assert record["uid"] == str(uid)
        assert record["when"] == when.isoformat()
        assert record["amount"] == "12.50"
        assert record["status"] == "Done"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "session_id" not in record
        assert "operation" not in record

    def test_default_level_filters_debug(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        assert [r["message"] for r in logs] == ["first", "second"]


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(session_id="x", operation="add_task")
        assert LogContext.get_all() == {"session_id": "x", "operation": "add_task"}

    def test_clear(self):
        LogContext.set(session_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(operation="outer")
        with LogContext.bind(operation="inner"):
            assert LogContext.get_all()["operation"] == "inner"
        assert LogContext.get_all()["operation"] == "outer"

    def test_bind_restores_none(self):
        assert "entity_id" not in LogContext.get_all()
        with LogContext.bind(entity_id="temp"):
            assert LogContext.get_all()["entity_id"] == "temp"
        assert "entity_id" not in LogContext.get_all()

    def test_bind_ignores_none_values(self):
        with LogContext.bind(operation="op", entity_id=None):
            assert LogContext.get_all() == {"operation": "op"}


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert len(logging.getLogger("devspace_kernel").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("services.collection_store").name == (
            "devspace_kernel.services.collection_store"
        )

    def test_level_by_name(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level="DEBUG")
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "devspace_kernel.deep.nested.module"
