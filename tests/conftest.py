"""
Pytest fixtures for the devspace kernel test suite.

Provides:
- Structured log capture
- A deterministic clock (Wednesday 2024-01-03 12:00 UTC)
- Memory storage and stores wired to it
- Sequential ids so assertions can name records

Everything runs in memory; the SQL storage tests use a SQLite file under
``tmp_path``.
"""

import json
import logging
from io import StringIO

import pytest

from devspace_kernel.domain.clock import DeterministicClock
from devspace_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from devspace_kernel.persistence.adapter import MemoryStorage
from devspace_kernel.services.collection_store import CollectionStore
from devspace_kernel.services.data_store import DataStore


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture devspace_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, store):
            store.add_project(name="Site", client="ACME")
            logs = captured_logs()
            assert any(r["message"] == "project_added" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("devspace_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and id fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


@pytest.fixture
def sequential_ids():
    """Id factory yielding id-1, id-2, ..."""
    counter = {"n": 0}

    def _next() -> str:
        counter["n"] += 1
        return f"id-{counter['n']}"

    return _next


# =============================================================================
# Store fixtures
# =============================================================================


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def store(memory_storage, deterministic_clock, sequential_ids):
    """An opened CollectionStore over memory storage."""
    with CollectionStore(
        memory_storage, clock=deterministic_clock, id_factory=sequential_ids
    ) as opened:
        yield opened


@pytest.fixture
def data_store(memory_storage, deterministic_clock, sequential_ids):
    """An opened DataStore over memory storage, without a backup sink."""
    with DataStore(
        memory_storage, clock=deterministic_clock, id_factory=sequential_ids
    ) as opened:
        yield opened
