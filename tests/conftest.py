"""Pytest fixtures for Tally tests."""

from datetime import datetime, timezone

import pytest

from tally.config import TallyConfig
from tally.ledger import EventLedger
from tally.lifecycle import LifecycleManager
from tally.paths import DataPaths
from tally.store import CounterStore

# Wednesday afternoon; the enclosing week starts Monday 2026-10-19.
NOW = datetime(2026, 10, 21, 14, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed reference instant used by aggregation tests."""
    return NOW


@pytest.fixture
def data_dir(tmp_path):
    """Create a temporary data directory.

    Args:
        tmp_path: pytest's built-in temporary directory fixture

    Returns:
        Path to the data directory
    """
    root = tmp_path / "tally_data"
    root.mkdir()
    return root


@pytest.fixture
def data_paths(data_dir):
    """DataPaths for the temporary data directory."""
    paths = DataPaths.from_config(TallyConfig(data_dir=data_dir))
    for directory in paths.get_all_directories():
        directory.mkdir(parents=True, exist_ok=True)
    return paths


@pytest.fixture
def store(data_paths):
    """Fresh CounterStore backed by a temporary sqlite file."""
    return CounterStore(data_paths.db_file)


@pytest.fixture
def manager(store):
    return LifecycleManager(store)


@pytest.fixture
def ledger(store):
    return EventLedger(store)
