"""Shared test fixtures for the AI Receptionist test suite."""

from __future__ import annotations

import itertools
import os
from unittest.mock import MagicMock

import pytest

TEST_API_KEY = "test-api-key-123"


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    This runs before any imports, so config.py won't fail on module load.
    """
    os.environ.setdefault("RECEPTIONIST_API_KEY", TEST_API_KEY)
    os.environ.setdefault("METRICS_ENABLED", "false")


@pytest.fixture
def kv_store():
    from receptionist.services.kv_store import InMemoryKVStore

    return InMemoryKVStore()


@pytest.fixture
def frozen_clock():
    """A clock stuck on one millisecond, to exercise same-tick writes."""
    return lambda: 1_760_000_000_000


@pytest.fixture
def ticking_clock():
    """A clock that advances 1 s on every call."""
    counter = itertools.count(1_760_000_000_000, 1000)
    return lambda: next(counter)


@pytest.fixture
def mock_http_response():
    """Factory fixture for creating mock httpx responses."""

    def _make(data, status_code: int = 200):
        mock = MagicMock()
        mock.status_code = status_code
        mock.json.return_value = data
        mock.text = str(data)
        return mock

    return _make
