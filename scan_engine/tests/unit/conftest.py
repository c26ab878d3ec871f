"""Shared fixtures for scan_engine unit tests."""

from __future__ import annotations

import pytest

from scan_engine.sql_toolkit import reset_toolkit
from scan_engine.telemetry import ProfileCollector


@pytest.fixture(autouse=True)
def _fresh_singletons():
    """Give each test a fresh toolkit and profile collector."""
    reset_toolkit()
    ProfileCollector.reset()
    yield
    reset_toolkit()
    ProfileCollector.reset()
