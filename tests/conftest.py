"""
Pytest configuration for device health tests

Every test starts from default thresholds: DHD_* environment variables are
cleared and the process-wide thresholds cache is reset around each test.
"""

import os

import pytest

from device_health import settings

# Import all fixtures
from tests.fixtures.device_fixtures import *  # noqa


@pytest.fixture(autouse=True)
def default_thresholds(monkeypatch):
    """Isolate tests from DHD_* variables and cached thresholds."""
    for key in list(os.environ):
        if key.startswith("DHD_"):
            monkeypatch.delenv(key, raising=False)
    settings.reset_thresholds_cache()
    yield
    settings.reset_thresholds_cache()
