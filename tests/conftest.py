"""
Pytest Configuration for Laundry IoT Tests

Shared fixtures live in tests/fixtures and are imported here so every
test module can use them.
"""

import pytest

# Import all fixtures
from tests.fixtures.alert_fixtures import *  # noqa
from tests.fixtures.telemetry_fixtures import *  # noqa
from laundry_iot.settings import Settings


@pytest.fixture(autouse=True)
def reset_settings_singleton():
    """Each test sees settings built from its own environment"""
    Settings._instance = None
    yield
    Settings._instance = None
