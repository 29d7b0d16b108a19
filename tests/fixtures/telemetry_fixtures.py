"""
Telemetry and equipment fixtures for testing
"""

from datetime import datetime, timedelta, timezone

import pytest

from laundry_iot.models.telemetry import EquipmentDescriptor, TelemetryReading
from laundry_iot.settings import OptimizationSettings

FIXED_NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def make_reading(equipment_id="washer-1", timestamp=None, **fields):
    """TelemetryReading with only the given sensor fields set"""
    return TelemetryReading(
        equipment_id=equipment_id,
        timestamp=timestamp or FIXED_NOW,
        **fields,
    )


@pytest.fixture
def fixed_now():
    """Reference 'now' shared by detector and lifecycle tests"""
    return FIXED_NOW


@pytest.fixture
def optimization_settings():
    """Explicit rates so tests never depend on the environment"""
    return OptimizationSettings(
        energy_rate_per_kwh=0.13,
        water_rate_per_gallon=0.004,
        liters_per_gallon=3.785,
        reporting_interval_minutes=5.0,
        usage_window_days=30,
    )


@pytest.fixture
def washer():
    return EquipmentDescriptor(
        id="washer-1", tenant_id="tenant-a", equipment_type="WASHER", name="Front Washer"
    )


@pytest.fixture
def dryer():
    return EquipmentDescriptor(id="dryer-1", tenant_id="tenant-a", equipment_type="DRYER")


@pytest.fixture
def steamer():
    return EquipmentDescriptor(id="steamer-1", tenant_id="tenant-a", equipment_type="STEAMER")


@pytest.fixture
def other_tenant_washer():
    return EquipmentDescriptor(id="washer-b1", tenant_id="tenant-b", equipment_type="WASHER")


@pytest.fixture
def sample_payload():
    """Inbound camelCase telemetry as sent by a gateway"""
    return {
        "equipmentId": "washer-1",
        "timestamp": "2025-06-15T11:55:00Z",
        "powerWatts": 2050.5,
        "waterLiters": 48.2,
        "temperature": 62.0,
        "vibration": 2.1,
        "cycleCount": 312,
        "cycleType": "wash",
        "isRunning": True,
        "healthScore": 92,
        "efficiencyScore": 88,
    }


@pytest.fixture
def hourly_readings():
    """One washer reading per 5 minutes over the hour before FIXED_NOW"""
    start = FIXED_NOW - timedelta(hours=1)
    return [
        make_reading(
            timestamp=start + timedelta(minutes=5 * i),
            power_watts=2000.0,
            water_liters=50.0,
            cycle_count=100 + i,
            cycle_type="WASH",
        )
        for i in range(12)
    ]
