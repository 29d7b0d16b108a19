"""
Equipment Threshold Catalog
Defines per-equipment-type limits for anomaly detection plus the global
rule constants and recovery bands used for auto-resolution.

Adding a new equipment type is a data change: add a row to
EQUIPMENT_THRESHOLDS.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Union

from laundry_iot.errors import ConfigurationGapError
from laundry_iot.models.telemetry import EquipmentType


@dataclass(frozen=True)
class EquipmentThresholds:
    """Type-specific thresholds"""

    max_temperature: float  # °C, above = HIGH
    critical_temperature: float  # °C, above = CRITICAL
    expected_power_watts: float  # nominal draw while running


EQUIPMENT_THRESHOLDS: Dict[str, EquipmentThresholds] = {
    EquipmentType.WASHER.value: EquipmentThresholds(
        max_temperature=75, critical_temperature=85, expected_power_watts=2000
    ),
    EquipmentType.DRYER.value: EquipmentThresholds(
        max_temperature=85, critical_temperature=100, expected_power_watts=3000
    ),
    EquipmentType.STEAMER.value: EquipmentThresholds(
        max_temperature=130, critical_temperature=150, expected_power_watts=1800
    ),
    EquipmentType.PRESSER.value: EquipmentThresholds(
        max_temperature=190, critical_temperature=220, expected_power_watts=1500
    ),
}

# Vibration (0-10 scale, applies to all types)
VIBRATION_THRESHOLD = 5.0
VIBRATION_CRITICAL = 7.0

# Power draw above expected * factor = spike
POWER_SPIKE_FACTOR = 1.5

# Efficiency score (0-100)
EFFICIENCY_THRESHOLD = 70
EFFICIENCY_HIGH_SEVERITY = 50

# Preventive maintenance schedule (days)
MAINTENANCE_INTERVAL_DAYS = 90
MAINTENANCE_DUE_SOON_DAYS = 80
MAINTENANCE_OVERDUE_DAYS = 120
MAINTENANCE_SEVERELY_OVERDUE_DAYS = 180

# Filter replacement every N cycles
FILTER_CYCLE_MILESTONE = 500

# Recovery bands (stricter than trigger thresholds to avoid flapping)
VIBRATION_RECOVERY = 4.0
TEMPERATURE_RECOVERY_C = 80.0  # global, not per type
EFFICIENCY_RECOVERY = 75


def get_thresholds(
    equipment_type: Union[EquipmentType, str, None],
) -> Optional[EquipmentThresholds]:
    """
    Get thresholds for an equipment type.

    Returns:
        EquipmentThresholds, or None when the type is not in the catalog
        (type-specific rules are then skipped)
    """
    if equipment_type is None:
        return None
    key = equipment_type.value if isinstance(equipment_type, EquipmentType) else str(equipment_type).upper()
    return EQUIPMENT_THRESHOLDS.get(key)


def require_thresholds(equipment_type: Union[EquipmentType, str, None]) -> EquipmentThresholds:
    """
    Strict lookup.

    Raises:
        ConfigurationGapError: the type is not in the catalog
    """
    thresholds = get_thresholds(equipment_type)
    if thresholds is None:
        raise ConfigurationGapError(
            equipment_type.value if isinstance(equipment_type, EquipmentType) else str(equipment_type)
        )
    return thresholds
