"""
Telemetry Data Models
=====================

Sensor snapshots and equipment metadata consumed by the detection and
optimization services. Wire format uses camelCase field names.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union


class EquipmentType(str, Enum):
    """Supported equipment types"""

    WASHER = "WASHER"
    DRYER = "DRYER"
    STEAMER = "STEAMER"
    PRESSER = "PRESSER"

    @classmethod
    def coerce(cls, value: Union["EquipmentType", str]) -> Union["EquipmentType", str]:
        """Map a raw string onto the enum, keeping unknown types as-is"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return str(value).upper()


def parse_timestamp(value: Union[datetime, str, None]) -> Optional[datetime]:
    """Parse ISO-8601 strings (including a trailing Z) into datetimes"""
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


# Wire name -> attribute name
_READING_FIELDS = {
    "equipmentId": "equipment_id",
    "timestamp": "timestamp",
    "powerWatts": "power_watts",
    "waterLiters": "water_liters",
    "temperature": "temperature",
    "vibration": "vibration",
    "cycleCount": "cycle_count",
    "cycleType": "cycle_type",
    "isRunning": "is_running",
    "healthScore": "health_score",
    "efficiencyScore": "efficiency_score",
}


@dataclass(frozen=True)
class TelemetryReading:
    """One timestamped sensor snapshot for one piece of equipment"""

    equipment_id: str
    timestamp: datetime
    power_watts: Optional[float] = None
    water_liters: Optional[float] = None
    temperature: Optional[float] = None  # °C
    vibration: Optional[float] = None  # 0-10 scale
    cycle_count: Optional[int] = None  # monotonic since install/reset
    cycle_type: Optional[str] = None  # WASH, RINSE, SPIN, DRY...
    is_running: Optional[bool] = None
    health_score: Optional[float] = None  # 0-100
    efficiency_score: Optional[float] = None  # 0-100

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TelemetryReading":
        """Build from a camelCase (or snake_case) mapping"""
        kwargs = {}
        for wire_name, attr in _READING_FIELDS.items():
            if wire_name in data:
                kwargs[attr] = data[wire_name]
            elif attr in data:
                kwargs[attr] = data[attr]
        kwargs["timestamp"] = parse_timestamp(kwargs.get("timestamp"))
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to camelCase dictionary for JSON serialization"""
        result = {}
        for wire_name, attr in _READING_FIELDS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            if isinstance(value, datetime):
                value = value.isoformat()
            result[wire_name] = value
        return result


@dataclass
class EquipmentDescriptor:
    """Metadata needed to interpret readings"""

    id: str
    tenant_id: str  # merchant/owner scope
    equipment_type: Union[EquipmentType, str]
    last_maintenance_date: Optional[datetime] = None
    purchase_date: Optional[datetime] = None
    name: Optional[str] = None

    def __post_init__(self):
        self.equipment_type = EquipmentType.coerce(self.equipment_type)
        self.last_maintenance_date = parse_timestamp(self.last_maintenance_date)
        self.purchase_date = parse_timestamp(self.purchase_date)

    @property
    def type_name(self) -> str:
        if isinstance(self.equipment_type, EquipmentType):
            return self.equipment_type.value
        return self.equipment_type

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tenantId": self.tenant_id,
            "equipmentType": self.type_name,
            "name": self.name,
            "lastMaintenanceDate": (
                self.last_maintenance_date.isoformat()
                if self.last_maintenance_date
                else None
            ),
            "purchaseDate": self.purchase_date.isoformat() if self.purchase_date else None,
        }


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
