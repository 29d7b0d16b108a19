"""
Telemetry Repository - reading history and equipment registry

In-process collaborators used by the orchestrator and the simulator:
a per-equipment reading history queried by time window, and an
equipment registry scoped by tenant.
"""

import bisect
import threading
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import structlog

from laundry_iot.errors import NotFoundError
from laundry_iot.models.telemetry import EquipmentDescriptor, TelemetryReading, ensure_aware

logger = structlog.get_logger(__name__)


class InMemoryTelemetryRepository:
    """Reading history kept sorted by timestamp per equipment."""

    def __init__(self):
        self._readings: Dict[str, List[TelemetryReading]] = defaultdict(list)
        self._keys: Dict[str, List[float]] = defaultdict(list)
        self._lock = threading.Lock()

    @staticmethod
    def _key(reading: TelemetryReading) -> float:
        return ensure_aware(reading.timestamp).timestamp()

    def add_reading(self, reading: TelemetryReading) -> None:
        self.add_readings([reading])

    def add_readings(self, readings: Iterable[TelemetryReading]) -> int:
        """Bulk insert; returns the number stored"""
        count = 0
        with self._lock:
            for reading in readings:
                key = self._key(reading)
                keys = self._keys[reading.equipment_id]
                position = bisect.bisect_right(keys, key)
                keys.insert(position, key)
                self._readings[reading.equipment_id].insert(position, reading)
                count += 1
        logger.debug("readings_stored", count=count)
        return count

    def readings_since(
        self, equipment_ids: Iterable[str], since: datetime
    ) -> List[TelemetryReading]:
        """Readings at or after `since` for the given equipment, oldest first"""
        cutoff = ensure_aware(since).timestamp()
        result: List[TelemetryReading] = []
        with self._lock:
            for equipment_id in equipment_ids:
                keys = self._keys.get(equipment_id)
                if not keys:
                    continue
                start = bisect.bisect_left(keys, cutoff)
                result.extend(self._readings[equipment_id][start:])
        result.sort(key=self._key)
        return result

    def latest_reading(self, equipment_id: str) -> Optional[TelemetryReading]:
        with self._lock:
            readings = self._readings.get(equipment_id)
            return readings[-1] if readings else None

    def count(self, equipment_id: Optional[str] = None) -> int:
        with self._lock:
            if equipment_id is not None:
                return len(self._readings.get(equipment_id, []))
            return sum(len(r) for r in self._readings.values())


class InMemoryEquipmentRegistry:
    """Equipment descriptors by id."""

    def __init__(self, equipment: Optional[Iterable[EquipmentDescriptor]] = None):
        self._equipment: Dict[str, EquipmentDescriptor] = {}
        for item in equipment or ():
            self.register(item)

    def register(self, equipment: EquipmentDescriptor) -> EquipmentDescriptor:
        self._equipment[equipment.id] = equipment
        logger.debug(
            "equipment_registered",
            equipment_id=equipment.id,
            tenant_id=equipment.tenant_id,
            equipment_type=equipment.type_name,
        )
        return equipment

    def get(self, equipment_id: str) -> EquipmentDescriptor:
        """
        Raises:
            NotFoundError: unknown equipment id
        """
        equipment = self._equipment.get(equipment_id)
        if equipment is None:
            raise NotFoundError("Equipment", equipment_id)
        return equipment

    def list_for_tenant(self, tenant_id: str) -> List[EquipmentDescriptor]:
        return [e for e in self._equipment.values() if e.tenant_id == tenant_id]

    def __len__(self) -> int:
        return len(self._equipment)
