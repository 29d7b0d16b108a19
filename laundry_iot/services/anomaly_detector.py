"""
Anomaly Detector Service

Maps one telemetry reading + equipment metadata to zero or more alert
triggers using the threshold catalog. Pure: no I/O, no side effects.

Rules (evaluated independently):
- High vibration (all types)
- High temperature (per type)
- Preventive maintenance schedule
- Low efficiency
- Power spike (per type)
- Cycle-based filter replacement
"""

import logging
import math
from datetime import datetime
from typing import List, Optional

from laundry_iot.errors import utc_now
from laundry_iot.models.alerts import AlertSeverity, AlertTrigger, MaintenanceAlertType
from laundry_iot.models.optimization import round_half_up
from laundry_iot.models.telemetry import EquipmentDescriptor, TelemetryReading, ensure_aware
from laundry_iot.thresholds import (
    EFFICIENCY_HIGH_SEVERITY,
    EFFICIENCY_THRESHOLD,
    FILTER_CYCLE_MILESTONE,
    MAINTENANCE_DUE_SOON_DAYS,
    MAINTENANCE_INTERVAL_DAYS,
    MAINTENANCE_OVERDUE_DAYS,
    MAINTENANCE_SEVERELY_OVERDUE_DAYS,
    POWER_SPIKE_FACTOR,
    VIBRATION_CRITICAL,
    VIBRATION_THRESHOLD,
    EquipmentThresholds,
    get_thresholds,
    require_thresholds,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def usable_value(value) -> Optional[float]:
    """Return the value if it is a finite, non-negative number, else None"""
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def fmt_number(value: float) -> str:
    """Render 90.0 as '90' and 90.5 as '90.5'"""
    return f"{value:g}"


class AnomalyDetector:
    """Stateless rule evaluation over a single reading."""

    def __init__(self, strict: bool = False):
        # strict: unknown equipment types raise ConfigurationGapError instead of skipping
        self.strict = strict

    def _thresholds(self, equipment: EquipmentDescriptor) -> Optional[EquipmentThresholds]:
        if self.strict:
            return require_thresholds(equipment.equipment_type)
        return get_thresholds(equipment.equipment_type)

    def detect(
        self,
        reading: TelemetryReading,
        equipment: EquipmentDescriptor,
        now: Optional[datetime] = None,
    ) -> List[AlertTrigger]:
        """
        Run every rule against the reading.

        Rules whose input is missing, negative or non-finite are skipped;
        the remaining rules still run.

        Args:
            reading: Latest telemetry snapshot
            equipment: Equipment metadata (type, maintenance dates)
            now: Reference time for the maintenance schedule (default: UTC now)

        Returns:
            List of triggers, possibly empty
        """
        now = ensure_aware(now or utc_now())
        triggers: List[AlertTrigger] = []

        checks = (
            self._check_vibration(reading),
            self._check_temperature(reading, equipment),
            self._check_maintenance_schedule(equipment, now),
            self._check_efficiency(reading),
            self._check_power(reading, equipment),
            self._check_cycle_milestone(reading),
        )
        for trigger in checks:
            if trigger is not None:
                triggers.append(trigger)

        if triggers:
            logger.debug(
                f"Equipment {equipment.id}: {len(triggers)} trigger(s) "
                f"{[t.type.value for t in triggers]}"
            )
        return triggers

    # ───────────────────────────────────────────────────────────────────────────
    # RULES
    # ───────────────────────────────────────────────────────────────────────────

    def _check_vibration(self, reading: TelemetryReading) -> Optional[AlertTrigger]:
        vibration = usable_value(reading.vibration)
        if vibration is None or vibration <= VIBRATION_THRESHOLD:
            return None

        return AlertTrigger(
            type=MaintenanceAlertType.HIGH_VIBRATION,
            severity=(
                AlertSeverity.CRITICAL
                if vibration > VIBRATION_CRITICAL
                else AlertSeverity.HIGH
            ),
            title="High Vibration Detected",
            description=(
                f"Equipment is experiencing abnormally high vibration levels "
                f"({vibration:.1f}/10). This may indicate imbalance, worn bearings, "
                f"or loose components."
            ),
            recommendation=(
                "Check for load imbalance. Inspect mounting bolts and floor leveling. "
                "Consider professional inspection if vibration persists."
            ),
            trigger_data={"vibration": vibration, "threshold": VIBRATION_THRESHOLD},
        )

    def _check_temperature(
        self, reading: TelemetryReading, equipment: EquipmentDescriptor
    ) -> Optional[AlertTrigger]:
        temperature = usable_value(reading.temperature)
        if temperature is None:
            return None

        thresholds = self._thresholds(equipment)
        if thresholds is None:
            logger.debug(
                f"No temperature thresholds for type {equipment.type_name} - skipping"
            )
            return None

        if temperature > thresholds.critical_temperature:
            return AlertTrigger(
                type=MaintenanceAlertType.HIGH_TEMPERATURE,
                severity=AlertSeverity.CRITICAL,
                title="Critical Temperature Detected",
                description=(
                    f"Equipment temperature ({fmt_number(temperature)}°C) has exceeded "
                    f"critical threshold ({fmt_number(thresholds.critical_temperature)}°C). "
                    f"Risk of equipment damage or fire hazard."
                ),
                recommendation=(
                    "IMMEDIATE ACTION REQUIRED: Shut down equipment. Check thermostat, "
                    "heating elements, and ventilation. Contact service technician immediately."
                ),
                trigger_data={
                    "temperature": temperature,
                    "threshold": thresholds.critical_temperature,
                    "equipmentType": equipment.type_name,
                },
            )
        if temperature > thresholds.max_temperature:
            return AlertTrigger(
                type=MaintenanceAlertType.HIGH_TEMPERATURE,
                severity=AlertSeverity.HIGH,
                title="High Temperature Warning",
                description=(
                    f"Equipment temperature ({fmt_number(temperature)}°C) is higher than "
                    f"recommended ({fmt_number(thresholds.max_temperature)}°C). "
                    f"May reduce equipment lifespan."
                ),
                recommendation=(
                    "Check ventilation and air filters. Ensure adequate clearance around "
                    "equipment. Monitor temperature closely."
                ),
                trigger_data={
                    "temperature": temperature,
                    "threshold": thresholds.max_temperature,
                    "equipmentType": equipment.type_name,
                },
            )
        return None

    def _check_maintenance_schedule(
        self, equipment: EquipmentDescriptor, now: datetime
    ) -> Optional[AlertTrigger]:
        if equipment.last_maintenance_date is None:
            return None

        last = ensure_aware(equipment.last_maintenance_date)
        days_since = int((now - last).total_seconds() // SECONDS_PER_DAY)
        trigger_data = {
            "daysSince": days_since,
            "lastMaintenanceDate": last.isoformat(),
        }

        if days_since > MAINTENANCE_OVERDUE_DAYS:
            return AlertTrigger(
                type=MaintenanceAlertType.PREVENTIVE_MAINTENANCE,
                severity=(
                    AlertSeverity.HIGH
                    if days_since > MAINTENANCE_SEVERELY_OVERDUE_DAYS
                    else AlertSeverity.MEDIUM
                ),
                title="Maintenance Overdue",
                description=(
                    f"Equipment maintenance is overdue by "
                    f"{days_since - MAINTENANCE_INTERVAL_DAYS} days. "
                    f"Last maintenance was {days_since} days ago."
                ),
                recommendation=(
                    "Schedule professional maintenance to prevent unexpected breakdowns "
                    "and ensure optimal performance."
                ),
                trigger_data=trigger_data,
            )
        if days_since > MAINTENANCE_DUE_SOON_DAYS:
            days_left = MAINTENANCE_INTERVAL_DAYS - days_since
            if days_left > 0:
                description = f"Equipment maintenance is due in {days_left} days."
            else:
                description = (
                    f"Equipment maintenance is due. Last maintenance was "
                    f"{days_since} days ago."
                )
            return AlertTrigger(
                type=MaintenanceAlertType.PREVENTIVE_MAINTENANCE,
                severity=AlertSeverity.LOW,
                title="Maintenance Due Soon",
                description=description,
                recommendation="Schedule maintenance appointment to avoid service interruption.",
                trigger_data=trigger_data,
            )
        return None

    def _check_efficiency(self, reading: TelemetryReading) -> Optional[AlertTrigger]:
        efficiency = usable_value(reading.efficiency_score)
        if efficiency is None or efficiency >= EFFICIENCY_THRESHOLD:
            return None

        return AlertTrigger(
            type=MaintenanceAlertType.LOW_EFFICIENCY,
            severity=(
                AlertSeverity.HIGH
                if efficiency < EFFICIENCY_HIGH_SEVERITY
                else AlertSeverity.MEDIUM
            ),
            title="Low Equipment Efficiency",
            description=(
                f"Equipment efficiency has dropped to {fmt_number(efficiency)}%. This may "
                f"result in higher utility costs and longer cycle times."
            ),
            recommendation=(
                "Check for clogged filters, lint buildup, or water inlet issues. Consider "
                "running a maintenance cycle or professional cleaning."
            ),
            trigger_data={"efficiencyScore": efficiency, "threshold": EFFICIENCY_THRESHOLD},
        )

    def _check_power(
        self, reading: TelemetryReading, equipment: EquipmentDescriptor
    ) -> Optional[AlertTrigger]:
        power = usable_value(reading.power_watts)
        if power is None:
            return None

        thresholds = self._thresholds(equipment)
        if thresholds is None:
            return None

        expected = thresholds.expected_power_watts
        if power <= expected * POWER_SPIKE_FACTOR:
            return None

        excess_pct = round_half_up((power - expected) / expected * 100)
        return AlertTrigger(
            type=MaintenanceAlertType.POWER_SPIKE,
            severity=AlertSeverity.MEDIUM,
            title="Excessive Power Consumption",
            description=(
                f"Equipment is consuming {fmt_number(power)}W, which is {excess_pct}% "
                f"higher than expected ({fmt_number(expected)}W)."
            ),
            recommendation=(
                "Check for mechanical resistance, worn parts, or electrical issues. "
                "May indicate motor problems or component failure."
            ),
            trigger_data={
                "powerWatts": power,
                "expectedPower": expected,
                "excessPercentage": excess_pct,
            },
        )

    def _check_cycle_milestone(self, reading: TelemetryReading) -> Optional[AlertTrigger]:
        cycle_count = usable_value(reading.cycle_count)
        if cycle_count is None or cycle_count <= 0:
            return None
        # Exact multiples only: sparse readings can step over a milestone
        if cycle_count % FILTER_CYCLE_MILESTONE != 0:
            return None

        cycles = int(cycle_count)
        return AlertTrigger(
            type=MaintenanceAlertType.FILTER_REPLACEMENT,
            severity=AlertSeverity.LOW,
            title="Filter Replacement Recommended",
            description=(
                f"Equipment has completed {cycles} cycles. Filter replacement is "
                f"recommended for optimal performance."
            ),
            recommendation="Replace lint filters, water filters, and clean ventilation systems.",
            trigger_data={"cycleCount": cycles, "milestone": FILTER_CYCLE_MILESTONE},
        )


_default_detector = AnomalyDetector()


def detect_anomalies(
    reading: TelemetryReading,
    equipment: EquipmentDescriptor,
    now: Optional[datetime] = None,
) -> List[AlertTrigger]:
    """Quick function to run the default detector"""
    return _default_detector.detect(reading, equipment, now=now)
