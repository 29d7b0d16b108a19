"""
Alert Lifecycle Manager

Turns detector triggers into persisted maintenance alerts and moves them
through OPEN -> ACKNOWLEDGED -> RESOLVED:

- ingest: deduplicated creation (one active alert per equipment + type)
- auto_resolve: closes alerts once telemetry is back inside the recovery band
- acknowledge / resolve: operator actions
- list_alerts: tenant-scoped listing, most severe first

The store owns the deduplication guarantee (create_if_absent); the
find_open_alert lookup here only avoids a pointless insert attempt.
"""

import logging
from datetime import datetime
from typing import Callable, FrozenSet, List, Optional, Tuple

from laundry_iot.errors import AlertConflictError, NotFoundError, ValidationError, utc_now
from laundry_iot.models.alerts import (
    AlertFilters,
    AlertSeverity,
    AlertStatus,
    AlertTrigger,
    MaintenanceAlert,
    MaintenanceAlertType,
)
from laundry_iot.models.telemetry import EquipmentDescriptor, TelemetryReading
from laundry_iot.repositories.alert_repository import AlertRepository
from laundry_iot.services.anomaly_detector import AnomalyDetector, fmt_number, usable_value
from laundry_iot.thresholds import (
    EFFICIENCY_RECOVERY,
    TEMPERATURE_RECOVERY_C,
    VIBRATION_RECOVERY,
)

logger = logging.getLogger(__name__)

# Severities that page the merchant
NOTIFY_SEVERITIES = frozenset({AlertSeverity.HIGH, AlertSeverity.CRITICAL})

Notifier = Callable[[MaintenanceAlert], None]


class AlertLifecycleManager:
    """Create, deduplicate and close maintenance alerts."""

    def __init__(
        self,
        repository: AlertRepository,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = utc_now,
        detector: Optional[AnomalyDetector] = None,
    ):
        self.repository = repository
        self.notifier = notifier
        self.clock = clock
        self.detector = detector or AnomalyDetector()

    # ═══════════════════════════════════════════════════════════════════════════
    # CREATE PATH
    # ═══════════════════════════════════════════════════════════════════════════

    def ingest(
        self, equipment: EquipmentDescriptor, triggers: List[AlertTrigger]
    ) -> List[MaintenanceAlert]:
        """
        Persist triggers as OPEN alerts unless an active alert of the same
        type already exists for the equipment.

        Returns:
            Newly created alerts (duplicates are silently dropped)
        """
        created: List[MaintenanceAlert] = []

        for trigger in triggers:
            existing = self.repository.find_open_alert(equipment.id, trigger.type)
            if existing is not None:
                logger.debug(
                    f"Alert of type {trigger.type.value} already exists for "
                    f"equipment {equipment.id}"
                )
                continue

            alert = MaintenanceAlert.from_trigger(
                trigger,
                equipment_id=equipment.id,
                tenant_id=equipment.tenant_id,
                created_at=self.clock(),
            )
            try:
                alert = self.repository.create_if_absent(alert)
            except AlertConflictError:
                # Lost the race against a concurrent ingest
                logger.debug(
                    f"Concurrent {trigger.type.value} alert for equipment "
                    f"{equipment.id} - skipped"
                )
                continue

            logger.info(
                f"🔔 Created {alert.severity.value} alert for equipment "
                f"{equipment.id}: {alert.title}"
            )
            created.append(alert)
            self._notify(alert)

        return created

    def _notify(self, alert: MaintenanceAlert) -> None:
        if self.notifier is None or alert.severity not in NOTIFY_SEVERITIES:
            return
        try:
            self.notifier(alert)
        except Exception as e:
            logger.error(f"Notifier failed for alert {alert.id}: {e}", exc_info=True)

    # ═══════════════════════════════════════════════════════════════════════════
    # AUTO-RESOLUTION
    # ═══════════════════════════════════════════════════════════════════════════

    def auto_resolve(
        self,
        equipment: EquipmentDescriptor,
        reading: TelemetryReading,
        skip_types: FrozenSet[MaintenanceAlertType] = frozenset(),
    ) -> List[MaintenanceAlert]:
        """
        Resolve active alerts whose metric is back inside its recovery band.

        Only HIGH_VIBRATION, HIGH_TEMPERATURE and LOW_EFFICIENCY recover
        from telemetry; other types stay open until an operator closes them.
        Types in skip_types are left alone; process_reading passes the types
        the same reading just triggered.
        """
        resolved: List[MaintenanceAlert] = []

        for alert in self.repository.find_active_alerts(equipment.id):
            if alert.type in skip_types:
                continue
            text = self._recovery_text(alert.type, reading)
            if text is None:
                continue

            updated = self.repository.update_alert_status(
                alert.id,
                AlertStatus.RESOLVED,
                resolved_at=self.clock(),
                resolution=f"Auto-resolved: {text}",
            )
            logger.info(f"✅ Auto-resolved alert {alert.id}: {text}")
            resolved.append(updated)

        return resolved

    @staticmethod
    def _recovery_text(
        alert_type: MaintenanceAlertType, reading: TelemetryReading
    ) -> Optional[str]:
        if alert_type == MaintenanceAlertType.HIGH_VIBRATION:
            vibration = usable_value(reading.vibration)
            if vibration is not None and vibration < VIBRATION_RECOVERY:
                return f"Vibration returned to normal levels ({vibration:.1f}/10)"

        elif alert_type == MaintenanceAlertType.HIGH_TEMPERATURE:
            temperature = usable_value(reading.temperature)
            if temperature is not None and temperature < TEMPERATURE_RECOVERY_C:
                return f"Temperature returned to normal ({fmt_number(temperature)}°C)"

        elif alert_type == MaintenanceAlertType.LOW_EFFICIENCY:
            efficiency = usable_value(reading.efficiency_score)
            if efficiency is not None and efficiency > EFFICIENCY_RECOVERY:
                return f"Efficiency improved to {fmt_number(efficiency)}%"

        return None

    def process_reading(
        self,
        equipment: EquipmentDescriptor,
        reading: TelemetryReading,
        now: Optional[datetime] = None,
    ) -> Tuple[List[MaintenanceAlert], List[MaintenanceAlert]]:
        """
        Detect, create and auto-resolve for one reading.

        A reading inside the gap between a trigger threshold and its
        recovery band never resolves the alert it triggers, so a steady
        value does not flap between creation and resolution.

        Returns:
            (created alerts, resolved alerts)
        """
        triggers = self.detector.detect(reading, equipment, now=now or self.clock())
        created = self.ingest(equipment, triggers)
        triggered = frozenset(t.type for t in triggers)
        resolved = self.auto_resolve(equipment, reading, skip_types=triggered)
        return created, resolved

    # ═══════════════════════════════════════════════════════════════════════════
    # OPERATOR ACTIONS
    # ═══════════════════════════════════════════════════════════════════════════

    def get_alert(self, alert_id: str) -> MaintenanceAlert:
        alert = self.repository.get_alert(alert_id)
        if alert is None:
            raise NotFoundError("MaintenanceAlert", alert_id)
        return alert

    def acknowledge(self, alert_id: str, notes: Optional[str] = None) -> MaintenanceAlert:
        """
        Mark an alert ACKNOWLEDGED (from any status).

        Raises:
            NotFoundError: unknown alert id
            AlertConflictError: the alert was resolved and a newer active
                alert of the same type exists for the equipment
        """
        alert = self.repository.update_alert_status(
            alert_id,
            AlertStatus.ACKNOWLEDGED,
            acknowledged_at=self.clock(),
            acknowledgement_notes=notes,
        )
        logger.info(f"Alert {alert_id} acknowledged")
        return alert

    def resolve(self, alert_id: str, resolution: str) -> MaintenanceAlert:
        """
        Mark an alert RESOLVED with an operator resolution text.

        Raises:
            ValidationError: empty or blank resolution
            NotFoundError: unknown alert id
        """
        if resolution is None or not str(resolution).strip():
            raise ValidationError("Resolution text is required", field="resolution")

        alert = self.repository.update_alert_status(
            alert_id,
            AlertStatus.RESOLVED,
            resolved_at=self.clock(),
            resolution=resolution,
        )
        logger.info(f"Alert {alert_id} resolved: {resolution}")
        return alert

    def list_alerts(
        self, tenant_id: str, filters: Optional[AlertFilters] = None
    ) -> List[MaintenanceAlert]:
        return self.repository.list_alerts(tenant_id, filters)
