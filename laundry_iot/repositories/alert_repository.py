"""
Alert Repository - maintenance alert persistence

Defines the persistence contract used by the alert lifecycle manager and
an in-process implementation. The deduplication invariant (one OPEN or
ACKNOWLEDGED alert per equipment + type) is enforced here, in
create_if_absent and update_alert_status, not in the detection logic.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Optional

import structlog

from laundry_iot.errors import AlertConflictError, NotFoundError
from laundry_iot.models.alerts import (
    AlertFilters,
    AlertStatus,
    MaintenanceAlert,
    MaintenanceAlertType,
    alert_sort_key,
)

logger = structlog.get_logger(__name__)

# Columns an operator/system status change may touch
UPDATABLE_FIELDS = frozenset(
    {"acknowledged_at", "acknowledgement_notes", "resolved_at", "resolution"}
)


class AlertRepository(ABC):
    """Persistence interface for maintenance alerts."""

    @abstractmethod
    def find_open_alert(
        self, equipment_id: str, alert_type: MaintenanceAlertType
    ) -> Optional[MaintenanceAlert]:
        """Active (OPEN/ACKNOWLEDGED) alert for equipment + type, if any."""

    @abstractmethod
    def find_active_alerts(self, equipment_id: str) -> List[MaintenanceAlert]:
        """All OPEN/ACKNOWLEDGED alerts for one equipment."""

    @abstractmethod
    def create_alert(self, alert: MaintenanceAlert) -> MaintenanceAlert:
        """Insert without the duplicate check."""

    @abstractmethod
    def create_if_absent(self, alert: MaintenanceAlert) -> MaintenanceAlert:
        """
        Atomically insert unless an active alert of the same
        (equipment, type) exists.

        Raises:
            AlertConflictError: an active alert already exists
        """

    @abstractmethod
    def get_alert(self, alert_id: str) -> Optional[MaintenanceAlert]:
        """Alert by id or None."""

    @abstractmethod
    def update_alert_status(
        self, alert_id: str, status: AlertStatus, **fields
    ) -> MaintenanceAlert:
        """
        Set status plus timestamp/resolution fields.

        Raises:
            NotFoundError: unknown alert id
            AlertConflictError: moving to OPEN/ACKNOWLEDGED while another
                active alert holds the same (equipment, type)
        """

    @abstractmethod
    def list_alerts(
        self, tenant_id: str, filters: Optional[AlertFilters] = None
    ) -> List[MaintenanceAlert]:
        """Tenant alerts, severity desc then newest first."""


def _check_fields(fields: Dict) -> None:
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update alert fields: {sorted(unknown)}")


class InMemoryAlertRepository(AlertRepository):
    """Dict-backed store; a lock makes create_if_absent atomic in-process."""

    def __init__(self):
        self._alerts: Dict[str, MaintenanceAlert] = {}
        self._lock = threading.Lock()

    def _active_for(
        self, equipment_id: str, alert_type: MaintenanceAlertType
    ) -> Optional[MaintenanceAlert]:
        for alert in self._alerts.values():
            if (
                alert.equipment_id == equipment_id
                and alert.type == alert_type
                and alert.is_active
            ):
                return alert
        return None

    def find_open_alert(self, equipment_id, alert_type):
        with self._lock:
            alert = self._active_for(equipment_id, alert_type)
            return replace(alert) if alert else None

    def find_active_alerts(self, equipment_id):
        with self._lock:
            return [
                replace(a)
                for a in self._alerts.values()
                if a.equipment_id == equipment_id and a.is_active
            ]

    def create_alert(self, alert):
        with self._lock:
            self._alerts[alert.id] = replace(alert)
        logger.debug("alert_created", alert_id=alert.id, equipment_id=alert.equipment_id)
        return replace(alert)

    def create_if_absent(self, alert):
        with self._lock:
            if self._active_for(alert.equipment_id, alert.type) is not None:
                raise AlertConflictError(alert.equipment_id, alert.type.value)
            self._alerts[alert.id] = replace(alert)
        logger.debug("alert_created", alert_id=alert.id, equipment_id=alert.equipment_id)
        return replace(alert)

    def get_alert(self, alert_id):
        with self._lock:
            alert = self._alerts.get(alert_id)
            return replace(alert) if alert else None

    def update_alert_status(self, alert_id, status, **fields):
        _check_fields(fields)
        with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                raise NotFoundError("MaintenanceAlert", alert_id)
            if status.is_active:
                other = self._active_for(alert.equipment_id, alert.type)
                if other is not None and other.id != alert_id:
                    raise AlertConflictError(alert.equipment_id, alert.type.value)
            updated = replace(alert, status=status, **fields)
            self._alerts[alert_id] = updated
        logger.debug("alert_status_updated", alert_id=alert_id, status=status.value)
        return replace(updated)

    def list_alerts(self, tenant_id, filters=None):
        filters = filters or AlertFilters()
        with self._lock:
            alerts = [
                replace(a)
                for a in self._alerts.values()
                if a.tenant_id == tenant_id and filters.matches(a)
            ]
        return sorted(alerts, key=alert_sort_key)

    def __len__(self) -> int:
        return len(self._alerts)
