"""
Maintenance Alert Models
========================

Enums, candidate triggers and the mutable alert record owned by the
alert lifecycle manager.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class MaintenanceAlertType(str, Enum):
    """Types of maintenance alerts"""

    HIGH_VIBRATION = "HIGH_VIBRATION"
    HIGH_TEMPERATURE = "HIGH_TEMPERATURE"
    LOW_EFFICIENCY = "LOW_EFFICIENCY"
    POWER_SPIKE = "POWER_SPIKE"
    PREVENTIVE_MAINTENANCE = "PREVENTIVE_MAINTENANCE"
    FILTER_REPLACEMENT = "FILTER_REPLACEMENT"


class AlertSeverity(str, Enum):
    """Alert severity levels, LOW < MEDIUM < HIGH < CRITICAL"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AlertSeverity.LOW: 0,
    AlertSeverity.MEDIUM: 1,
    AlertSeverity.HIGH: 2,
    AlertSeverity.CRITICAL: 3,
}


class AlertStatus(str, Enum):
    """Alert lifecycle states"""

    OPEN = "OPEN"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    RESOLVED = "RESOLVED"

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_STATUSES


ACTIVE_STATUSES = frozenset({AlertStatus.OPEN, AlertStatus.ACKNOWLEDGED})


@dataclass(frozen=True)
class AlertTrigger:
    """Candidate alert produced by a single detection rule"""

    type: MaintenanceAlertType
    severity: AlertSeverity
    title: str
    description: str
    recommendation: str
    trigger_data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MaintenanceAlert:
    """Persisted maintenance alert"""

    equipment_id: str
    tenant_id: str
    type: MaintenanceAlertType
    severity: AlertSeverity
    title: str
    description: str
    recommendation: str
    created_at: datetime
    trigger_data: Dict[str, Any] = field(default_factory=dict)
    status: AlertStatus = AlertStatus.OPEN
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    acknowledged_at: Optional[datetime] = None
    acknowledgement_notes: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution: Optional[str] = None

    @classmethod
    def from_trigger(
        cls, trigger: AlertTrigger, equipment_id: str, tenant_id: str, created_at: datetime
    ) -> "MaintenanceAlert":
        return cls(
            equipment_id=equipment_id,
            tenant_id=tenant_id,
            type=trigger.type,
            severity=trigger.severity,
            title=trigger.title,
            description=trigger.description,
            recommendation=trigger.recommendation,
            trigger_data=dict(trigger.trigger_data),
            created_at=created_at,
        )

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "equipmentId": self.equipment_id,
            "tenantId": self.tenant_id,
            "type": self.type.value,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "recommendation": self.recommendation,
            "triggerData": self.trigger_data,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "acknowledgedAt": self.acknowledged_at.isoformat() if self.acknowledged_at else None,
            "acknowledgementNotes": self.acknowledgement_notes,
            "resolvedAt": self.resolved_at.isoformat() if self.resolved_at else None,
            "resolution": self.resolution,
        }


@dataclass
class AlertFilters:
    """Optional filters for alert listing (always tenant scoped)"""

    status: Optional[AlertStatus] = None
    severity: Optional[AlertSeverity] = None
    type: Optional[MaintenanceAlertType] = None
    equipment_id: Optional[str] = None

    def matches(self, alert: MaintenanceAlert) -> bool:
        if self.status is not None and alert.status != self.status:
            return False
        if self.severity is not None and alert.severity != self.severity:
            return False
        if self.type is not None and alert.type != self.type:
            return False
        if self.equipment_id is not None and alert.equipment_id != self.equipment_id:
            return False
        return True


def alert_sort_key(alert: MaintenanceAlert):
    """Severity descending, then most recent first"""
    return (-alert.severity.rank, -alert.created_at.timestamp())
