"""Repository layer for alert and telemetry persistence."""

from .alert_repository import AlertRepository, InMemoryAlertRepository
from .sql_alert_repository import SqlAlertRepository
from .telemetry_repository import InMemoryEquipmentRegistry, InMemoryTelemetryRepository

__all__ = [
    "AlertRepository",
    "InMemoryAlertRepository",
    "SqlAlertRepository",
    "InMemoryEquipmentRegistry",
    "InMemoryTelemetryRepository",
]
