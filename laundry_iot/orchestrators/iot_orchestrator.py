"""
IoT Orchestrator

Combines repositories and services into the operations a service boundary
calls: telemetry ingestion with alerting, optimization recommendations,
savings and usage summaries, and operator alert actions.

Every tenant-facing query only ever sees that tenant's equipment.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple, Union

from laundry_iot.errors import NotFoundError, utc_now
from laundry_iot.ingestion import parse_reading
from laundry_iot.models.alerts import AlertFilters, MaintenanceAlert
from laundry_iot.models.optimization import (
    OptimizationRecommendation,
    SavingsSummary,
    UsageSummary,
)
from laundry_iot.models.telemetry import TelemetryReading
from laundry_iot.repositories.alert_repository import AlertRepository, InMemoryAlertRepository
from laundry_iot.repositories.telemetry_repository import (
    InMemoryEquipmentRegistry,
    InMemoryTelemetryRepository,
)
from laundry_iot.services.alert_lifecycle import AlertLifecycleManager, Notifier
from laundry_iot.services.recommendation_engine import RecommendationEngine
from laundry_iot.services.usage_aggregator import UsageAggregator
from laundry_iot.settings import OptimizationSettings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Outcome of ingesting one reading"""

    reading: TelemetryReading
    created: List[MaintenanceAlert]
    resolved: List[MaintenanceAlert]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reading": self.reading.to_dict(),
            "createdAlerts": [a.to_dict() for a in self.created],
            "resolvedAlerts": [a.to_dict() for a in self.resolved],
        }


class IoTOrchestrator:
    """
    High-level IoT operations orchestrator.

    Coordinates the equipment registry, telemetry history and alert store
    with the alerting and optimization services.
    """

    def __init__(
        self,
        registry: Optional[InMemoryEquipmentRegistry] = None,
        telemetry: Optional[InMemoryTelemetryRepository] = None,
        alert_repository: Optional[AlertRepository] = None,
        settings: Optional[OptimizationSettings] = None,
        notifier: Optional[Notifier] = None,
        clock=utc_now,
    ):
        self.registry = registry or InMemoryEquipmentRegistry()
        self.telemetry = telemetry or InMemoryTelemetryRepository()
        self.alert_repository = alert_repository or InMemoryAlertRepository()
        self.settings = settings or get_settings().optimization
        self.clock = clock

        self.alerts = AlertLifecycleManager(self.alert_repository, notifier=notifier, clock=clock)
        self.aggregator = UsageAggregator(self.settings)
        self.engine = RecommendationEngine(self.settings)

        logger.info("IoTOrchestrator initialized with all services")

    # ═══════════════════════════════════════════════════════════════════════════
    # TELEMETRY
    # ═══════════════════════════════════════════════════════════════════════════

    def ingest_reading(
        self,
        payload: Union[Dict[str, Any], TelemetryReading],
        now: Optional[datetime] = None,
    ) -> IngestResult:
        """
        Validate, store and evaluate one reading.

        Raises:
            ValidationError: payload rejected at the boundary
            NotFoundError: unknown equipment id
        """
        reading = payload if isinstance(payload, TelemetryReading) else parse_reading(payload)
        equipment = self.registry.get(reading.equipment_id)

        self.telemetry.add_reading(reading)
        created, resolved = self.alerts.process_reading(equipment, reading, now=now)
        return IngestResult(reading=reading, created=created, resolved=resolved)

    def _window(
        self,
        tenant_id: str,
        days: int,
        equipment_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[List[TelemetryReading], datetime]:
        now = now or self.clock()
        if equipment_id is not None:
            equipment = self.registry.get(equipment_id)
            if equipment.tenant_id != tenant_id:
                # Another tenant's equipment is indistinguishable from a missing one
                raise NotFoundError("Equipment", equipment_id)
            equipment_ids = [equipment_id]
        else:
            equipment_ids = [e.id for e in self.registry.list_for_tenant(tenant_id)]

        readings = self.telemetry.readings_since(equipment_ids, now - timedelta(days=days))
        return readings, now

    # ═══════════════════════════════════════════════════════════════════════════
    # OPTIMIZATION
    # ═══════════════════════════════════════════════════════════════════════════

    def generate_recommendations(
        self,
        tenant_id: str,
        equipment_id: Optional[str] = None,
        days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[OptimizationRecommendation]:
        """Recommendations over the usage window; empty when there is no telemetry"""
        days = days or self.settings.usage_window_days
        readings, _ = self._window(tenant_id, days, equipment_id=equipment_id, now=now)
        if not readings:
            logger.info(f"No telemetry for tenant {tenant_id} in the last {days} days")
            return []

        metrics = self.aggregator.aggregate(readings, window_days=days)
        return self.engine.recommend(metrics)

    def potential_savings(
        self,
        tenant_id: str,
        equipment_id: Optional[str] = None,
        days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> SavingsSummary:
        recommendations = self.generate_recommendations(
            tenant_id, equipment_id=equipment_id, days=days, now=now
        )
        return self.engine.total_savings(recommendations)

    def usage_summary(
        self, tenant_id: str, days: int = 30, now: Optional[datetime] = None
    ) -> UsageSummary:
        readings, now = self._window(tenant_id, days, now=now)
        return self.aggregator.summarize(readings, days, now=now)

    # ═══════════════════════════════════════════════════════════════════════════
    # ALERTS
    # ═══════════════════════════════════════════════════════════════════════════

    def list_alerts(
        self, tenant_id: str, filters: Optional[AlertFilters] = None
    ) -> List[MaintenanceAlert]:
        return self.alerts.list_alerts(tenant_id, filters)

    def _check_alert_tenant(self, alert_id: str, tenant_id: Optional[str]) -> None:
        # Another tenant's alert looks exactly like an unknown id
        if tenant_id is None:
            return
        alert = self.alerts.get_alert(alert_id)
        if alert.tenant_id != tenant_id:
            logger.warning(f"Tenant {tenant_id} attempted action on alert {alert_id}")
            raise NotFoundError("MaintenanceAlert", alert_id)

    def acknowledge_alert(
        self, alert_id: str, notes: Optional[str] = None, tenant_id: Optional[str] = None
    ) -> MaintenanceAlert:
        self._check_alert_tenant(alert_id, tenant_id)
        return self.alerts.acknowledge(alert_id, notes=notes)

    def resolve_alert(
        self, alert_id: str, resolution: str, tenant_id: Optional[str] = None
    ) -> MaintenanceAlert:
        self._check_alert_tenant(alert_id, tenant_id)
        return self.alerts.resolve(alert_id, resolution)
