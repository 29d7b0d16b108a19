"""
Tests for the IoT Orchestrator

End-to-end flows over the in-memory collaborators: ingestion with
alerting, tenant-scoped optimization queries and operator actions.
"""

from datetime import timedelta

import pytest

from laundry_iot.errors import NotFoundError, ValidationError
from laundry_iot.models.alerts import AlertSeverity, AlertStatus, MaintenanceAlertType
from laundry_iot.models.optimization import RecommendationCategory
from laundry_iot.orchestrators import IoTOrchestrator
from laundry_iot.repositories import InMemoryEquipmentRegistry
from tests.fixtures.telemetry_fixtures import FIXED_NOW, make_reading


@pytest.fixture
def orchestrator(washer, dryer, other_tenant_washer, optimization_settings, clock, notifications):
    registry = InMemoryEquipmentRegistry([washer, dryer, other_tenant_washer])
    return IoTOrchestrator(
        registry=registry,
        settings=optimization_settings,
        notifier=notifications.append,
        clock=clock,
    )


def _load_hour(orchestrator, equipment_id="washer-1", power_watts=3000.0):
    """Twelve 5-minute readings in the hour before FIXED_NOW"""
    start = FIXED_NOW - timedelta(hours=1)
    orchestrator.telemetry.add_readings(
        make_reading(
            equipment_id,
            timestamp=start + timedelta(minutes=5 * i),
            power_watts=power_watts,
            water_liters=45.0,
            cycle_type="WASH",
            cycle_count=10 + i,
        )
        for i in range(12)
    )


class TestIngestReading:
    """Validate -> look up -> store -> detect/resolve"""

    def test_ingest_creates_alert(self, orchestrator, sample_payload, notifications):
        """WASHER at 90°C stores the reading and opens a CRITICAL alert"""
        sample_payload["temperature"] = 90

        result = orchestrator.ingest_reading(sample_payload)

        assert orchestrator.telemetry.count("washer-1") == 1
        assert [a.type for a in result.created] == [MaintenanceAlertType.HIGH_TEMPERATURE]
        assert result.created[0].severity == AlertSeverity.CRITICAL
        assert result.created[0].tenant_id == "tenant-a"
        assert result.resolved == []
        assert notifications == result.created

    def test_duplicate_reading_does_not_duplicate_alert(self, orchestrator, sample_payload):
        sample_payload["temperature"] = 90
        orchestrator.ingest_reading(sample_payload)
        second = orchestrator.ingest_reading(sample_payload)

        assert second.created == []
        assert len(orchestrator.list_alerts("tenant-a")) == 1
        assert orchestrator.telemetry.count("washer-1") == 2

    def test_recovery_reading_resolves(self, orchestrator, sample_payload, clock):
        """A later normal temperature auto-resolves the alert"""
        sample_payload["temperature"] = 90
        alert = orchestrator.ingest_reading(sample_payload).created[0]

        clock.advance(minutes=5)
        sample_payload["temperature"] = 65
        result = orchestrator.ingest_reading(sample_payload)

        assert [a.id for a in result.resolved] == [alert.id]
        assert result.resolved[0].status == AlertStatus.RESOLVED
        assert result.resolved[0].resolution == "Auto-resolved: Temperature returned to normal (65°C)"
        assert result.resolved[0].resolved_at == clock.now

    def test_unknown_equipment(self, orchestrator, sample_payload):
        """Unknown equipment is NotFound and nothing is stored"""
        sample_payload["equipmentId"] = "ghost-7"

        with pytest.raises(NotFoundError):
            orchestrator.ingest_reading(sample_payload)
        assert orchestrator.telemetry.count() == 0

    def test_invalid_payload(self, orchestrator, sample_payload):
        sample_payload["vibration"] = 12
        with pytest.raises(ValidationError):
            orchestrator.ingest_reading(sample_payload)
        assert orchestrator.telemetry.count() == 0

    def test_reading_object_accepted(self, orchestrator):
        result = orchestrator.ingest_reading(make_reading("dryer-1", vibration=7.5))
        assert result.created[0].severity == AlertSeverity.CRITICAL

    def test_result_to_dict(self, orchestrator, sample_payload):
        data = orchestrator.ingest_reading(sample_payload).to_dict()
        assert data["reading"]["equipmentId"] == "washer-1"
        assert data["createdAlerts"] == []
        assert data["resolvedAlerts"] == []


class TestOptimizationQueries:
    """Recommendations, savings and usage summary"""

    def test_no_telemetry_no_recommendations(self, orchestrator):
        """Empty window returns an empty list, not just maintenance"""
        assert orchestrator.generate_recommendations("tenant-a", now=FIXED_NOW) == []

    def test_recommendations_for_tenant(self, orchestrator):
        """3 kW average triggers the energy recommendation"""
        _load_hour(orchestrator)
        recs = orchestrator.generate_recommendations("tenant-a", now=FIXED_NOW)

        assert recs[0].category == RecommendationCategory.ENERGY
        assert recs[0].potential_savings.amount == 94
        assert recs[-1].category == RecommendationCategory.MAINTENANCE

    def test_other_tenant_sees_nothing(self, orchestrator):
        _load_hour(orchestrator)
        assert orchestrator.generate_recommendations("tenant-b", now=FIXED_NOW) == []

    def test_equipment_filter(self, orchestrator):
        """Restricting to one machine ignores the others"""
        _load_hour(orchestrator, "dryer-1", power_watts=3000.0)
        _load_hour(orchestrator, "washer-1", power_watts=1000.0)

        washer_recs = orchestrator.generate_recommendations(
            "tenant-a", equipment_id="washer-1", now=FIXED_NOW
        )
        assert [r.category for r in washer_recs] == [RecommendationCategory.MAINTENANCE]

    def test_other_tenants_equipment_is_not_found(self, orchestrator):
        with pytest.raises(NotFoundError):
            orchestrator.generate_recommendations(
                "tenant-a", equipment_id="washer-b1", now=FIXED_NOW
            )

    def test_old_readings_outside_window(self, orchestrator):
        """Only readings within the last `days` are aggregated"""
        orchestrator.telemetry.add_reading(
            make_reading(timestamp=FIXED_NOW - timedelta(days=40), power_watts=9000.0)
        )
        assert orchestrator.generate_recommendations("tenant-a", now=FIXED_NOW) == []
        assert orchestrator.generate_recommendations("tenant-a", days=60, now=FIXED_NOW)

    def test_potential_savings(self, orchestrator):
        _load_hour(orchestrator)
        savings = orchestrator.potential_savings("tenant-a", now=FIXED_NOW)

        assert savings.monthly == 94
        assert savings.annually == 1128
        assert set(savings.breakdown) == {"ENERGY", "MAINTENANCE"}

    def test_usage_summary_is_tenant_scoped(self, orchestrator):
        """Other tenants' telemetry never leaks into the summary"""
        _load_hour(orchestrator)
        _load_hour(orchestrator, "washer-b1", power_watts=9000.0)

        summary = orchestrator.usage_summary("tenant-a", days=7, now=FIXED_NOW)

        assert summary.days == 7
        assert summary.total_kwh == 3.0
        assert summary.total_liters == 540
        assert summary.end_date == FIXED_NOW

    def test_usage_summary_rejects_bad_days(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.usage_summary("tenant-a", days=0, now=FIXED_NOW)


class TestAlertActions:
    """Operator pass-throughs"""

    @pytest.fixture
    def alert(self, orchestrator):
        return orchestrator.ingest_reading(make_reading(vibration=6.0)).created[0]

    def test_list_alerts(self, orchestrator, alert):
        assert [a.id for a in orchestrator.list_alerts("tenant-a")] == [alert.id]
        assert orchestrator.list_alerts("tenant-b") == []

    def test_acknowledge(self, orchestrator, alert, clock):
        acked = orchestrator.acknowledge_alert(alert.id, notes="tech on the way")

        assert acked.status == AlertStatus.ACKNOWLEDGED
        assert acked.acknowledged_at == clock.now
        assert acked.acknowledgement_notes == "tech on the way"

    def test_resolve(self, orchestrator, alert):
        resolved = orchestrator.resolve_alert(alert.id, "Replaced drum bearing")
        assert resolved.status == AlertStatus.RESOLVED
        assert resolved.resolution == "Replaced drum bearing"

    def test_resolve_requires_text(self, orchestrator, alert):
        with pytest.raises(ValidationError):
            orchestrator.resolve_alert(alert.id, "  ")

    def test_unknown_alert(self, orchestrator):
        with pytest.raises(NotFoundError):
            orchestrator.acknowledge_alert("missing")

    def test_acknowledge_with_matching_tenant(self, orchestrator, alert):
        acked = orchestrator.acknowledge_alert(alert.id, tenant_id="tenant-a")
        assert acked.status == AlertStatus.ACKNOWLEDGED

    def test_other_tenant_cannot_acknowledge(self, orchestrator, alert):
        """Another tenant's alert is reported as not found and left untouched"""
        with pytest.raises(NotFoundError) as exc_info:
            orchestrator.acknowledge_alert(alert.id, notes="not mine", tenant_id="tenant-b")

        assert exc_info.value.details["resource_id"] == alert.id
        stored = orchestrator.alerts.get_alert(alert.id)
        assert stored.status == AlertStatus.OPEN
        assert stored.acknowledgement_notes is None

    def test_other_tenant_cannot_resolve(self, orchestrator, alert):
        with pytest.raises(NotFoundError):
            orchestrator.resolve_alert(alert.id, "Closed from elsewhere", tenant_id="tenant-b")

        assert orchestrator.alerts.get_alert(alert.id).status == AlertStatus.OPEN

    def test_unknown_alert_with_tenant(self, orchestrator):
        with pytest.raises(NotFoundError):
            orchestrator.resolve_alert("missing", "done", tenant_id="tenant-a")
