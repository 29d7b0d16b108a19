"""Data models for telemetry, alerts and optimization."""

from .alerts import (
    ACTIVE_STATUSES,
    AlertFilters,
    AlertSeverity,
    AlertStatus,
    AlertTrigger,
    MaintenanceAlert,
    MaintenanceAlertType,
)
from .optimization import (
    OptimizationRecommendation,
    PotentialSavings,
    RecommendationCategory,
    RecommendationPriority,
    SavingsPeriod,
    SavingsSummary,
    SavingsUnit,
    UsageMetrics,
    UsageSummary,
    round_half_up,
)
from .telemetry import EquipmentDescriptor, EquipmentType, TelemetryReading

__all__ = [
    "ACTIVE_STATUSES",
    "AlertFilters",
    "AlertSeverity",
    "AlertStatus",
    "AlertTrigger",
    "EquipmentDescriptor",
    "EquipmentType",
    "MaintenanceAlert",
    "MaintenanceAlertType",
    "OptimizationRecommendation",
    "PotentialSavings",
    "RecommendationCategory",
    "RecommendationPriority",
    "SavingsPeriod",
    "SavingsSummary",
    "SavingsUnit",
    "TelemetryReading",
    "UsageMetrics",
    "UsageSummary",
    "round_half_up",
]
