"""
Recommendation Engine Service

Derives ranked cost-saving recommendations from UsageMetrics:

- ENERGY: average draw above 2.5 kW (baseline 2.0 kW)
- SCHEDULING: peak hours inside 12:00-18:00, or high cycle volume
- WATER: more than 50 L per wash cycle (target 40 L)
- MAINTENANCE: always, 15% of estimated cost

All savings are USD per month. Pure: no I/O.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from laundry_iot.models.optimization import (
    OptimizationRecommendation,
    PotentialSavings,
    RecommendationCategory,
    RecommendationPriority,
    SavingsPeriod,
    SavingsSummary,
    SavingsUnit,
    UsageMetrics,
    round_half_up,
)
from laundry_iot.settings import OptimizationSettings, get_settings

logger = logging.getLogger(__name__)

# Energy
HIGH_POWER_KW = 2.5
BASELINE_POWER_KW = 2.0
ENERGY_HIGH_PRIORITY_USD = 50
PEAK_WINDOW = (12, 18)  # inclusive, hour of day
OFF_PEAK_SHIFT_SHARE = 0.3
OFF_PEAK_DISCOUNT = 0.05

# Water
HIGH_WATER_PER_CYCLE_L = 50
TARGET_WATER_PER_CYCLE_L = 40
WATER_HIGH_PRIORITY_USD = 20

# Volume / maintenance
HIGH_VOLUME_CYCLES = 200
BATCH_EFFICIENCY_GAIN = 0.10
MAINTENANCE_EFFICIENCY_GAIN = 0.15

ENERGY_ACTIONS = [
    "Clean lint filters and ventilation systems",
    "Inspect heating elements for buildup",
    "Check for mechanical resistance or worn parts",
    "Consider upgrading to energy-efficient equipment",
    "Schedule professional energy audit",
]

OFF_PEAK_ACTIONS = [
    "Schedule bulk laundry processing after 10pm",
    "Pre-stage orders for early morning processing",
    "Negotiate time-of-use electricity rates with utility company",
    "Install smart timers for equipment startup",
]

WATER_ACTIONS = [
    "Check for water leaks in hoses and connections",
    "Calibrate water inlet valves",
    "Use optimal load sizes to maximize efficiency",
    "Install water reclamation system for rinse water reuse",
    "Upgrade to high-efficiency nozzles",
]

BATCH_ACTIONS = [
    "Group similar fabric types for consecutive processing",
    "Schedule full loads to avoid partial cycles",
    "Implement order consolidation system",
    "Train staff on efficient load management",
    "Use predictive scheduling based on order patterns",
]

MAINTENANCE_ACTIONS = [
    "Clean lint filters weekly",
    "Inspect and lubricate moving parts quarterly",
    "Descale heating elements every 6 months",
    "Check electrical connections annually",
    "Schedule professional inspection every 90 days",
]


def _monthly_usd(amount: float) -> PotentialSavings:
    return PotentialSavings(
        amount=round_half_up(amount), unit=SavingsUnit.USD, period=SavingsPeriod.MONTHLY
    )


class RecommendationEngine:
    """Rule-based optimization recommendations."""

    def __init__(self, settings: Optional[OptimizationSettings] = None):
        self.settings = settings or get_settings().optimization

    def recommend(self, metrics: UsageMetrics) -> List[OptimizationRecommendation]:
        """
        Build recommendations for a metrics snapshot.

        Returns:
            Recommendations sorted by potential savings, largest first
            (stable for equal amounts)
        """
        recommendations: List[OptimizationRecommendation] = []
        recommendations.extend(self._analyze_energy(metrics))
        recommendations.extend(self._analyze_water(metrics))
        recommendations.extend(self._analyze_volume(metrics))
        recommendations.extend(self._analyze_maintenance(metrics))

        recommendations.sort(key=lambda r: r.potential_savings.amount, reverse=True)

        logger.info(
            f"Generated {len(recommendations)} recommendations "
            f"({[r.category.value for r in recommendations]})"
        )
        return recommendations

    # ───────────────────────────────────────────────────────────────────────────
    # RULES
    # ───────────────────────────────────────────────────────────────────────────

    def _analyze_energy(self, metrics: UsageMetrics) -> List[OptimizationRecommendation]:
        recommendations = []
        rate = self.settings.energy_rate_per_kwh

        avg_kw = metrics.average_power_watts / 1000.0
        if avg_kw > HIGH_POWER_KW:
            savings = (avg_kw - BASELINE_POWER_KW) * 24 * 30 * rate
            recommendations.append(
                OptimizationRecommendation(
                    category=RecommendationCategory.ENERGY,
                    priority=(
                        RecommendationPriority.HIGH
                        if savings > ENERGY_HIGH_PRIORITY_USD
                        else RecommendationPriority.MEDIUM
                    ),
                    title="High Energy Consumption Detected",
                    description=(
                        f"Your equipment is consuming an average of {avg_kw:.1f}kW, which is "
                        f"above the industry average of {BASELINE_POWER_KW:.1f}kW. This may "
                        f"indicate inefficiencies."
                    ),
                    potential_savings=_monthly_usd(savings),
                    action_items=list(ENERGY_ACTIONS),
                )
            )

        start, end = PEAK_WINDOW
        if any(start <= hour <= end for hour in metrics.peak_usage_hours):
            shifted_kwh = metrics.total_energy_kwh * OFF_PEAK_SHIFT_SHARE * OFF_PEAK_DISCOUNT
            hours = ", ".join(str(h) for h in metrics.peak_usage_hours)
            recommendations.append(
                OptimizationRecommendation(
                    category=RecommendationCategory.SCHEDULING,
                    priority=RecommendationPriority.MEDIUM,
                    title="Shift Operations to Off-Peak Hours",
                    description=(
                        f"You're operating heavily during peak hours ({hours}:00). Shifting "
                        f"some operations to off-peak hours (10pm-6am) can reduce energy costs."
                    ),
                    potential_savings=_monthly_usd(shifted_kwh * rate),
                    action_items=list(OFF_PEAK_ACTIONS),
                )
            )

        return recommendations

    def _analyze_water(self, metrics: UsageMetrics) -> List[OptimizationRecommendation]:
        if metrics.average_water_per_cycle <= HIGH_WATER_PER_CYCLE_L:
            return []

        excess_liters = metrics.average_water_per_cycle - TARGET_WATER_PER_CYCLE_L
        savings = (
            excess_liters
            * metrics.total_cycles
            / self.settings.liters_per_gallon
            * self.settings.water_rate_per_gallon
        )
        return [
            OptimizationRecommendation(
                category=RecommendationCategory.WATER,
                priority=(
                    RecommendationPriority.HIGH
                    if savings > WATER_HIGH_PRIORITY_USD
                    else RecommendationPriority.MEDIUM
                ),
                title="Excessive Water Consumption",
                description=(
                    f"Average water usage per cycle ({metrics.average_water_per_cycle:.1f}L) "
                    f"exceeds industry best practices ({TARGET_WATER_PER_CYCLE_L}L). Reducing "
                    f"consumption can cut costs and support sustainability."
                ),
                potential_savings=_monthly_usd(savings),
                action_items=list(WATER_ACTIONS),
            )
        ]

    def _analyze_volume(self, metrics: UsageMetrics) -> List[OptimizationRecommendation]:
        if metrics.total_cycles <= HIGH_VOLUME_CYCLES:
            return []

        return [
            OptimizationRecommendation(
                category=RecommendationCategory.SCHEDULING,
                priority=RecommendationPriority.MEDIUM,
                title="Optimize Batch Processing",
                description=(
                    f"With {metrics.total_cycles} cycles per month, implementing strategic "
                    f"batch processing can improve equipment utilization and reduce energy costs."
                ),
                potential_savings=_monthly_usd(
                    metrics.estimated_monthly_cost * BATCH_EFFICIENCY_GAIN
                ),
                action_items=list(BATCH_ACTIONS),
            )
        ]

    def _analyze_maintenance(self, metrics: UsageMetrics) -> List[OptimizationRecommendation]:
        return [
            OptimizationRecommendation(
                category=RecommendationCategory.MAINTENANCE,
                priority=RecommendationPriority.MEDIUM,
                title="Preventive Maintenance for Efficiency",
                description=(
                    "Regular maintenance can improve equipment efficiency by 15-20%, reducing "
                    "utility costs and extending equipment lifespan."
                ),
                potential_savings=_monthly_usd(
                    metrics.estimated_monthly_cost * MAINTENANCE_EFFICIENCY_GAIN
                ),
                action_items=list(MAINTENANCE_ACTIONS),
            )
        ]

    # ═══════════════════════════════════════════════════════════════════════════
    # SAVINGS
    # ═══════════════════════════════════════════════════════════════════════════

    @staticmethod
    def total_savings(recommendations: List[OptimizationRecommendation]) -> SavingsSummary:
        """
        Sum savings normalised to a monthly figure.

        daily x30, weekly x4.33, monthly x1, annually /12. The breakdown
        keeps unrounded monthly amounts per category.
        """
        monthly_total = 0.0
        breakdown: Dict[str, float] = defaultdict(float)

        for rec in recommendations:
            monthly = rec.potential_savings.monthly_amount
            monthly_total += monthly
            breakdown[rec.category.value] += monthly

        return SavingsSummary(
            monthly=round_half_up(monthly_total),
            annually=round_half_up(monthly_total * 12),
            breakdown=dict(breakdown),
        )
