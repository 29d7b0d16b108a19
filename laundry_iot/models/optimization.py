"""
Resource Optimization Models
============================

Aggregated usage metrics and the recommendations derived from them.
Computed on demand, never persisted by the core.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List


def round_half_up(value: float, digits: int = 0):
    """Round halves upward (2.5 -> 3); int result when digits == 0"""
    if digits == 0:
        return int(math.floor(value + 0.5))
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


class RecommendationCategory(str, Enum):
    """Recommendation categories"""

    ENERGY = "ENERGY"
    WATER = "WATER"
    SCHEDULING = "SCHEDULING"
    MAINTENANCE = "MAINTENANCE"


class RecommendationPriority(str, Enum):
    """Recommendation priority"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class SavingsUnit(str, Enum):
    USD = "USD"
    KWH = "kWh"
    LITERS = "Liters"
    HOURS = "Hours"


class SavingsPeriod(str, Enum):
    """Savings period with its monthly normalisation factor"""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ANNUALLY = "annually"

    @property
    def monthly_factor(self) -> float:
        return _MONTHLY_FACTORS[self]


_MONTHLY_FACTORS = {
    SavingsPeriod.DAILY: 30.0,
    SavingsPeriod.WEEKLY: 4.33,
    SavingsPeriod.MONTHLY: 1.0,
    SavingsPeriod.ANNUALLY: 1.0 / 12.0,
}


@dataclass(frozen=True)
class PotentialSavings:
    amount: float
    unit: SavingsUnit = SavingsUnit.USD
    period: SavingsPeriod = SavingsPeriod.MONTHLY

    @property
    def monthly_amount(self) -> float:
        return self.amount * self.period.monthly_factor

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": self.amount, "unit": self.unit.value, "period": self.period.value}


@dataclass
class OptimizationRecommendation:
    """One actionable cost-saving suggestion"""

    category: RecommendationCategory
    priority: RecommendationPriority
    title: str
    description: str
    potential_savings: PotentialSavings
    action_items: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.category.value,
            "priority": self.priority.value,
            "title": self.title,
            "description": self.description,
            "potentialSavings": self.potential_savings.to_dict(),
            "actionItems": list(self.action_items),
        }


@dataclass(frozen=True)
class UsageMetrics:
    """Aggregation result over a telemetry window"""

    total_energy_kwh: float = 0.0
    total_water_liters: float = 0.0
    total_cycles: int = 0
    average_power_watts: float = 0.0
    average_water_per_cycle: float = 0.0
    peak_usage_hours: List[int] = field(default_factory=list)
    estimated_monthly_cost: float = 0.0
    reading_count: int = 0
    window_days: int = 30

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalEnergyKwh": self.total_energy_kwh,
            "totalWaterLiters": self.total_water_liters,
            "totalCycles": self.total_cycles,
            "averagePowerWatts": self.average_power_watts,
            "averageWaterPerCycle": self.average_water_per_cycle,
            "peakUsageHours": list(self.peak_usage_hours),
            "estimatedMonthlyCost": self.estimated_monthly_cost,
            "readingCount": self.reading_count,
            "windowDays": self.window_days,
        }


@dataclass
class SavingsSummary:
    """Total savings normalised to monthly and annual figures"""

    monthly: int
    annually: int
    breakdown: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"monthly": self.monthly, "annually": self.annually, "breakdown": dict(self.breakdown)}


@dataclass
class UsageSummary:
    """Dashboard usage summary for a tenant over N days"""

    days: int
    start_date: datetime
    end_date: datetime
    total_kwh: float
    average_kwh_per_day: float
    energy_cost: float
    total_liters: int
    average_liters_per_day: int
    average_liters_per_cycle: float
    water_cost: float
    total_cycles: int
    peak_hours: List[int]
    total_estimated_cost: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": {
                "days": self.days,
                "startDate": self.start_date.isoformat(),
                "endDate": self.end_date.isoformat(),
            },
            "energy": {
                "totalKwh": self.total_kwh,
                "averageKwPerDay": self.average_kwh_per_day,
                "estimatedCost": self.energy_cost,
            },
            "water": {
                "totalLiters": self.total_liters,
                "averageLitersPerDay": self.average_liters_per_day,
                "averageLitersPerCycle": self.average_liters_per_cycle,
                "estimatedCost": self.water_cost,
            },
            "usage": {"totalCycles": self.total_cycles, "peakHours": list(self.peak_hours)},
            "totalEstimatedCost": self.total_estimated_cost,
        }
