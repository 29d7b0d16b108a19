"""
Usage Aggregator Service

Folds a window of telemetry readings into UsageMetrics in a single pass:
energy (kWh), water (L), cycle count, average power, per-wash-cycle water,
peak hours and the estimated utility cost for the window.

Energy assumes a fixed reporting cadence: every reading with a power value
contributes power * (reporting_interval_minutes / 60) Wh.
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from laundry_iot.errors import ValidationError, utc_now
from laundry_iot.models.optimization import UsageMetrics, UsageSummary, round_half_up
from laundry_iot.models.telemetry import TelemetryReading
from laundry_iot.services.anomaly_detector import usable_value
from laundry_iot.settings import OptimizationSettings, get_settings

logger = logging.getLogger(__name__)

WASH_CYCLE = "WASH"
PEAK_HOURS_COUNT = 3


class UsageAggregator:
    """Turns raw telemetry into usage metrics and cost estimates."""

    def __init__(self, settings: Optional[OptimizationSettings] = None):
        self.settings = settings or get_settings().optimization

    def aggregate(
        self, readings: Iterable[TelemetryReading], window_days: Optional[int] = None
    ) -> UsageMetrics:
        """
        Aggregate readings into metrics.

        Args:
            readings: Telemetry in any order, any number of equipment
            window_days: Window length the readings cover (default from settings)

        Returns:
            UsageMetrics (all zero for an empty input)
        """
        window_days = window_days or self.settings.usage_window_days
        hours_per_reading = self.settings.reporting_interval_minutes / 60.0

        total_energy_wh = 0.0
        total_power = 0.0
        power_count = 0
        total_water = 0.0
        wash_water: List[float] = []
        total_cycles = 0
        reading_count = 0
        hourly_power: Dict[int, float] = defaultdict(float)

        for reading in readings:
            reading_count += 1

            power = usable_value(reading.power_watts)
            if power is not None:
                total_power += power
                power_count += 1
                total_energy_wh += power * hours_per_reading
                hourly_power[reading.timestamp.hour] += power

            water = usable_value(reading.water_liters)
            if water is not None:
                total_water += water
                if reading.cycle_type and str(reading.cycle_type).upper() == WASH_CYCLE:
                    wash_water.append(water)

            cycles = usable_value(reading.cycle_count)
            if cycles is not None:
                total_cycles = max(total_cycles, int(cycles))

        if reading_count == 0:
            return UsageMetrics(window_days=window_days)

        # Highest summed power first, earlier hour wins ties
        ranked_hours = sorted(hourly_power.items(), key=lambda item: (-item[1], item[0]))
        peak_hours = [hour for hour, _ in ranked_hours[:PEAK_HOURS_COUNT]]

        total_energy_kwh = total_energy_wh / 1000.0
        metrics = UsageMetrics(
            total_energy_kwh=total_energy_kwh,
            total_water_liters=total_water,
            total_cycles=total_cycles,
            average_power_watts=total_power / power_count if power_count else 0.0,
            average_water_per_cycle=sum(wash_water) / len(wash_water) if wash_water else 0.0,
            peak_usage_hours=peak_hours,
            estimated_monthly_cost=self.energy_cost(total_energy_kwh)
            + self.water_cost(total_water),
            reading_count=reading_count,
            window_days=window_days,
        )

        logger.debug(
            f"Aggregated {reading_count} readings: {total_energy_kwh:.2f} kWh, "
            f"{total_water:.0f} L, cost ${metrics.estimated_monthly_cost:.2f}"
        )
        return metrics

    def energy_cost(self, kwh: float) -> float:
        return kwh * self.settings.energy_rate_per_kwh

    def water_cost(self, liters: float) -> float:
        return liters / self.settings.liters_per_gallon * self.settings.water_rate_per_gallon

    # ═══════════════════════════════════════════════════════════════════════════
    # DASHBOARD SUMMARY
    # ═══════════════════════════════════════════════════════════════════════════

    def summarize(
        self,
        readings: Iterable[TelemetryReading],
        days: int,
        now: Optional[datetime] = None,
    ) -> UsageSummary:
        """
        Build the dashboard usage summary for a window of `days` days.

        Energy figures and costs are rounded to cents, liters to whole units.
        """
        if days <= 0:
            raise ValidationError(f"days must be positive, got {days}", field="days")

        end_date = now or utc_now()
        start_date = end_date - timedelta(days=days)
        metrics = self.aggregate(readings, window_days=days)

        return UsageSummary(
            days=days,
            start_date=start_date,
            end_date=end_date,
            total_kwh=round_half_up(metrics.total_energy_kwh, 2),
            average_kwh_per_day=round_half_up(metrics.total_energy_kwh / days, 2),
            energy_cost=round_half_up(self.energy_cost(metrics.total_energy_kwh), 2),
            total_liters=round_half_up(metrics.total_water_liters),
            average_liters_per_day=round_half_up(metrics.total_water_liters / days),
            average_liters_per_cycle=round_half_up(metrics.average_water_per_cycle, 2),
            water_cost=round_half_up(self.water_cost(metrics.total_water_liters), 2),
            total_cycles=metrics.total_cycles,
            peak_hours=list(metrics.peak_usage_hours),
            total_estimated_cost=round_half_up(metrics.estimated_monthly_cost * days / 30, 2),
        )
