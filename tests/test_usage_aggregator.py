"""
Tests for the Usage Aggregator

Energy / water folding, peak hours, cost estimate and the dashboard
summary rounding.
"""

import math
from datetime import timedelta

import pytest

from laundry_iot.errors import ValidationError
from laundry_iot.models.optimization import UsageMetrics, round_half_up
from laundry_iot.services.usage_aggregator import UsageAggregator
from tests.fixtures.telemetry_fixtures import FIXED_NOW, make_reading


def _at_hour(hour, **fields):
    return make_reading(timestamp=FIXED_NOW.replace(hour=hour), **fields)


class TestAggregate:
    """Single-pass aggregation"""

    def test_empty_input_is_all_zero(self, optimization_settings):
        """aggregate([]) returns zero metrics without dividing by zero"""
        metrics = UsageAggregator(optimization_settings).aggregate([])

        assert metrics == UsageMetrics(window_days=30)
        assert metrics.total_energy_kwh == 0
        assert metrics.average_power_watts == 0
        assert metrics.average_water_per_cycle == 0
        assert metrics.peak_usage_hours == []
        assert metrics.estimated_monthly_cost == 0

    def test_energy_uses_reporting_interval(self, optimization_settings, hourly_readings):
        """12 readings of 2000W at 5 minutes = 2 kWh"""
        metrics = UsageAggregator(optimization_settings).aggregate(hourly_readings)

        assert metrics.total_energy_kwh == pytest.approx(2.0)
        assert metrics.average_power_watts == pytest.approx(2000.0)
        assert metrics.reading_count == 12

    def test_interval_is_configurable(self, optimization_settings, hourly_readings):
        """A 15 minute cadence triples the energy per reading"""
        settings = optimization_settings.for_region(reporting_interval_minutes=15)
        metrics = UsageAggregator(settings).aggregate(hourly_readings)
        assert metrics.total_energy_kwh == pytest.approx(6.0)

    def test_water_and_wash_cycle_average(self, optimization_settings):
        """Per-cycle water only counts WASH readings (case-insensitive)"""
        readings = [
            make_reading(water_liters=60.0, cycle_type="WASH"),
            make_reading(water_liters=40.0, cycle_type="wash"),
            make_reading(water_liters=30.0, cycle_type="RINSE"),
            make_reading(water_liters=20.0),
        ]
        metrics = UsageAggregator(optimization_settings).aggregate(readings)

        assert metrics.total_water_liters == pytest.approx(150.0)
        assert metrics.average_water_per_cycle == pytest.approx(50.0)

    def test_total_cycles_is_max_count(self, optimization_settings):
        """total_cycles is the highest cycle counter seen"""
        readings = [make_reading(cycle_count=c) for c in (120, 340, 200)]
        assert UsageAggregator(optimization_settings).aggregate(readings).total_cycles == 340

    def test_average_power_ignores_readings_without_power(self, optimization_settings):
        """Readings with no power value do not dilute the mean"""
        readings = [
            make_reading(power_watts=3000.0),
            make_reading(power_watts=1000.0),
            make_reading(water_liters=10.0),
        ]
        metrics = UsageAggregator(optimization_settings).aggregate(readings)

        assert metrics.average_power_watts == pytest.approx(2000.0)
        assert metrics.reading_count == 3

    def test_peak_hours_top_three_with_tie_break(self, optimization_settings):
        """Top 3 hours by summed power, earlier hour wins ties"""
        readings = [
            _at_hour(14, power_watts=2500.0),
            _at_hour(14, power_watts=2500.0),
            _at_hour(10, power_watts=5000.0),
            _at_hour(9, power_watts=3000.0),
            _at_hour(20, power_watts=1000.0),
        ]
        metrics = UsageAggregator(optimization_settings).aggregate(readings)
        assert metrics.peak_usage_hours == [10, 14, 9]

    def test_invalid_values_are_skipped(self, optimization_settings):
        """Negative and non-finite values contribute nothing"""
        readings = [
            make_reading(power_watts=-500.0, water_liters=math.nan, cycle_count=-1),
            make_reading(power_watts=math.inf, water_liters=-3.0),
            make_reading(power_watts=1200.0, water_liters=12.0, cycle_type="WASH"),
        ]
        metrics = UsageAggregator(optimization_settings).aggregate(readings)

        assert metrics.average_power_watts == pytest.approx(1200.0)
        assert metrics.total_water_liters == pytest.approx(12.0)
        assert metrics.total_cycles == 0

    def test_estimated_cost(self, optimization_settings):
        """Cost = kWh x rate + gallons x water rate"""
        readings = [make_reading(power_watts=12000.0, water_liters=378.5)]
        metrics = UsageAggregator(optimization_settings).aggregate(readings)

        # 12000W for 5 minutes = 1 kWh; 378.5 L = 100 gal
        assert metrics.total_energy_kwh == pytest.approx(1.0)
        assert metrics.estimated_monthly_cost == pytest.approx(0.13 + 0.4)

    def test_window_days_recorded(self, optimization_settings, hourly_readings):
        metrics = UsageAggregator(optimization_settings).aggregate(hourly_readings, window_days=7)
        assert metrics.window_days == 7


class TestSummarize:
    """Dashboard usage summary"""

    def test_summary_values_and_rounding(self, optimization_settings):
        """Energy and costs in cents, liters in whole units"""
        start = FIXED_NOW - timedelta(hours=1)
        readings = [
            make_reading(timestamp=start + timedelta(minutes=5 * i), power_watts=3000.0)
            for i in range(12)
        ]
        readings += [
            make_reading(water_liters=60.0, cycle_type="WASH", cycle_count=42),
            make_reading(water_liters=40.0, cycle_type="WASH"),
            make_reading(water_liters=30.0, cycle_type="RINSE"),
        ]

        summary = UsageAggregator(optimization_settings).summarize(readings, days=3, now=FIXED_NOW)

        assert summary.start_date == FIXED_NOW - timedelta(days=3)
        assert summary.end_date == FIXED_NOW
        assert summary.total_kwh == 3.0
        assert summary.average_kwh_per_day == 1.0
        assert summary.energy_cost == 0.39
        assert summary.total_liters == 130
        assert summary.average_liters_per_day == 43
        assert summary.average_liters_per_cycle == 50.0
        assert summary.water_cost == 0.14
        assert summary.total_cycles == 42
        assert summary.total_estimated_cost == 0.05

    def test_summary_to_dict_shape(self, optimization_settings, hourly_readings):
        """Nested period / energy / water / usage sections"""
        data = (
            UsageAggregator(optimization_settings)
            .summarize(hourly_readings, days=30, now=FIXED_NOW)
            .to_dict()
        )

        assert set(data) == {"period", "energy", "water", "usage", "totalEstimatedCost"}
        assert data["period"]["days"] == 30
        assert data["energy"]["totalKwh"] == 2.0
        assert data["usage"]["peakHours"] == [11]

    def test_empty_summary(self, optimization_settings):
        summary = UsageAggregator(optimization_settings).summarize([], days=7, now=FIXED_NOW)
        assert summary.total_kwh == 0
        assert summary.total_liters == 0
        assert summary.total_estimated_cost == 0

    def test_days_must_be_positive(self, optimization_settings):
        with pytest.raises(ValidationError):
            UsageAggregator(optimization_settings).summarize([], days=0)


class TestRoundHalfUp:
    """Half-up rounding used for money and percentages"""

    @pytest.mark.parametrize(
        "value,digits,expected",
        [(2.5, 0, 3), (3.5, 0, 4), (2.4, 0, 2), (0.125, 2, 0.13), (52.5, 0, 53), (0, 0, 0)],
    )
    def test_round_half_up(self, value, digits, expected):
        assert round_half_up(value, digits) == expected

    def test_integer_result(self):
        assert isinstance(round_half_up(9.6), int)
