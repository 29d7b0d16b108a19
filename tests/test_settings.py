"""
Tests for environment-driven settings
"""

from pathlib import Path

import pytest

from laundry_iot.errors import ValidationError
from laundry_iot.settings import (
    DatabaseSettings,
    LoggingSettings,
    OptimizationSettings,
    Settings,
    get_settings,
    reload_settings,
)

IOT_ENV_VARS = [
    "IOT_ENERGY_RATE_PER_KWH",
    "IOT_WATER_RATE_PER_GALLON",
    "IOT_LITERS_PER_GALLON",
    "IOT_REPORTING_INTERVAL_MINUTES",
    "IOT_USAGE_WINDOW_DAYS",
    "IOT_DATABASE_URL",
    "IOT_DATABASE_ECHO",
    "IOT_LOG_LEVEL",
    "IOT_LOG_TO_FILE",
    "IOT_LOG_DIR",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in IOT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestOptimizationSettings:
    """Utility rates and cadence"""

    def test_defaults(self, clean_env):
        settings = OptimizationSettings()

        assert settings.energy_rate_per_kwh == 0.13
        assert settings.water_rate_per_gallon == 0.004
        assert settings.liters_per_gallon == 3.785
        assert settings.reporting_interval_minutes == 5.0
        assert settings.usage_window_days == 30

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("IOT_ENERGY_RATE_PER_KWH", "0.21")
        clean_env.setenv("IOT_USAGE_WINDOW_DAYS", "14")

        settings = OptimizationSettings()
        assert settings.energy_rate_per_kwh == 0.21
        assert settings.usage_window_days == 14

    @pytest.mark.parametrize(
        "field,value",
        [
            ("energy_rate_per_kwh", -0.01),
            ("water_rate_per_gallon", -1),
            ("liters_per_gallon", 0),
            ("reporting_interval_minutes", 0),
            ("usage_window_days", 0),
        ],
    )
    def test_invalid_values_rejected(self, clean_env, field, value):
        with pytest.raises(ValidationError) as exc:
            OptimizationSettings(**{field: value})
        assert exc.value.details["field"] == field

    def test_for_region_returns_copy(self, clean_env):
        """Regional overrides never touch the base settings"""
        base = OptimizationSettings()
        regional = base.for_region(energy_rate_per_kwh=0.30)

        assert regional.energy_rate_per_kwh == 0.30
        assert regional.water_rate_per_gallon == base.water_rate_per_gallon
        assert base.energy_rate_per_kwh == 0.13

    def test_for_region_validates(self, clean_env):
        with pytest.raises(ValidationError):
            OptimizationSettings().for_region(liters_per_gallon=-1)


class TestSettingsContainer:
    """Singleton and validation warnings"""

    def test_singleton(self, clean_env):
        assert get_settings() is get_settings()
        assert isinstance(get_settings().optimization, OptimizationSettings)
        assert isinstance(get_settings().database, DatabaseSettings)
        assert isinstance(get_settings().logging, LoggingSettings)

    def test_reload_picks_up_environment(self, clean_env):
        first = get_settings()
        clean_env.setenv("IOT_LOG_LEVEL", "DEBUG")

        reloaded = reload_settings()
        assert reloaded is not first
        assert reloaded.logging.level == "DEBUG"
        assert get_settings() is reloaded

    def test_sqlite_warning(self, clean_env):
        warnings = Settings().validate()
        assert any("SQLite" in w for w in warnings)

    def test_server_database_no_warning(self, clean_env):
        clean_env.setenv("IOT_DATABASE_URL", "postgresql://iot@db/laundry")
        assert get_settings().validate() == []

    def test_coarse_interval_warning(self, clean_env):
        clean_env.setenv("IOT_DATABASE_URL", "postgresql://iot@db/laundry")
        clean_env.setenv("IOT_REPORTING_INTERVAL_MINUTES", "30")

        warnings = get_settings().validate()
        assert len(warnings) == 1
        assert "Reporting interval" in warnings[0]

    def test_database_and_logging_env(self, clean_env):
        clean_env.setenv("IOT_DATABASE_ECHO", "true")
        clean_env.setenv("IOT_LOG_TO_FILE", "1")
        clean_env.setenv("IOT_LOG_DIR", "/var/log/laundry")

        settings = get_settings()
        assert settings.database.echo is True
        assert settings.logging.log_to_file is True
        assert settings.logging.log_dir == Path("/var/log/laundry")

    def test_to_dict(self, clean_env):
        data = get_settings().to_dict()
        assert data["energy_rate_per_kwh"] == 0.13
        assert data["database_url"] == "sqlite:///laundry_iot.db"
        assert data["log_level"] == "INFO"
