"""
Laundry IoT Settings
Centralized configuration from environment variables

Utility rates, reporting cadence and storage/logging options.
Rates can be overridden per tenant/region without code changes.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List

from dotenv import load_dotenv

from laundry_iot.errors import ValidationError

# Load environment variables
load_dotenv()


def _get_env(key: str, default: str = "", required: bool = False) -> str:
    """Get environment variable with optional requirement enforcement."""
    value = os.getenv(key, default)
    if required and not value:
        raise ValueError(f"Required environment variable {key} is not set!")
    return value


def _get_env_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    return int(os.getenv(key, str(default)))


def _get_env_float(key: str, default: float) -> float:
    """Get float environment variable."""
    return float(os.getenv(key, str(default)))


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    return os.getenv(key, str(default)).lower() in ("true", "1", "yes")


# =============================================================================
# OPTIMIZATION SETTINGS
# =============================================================================
@dataclass
class OptimizationSettings:
    """
    Utility pricing and telemetry cadence used by the usage aggregator
    and the recommendation engine.

    Defaults: US average electricity ($0.13/kWh), municipal water
    ($0.004/gallon), telemetry every 5 minutes.
    """

    energy_rate_per_kwh: float = field(
        default_factory=lambda: _get_env_float("IOT_ENERGY_RATE_PER_KWH", 0.13)
    )
    water_rate_per_gallon: float = field(
        default_factory=lambda: _get_env_float("IOT_WATER_RATE_PER_GALLON", 0.004)
    )
    liters_per_gallon: float = field(
        default_factory=lambda: _get_env_float("IOT_LITERS_PER_GALLON", 3.785)
    )
    reporting_interval_minutes: float = field(
        default_factory=lambda: _get_env_float("IOT_REPORTING_INTERVAL_MINUTES", 5.0)
    )
    usage_window_days: int = field(
        default_factory=lambda: _get_env_int("IOT_USAGE_WINDOW_DAYS", 30)
    )

    def __post_init__(self):
        if self.energy_rate_per_kwh < 0:
            raise ValidationError(
                "energy_rate_per_kwh must be >= 0", field="energy_rate_per_kwh"
            )
        if self.water_rate_per_gallon < 0:
            raise ValidationError(
                "water_rate_per_gallon must be >= 0", field="water_rate_per_gallon"
            )
        if self.liters_per_gallon <= 0:
            raise ValidationError(
                "liters_per_gallon must be > 0", field="liters_per_gallon"
            )
        if self.reporting_interval_minutes <= 0:
            raise ValidationError(
                "reporting_interval_minutes must be > 0",
                field="reporting_interval_minutes",
            )
        if self.usage_window_days <= 0:
            raise ValidationError(
                "usage_window_days must be > 0", field="usage_window_days"
            )

    def for_region(self, **overrides) -> "OptimizationSettings":
        """Return a copy with tenant/region specific overrides applied."""
        return replace(self, **overrides)


# =============================================================================
# DATABASE SETTINGS
# =============================================================================
@dataclass
class DatabaseSettings:
    """Alert store configuration - ALL from environment."""

    url: str = field(
        default_factory=lambda: _get_env("IOT_DATABASE_URL", "sqlite:///laundry_iot.db")
    )
    echo: bool = field(default_factory=lambda: _get_env_bool("IOT_DATABASE_ECHO", False))


# =============================================================================
# LOGGING SETTINGS
# =============================================================================
@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = field(default_factory=lambda: _get_env("IOT_LOG_LEVEL", "INFO"))
    log_to_file: bool = field(
        default_factory=lambda: _get_env_bool("IOT_LOG_TO_FILE", False)
    )
    log_dir: Path = field(
        default_factory=lambda: Path(_get_env("IOT_LOG_DIR", "logs"))
    )


# =============================================================================
# GLOBAL SETTINGS INSTANCE
# =============================================================================
class Settings:
    """Global settings container - singleton pattern."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize all settings."""
        self.optimization = OptimizationSettings()
        self.database = DatabaseSettings()
        self.logging = LoggingSettings()

    def validate(self) -> List[str]:
        """Validate settings and return list of warnings."""
        warnings = []

        if self.database.url.startswith("sqlite"):
            warnings.append(
                "ℹ️ Using SQLite alert store - use a server database for concurrent ingestion"
            )

        if self.optimization.reporting_interval_minutes > 15:
            warnings.append(
                "⚠️ Reporting interval above 15 minutes - energy totals will be coarse"
            )

        return warnings

    def to_dict(self) -> Dict:
        """Export settings as dictionary (for debugging)."""
        return {
            "energy_rate_per_kwh": self.optimization.energy_rate_per_kwh,
            "water_rate_per_gallon": self.optimization.water_rate_per_gallon,
            "liters_per_gallon": self.optimization.liters_per_gallon,
            "reporting_interval_minutes": self.optimization.reporting_interval_minutes,
            "usage_window_days": self.optimization.usage_window_days,
            "database_url": self.database.url,
            "log_level": self.logging.level,
        }


def get_settings() -> Settings:
    """Get global settings instance."""
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached instance and re-read the environment."""
    Settings._instance = None
    return Settings()
