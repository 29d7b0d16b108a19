"""Service layer for detection, alerting and optimization logic."""

from .alert_lifecycle import AlertLifecycleManager
from .anomaly_detector import AnomalyDetector, detect_anomalies
from .recommendation_engine import RecommendationEngine
from .usage_aggregator import UsageAggregator

__all__ = [
    "AlertLifecycleManager",
    "AnomalyDetector",
    "RecommendationEngine",
    "UsageAggregator",
    "detect_anomalies",
]
