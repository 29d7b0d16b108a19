"""Laundry equipment IoT core: anomaly alerting and resource optimization."""

__version__ = "1.0.0"
