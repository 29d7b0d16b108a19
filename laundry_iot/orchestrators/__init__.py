"""Orchestrator layer for coordinating services and repositories."""

from .iot_orchestrator import IngestResult, IoTOrchestrator

__all__ = [
    "IngestResult",
    "IoTOrchestrator",
]
