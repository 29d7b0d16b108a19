"""
Centralized Error Handling for the Laundry IoT core

Provides a consistent error taxonomy for the detection, alerting and
optimization services:
- ValidationError: malformed telemetry or operator input
- NotFoundError: unknown alert / equipment ids
- AlertConflictError: duplicate active alert suppressed by the store
- ConfigurationGapError: equipment type missing from the threshold catalog
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


# =============================================================================
# Error Categories
# =============================================================================


class ErrorCategory(str, Enum):
    """Categories for error classification"""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


# =============================================================================
# Custom Exceptions
# =============================================================================


class IoTCoreError(Exception):
    """Base exception for the Laundry IoT core"""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.details = details or {}
        self.timestamp = utc_now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Serializable error body for the service boundary"""
        return {
            "error": self.category.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp,
        }


class ValidationError(IoTCoreError):
    """Input validation errors"""

    def __init__(self, message: str, field: str = None, details: Optional[Dict] = None):
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            details=details,
        )


class NotFoundError(IoTCoreError):
    """Resource not found errors"""

    def __init__(self, resource: str, resource_id: str = None):
        details = {"resource": resource}
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(
            message=f"{resource} not found" + (f": {resource_id}" if resource_id else ""),
            category=ErrorCategory.NOT_FOUND,
            details=details,
        )


class AlertConflictError(IoTCoreError):
    """An active alert already exists for (equipment, type)"""

    def __init__(self, equipment_id: str, alert_type: str):
        super().__init__(
            message=f"Active {alert_type} alert already exists for equipment {equipment_id}",
            category=ErrorCategory.CONFLICT,
            details={"equipment_id": equipment_id, "alert_type": alert_type},
        )
        self.equipment_id = equipment_id
        self.alert_type = alert_type


class ConfigurationGapError(IoTCoreError):
    """Equipment type absent from the threshold catalog"""

    def __init__(self, equipment_type: str):
        super().__init__(
            message=f"No thresholds configured for equipment type {equipment_type}",
            category=ErrorCategory.CONFIGURATION,
            details={"equipment_type": equipment_type},
        )
        self.equipment_type = equipment_type
