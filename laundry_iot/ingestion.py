"""
Telemetry Ingestion Validation
Boundary checks for inbound equipment telemetry

Features:
- Pydantic V2 model for the camelCase telemetry payload
- Range checks (non-negative values, 0-10 vibration, 0-100 scores)
- Single-reading and batch parsing; a bad record never fails a batch
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from laundry_iot.errors import ValidationError
from laundry_iot.models.telemetry import TelemetryReading

logger = logging.getLogger(__name__)


# ============================================
# Constants
# ============================================

MAX_VIBRATION = 10  # sensor scale 0-10
MAX_SCORE = 100
MAX_ID_LENGTH = 64


# ============================================
# Sanitization
# ============================================


def sanitize_string(value: str, max_length: int = 255) -> str:
    """
    Sanitize a string input.
    - Remove control characters
    - Strip whitespace and truncate
    """
    if not value:
        return ""
    sanitized = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value)
    return sanitized.strip()[:max_length]


# ============================================
# Payload Model
# ============================================


class TelemetryPayload(BaseModel):
    """Inbound telemetry reading as sent by the equipment gateway."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", allow_inf_nan=False)

    equipment_id: str = Field(..., alias="equipmentId", min_length=1, max_length=MAX_ID_LENGTH)
    timestamp: datetime
    power_watts: Optional[float] = Field(default=None, alias="powerWatts", ge=0)
    water_liters: Optional[float] = Field(default=None, alias="waterLiters", ge=0)
    temperature: Optional[float] = Field(default=None, ge=0)
    vibration: Optional[float] = Field(default=None, ge=0, le=MAX_VIBRATION)
    cycle_count: Optional[int] = Field(default=None, alias="cycleCount", ge=0)
    cycle_type: Optional[str] = Field(default=None, alias="cycleType", max_length=20)
    is_running: Optional[bool] = Field(default=None, alias="isRunning")
    health_score: Optional[float] = Field(default=None, alias="healthScore", ge=0, le=MAX_SCORE)
    efficiency_score: Optional[float] = Field(
        default=None, alias="efficiencyScore", ge=0, le=MAX_SCORE
    )

    @field_validator("equipment_id")
    @classmethod
    def validate_equipment_id(cls, v: str) -> str:
        sanitized = sanitize_string(v, MAX_ID_LENGTH)
        if not sanitized:
            raise ValueError("equipmentId must not be blank")
        return sanitized

    @field_validator("cycle_type")
    @classmethod
    def validate_cycle_type(cls, v: Optional[str]) -> Optional[str]:
        if v:
            return sanitize_string(v, 20).upper() or None
        return v

    def to_reading(self) -> TelemetryReading:
        return TelemetryReading(**self.model_dump())


# ============================================
# Parsing
# ============================================


def _describe(exc: PydanticValidationError) -> List[Dict[str, str]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]


def parse_reading(payload: Union[Dict[str, Any], TelemetryPayload]) -> TelemetryReading:
    """
    Validate one payload and convert it to a TelemetryReading.

    Raises:
        ValidationError: the payload is unusable (missing equipmentId,
            out-of-range values, unparsable timestamp...)
    """
    if isinstance(payload, TelemetryPayload):
        return payload.to_reading()

    try:
        model = TelemetryPayload.model_validate(payload)
    except PydanticValidationError as e:
        errors = _describe(e)
        raise ValidationError(
            f"Invalid telemetry payload: {errors[0]['field']} - {errors[0]['message']}",
            field=errors[0]["field"],
            details={"errors": errors},
        ) from e
    return model.to_reading()


def parse_batch(
    payloads: Iterable[Dict[str, Any]],
) -> Tuple[List[TelemetryReading], List[Dict[str, Any]]]:
    """
    Validate many payloads.

    Returns:
        (valid readings, rejected entries) where each rejected entry holds
        the batch index, the raw payload and the error body
    """
    readings: List[TelemetryReading] = []
    rejected: List[Dict[str, Any]] = []

    for index, payload in enumerate(payloads):
        try:
            readings.append(parse_reading(payload))
        except ValidationError as e:
            logger.warning(f"⚠️ Rejected telemetry record #{index}: {e.message}")
            rejected.append({"index": index, "payload": payload, "error": e.to_dict()})

    if rejected:
        logger.info(f"Telemetry batch: {len(readings)} accepted, {len(rejected)} rejected")
    return readings, rejected
