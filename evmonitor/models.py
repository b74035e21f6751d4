"""
Pydantic models for telemetry samples, battery metrics and API payloads.

TelemetrySample is the normalized input to the estimation core.
BatteryMetrics is the immutable record returned to clients; it serialises
with camelCase keys so the existing dashboard keeps working.

CHANGELOG:
- 2026-10-15: Add calibration request/response models (STORY-010)
- 2026-10-14: Add Mode enum and mode request/response models (STORY-008)
- 2026-10-12: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Base for API models exposed with camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TelemetrySample(BaseModel):
    """A single normalized reading from the telemetry channel.

    Attributes:
        voltage: Cell terminal voltage in volts.
        current: Pack current in amps. Positive = discharging.
        temperature: Pack temperature in degrees Celsius.
        charging_flag: 1 while the charger reports charging, else 0.
        observed_at: Channel timestamp of the reading, if known.
    """

    voltage: float = 0.0
    current: float = 0.0
    temperature: float = 0.0
    charging_flag: int = Field(default=0, ge=0, le=1)
    observed_at: datetime | None = None


class BatteryMetrics(_CamelModel):
    """Derived battery metrics for one estimation cycle.

    Numeric fields are already rounded to their display precision.
    """

    model_config = ConfigDict(frozen=True)

    voltage: float
    current: float
    temperature: float
    charging_status: int
    charging_status_text: str
    soc: int = Field(ge=0, le=100)
    soh: int = Field(ge=0, le=100)
    runtime: float = Field(ge=0)
    range: float = Field(ge=0)
    power: float = Field(ge=0)
    energy: float = Field(ge=0)
    battery_type: str
    capacity: str
    last_updated: datetime | None = None
    timestamp: datetime


class DataResponse(_CamelModel):
    """Envelope for GET /api/data."""

    success: bool = True
    data: BatteryMetrics


class Mode(StrEnum):
    """Actuator drive mode relayed to the telemetry channel."""

    ECO = "eco"
    SPORT = "sport"

    @property
    def code(self) -> int:
        """Numeric value written to the channel (eco=0, sport=1)."""
        return 0 if self is Mode.ECO else 1


class ModeRequest(BaseModel):
    """Body of POST /api/mode."""

    mode: Mode


class ModeResponse(_CamelModel):
    """Response from POST /api/mode."""

    success: bool = True
    mode: Mode
    mode_value: int
    message: str


class CalibrationRequest(BaseModel):
    """Body of POST /api/calibrate. Out-of-range values are clamped later."""

    soc: float = 100.0


class CalibrationResponse(_CamelModel):
    """Response from POST /api/calibrate."""

    success: bool = True
    soc: float
    consumed_capacity_ah: float
