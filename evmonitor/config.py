"""
Monitor configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
ThingSpeak credentials are required; everything else has a default that
matches a 3.7 V / 2000 mAh single-cell pack.

CHANGELOG:
- 2026-10-14: Add SOC_METHOD, CHARGE_ACCUMULATION and RUNTIME_MODE switches (STORY-009)
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

from evmonitor.core.params import BatteryParams, ChargeAccumulation, RuntimeMode


class MonitorSettings(BaseSettings):
    """EV battery monitor configuration.

    Attributes:
        thingspeak_channel_id: ThingSpeak channel holding the pack telemetry.
        thingspeak_read_api_key: Read key for the channel feed.
        thingspeak_write_api_key: Write key used to relay the drive mode.
        thingspeak_base_url: ThingSpeak API base URL (must be HTTPS).
        request_timeout_s: Timeout for each ThingSpeak request.
        rated_capacity_ah: Nameplate pack capacity in Ah.
        nominal_voltage: Nominal cell voltage.
        min_voltage: Empty-cell voltage.
        max_voltage: Full-cell voltage.
        efficiency: Discharge efficiency factor applied to runtime.
        average_speed_kmh: Vehicle average speed used for range.
        soh_model: ``penalty`` (additive) or ``factor`` (multiplicative).
        soc_method: ``coulomb`` (current integration) or ``voltage``
            (discharge curve lookup).
        charge_accumulation: ``legacy`` ignores charging current,
            ``symmetric`` credits it back.
        runtime_mode: ``legacy`` returns Ah while idle, ``fixed`` returns 0 h.
        host: Bind address for the HTTP server.
        port: Bind port for the HTTP server.
        log_level: Root log level.
    """

    thingspeak_channel_id: str
    thingspeak_read_api_key: str
    thingspeak_write_api_key: str
    thingspeak_base_url: str = "https://api.thingspeak.com"
    request_timeout_s: float = 10.0

    rated_capacity_ah: float = 2.0
    nominal_voltage: float = 3.7
    min_voltage: float = 3.0
    max_voltage: float = 4.2
    efficiency: float = 0.85
    average_speed_kmh: float = 25.0

    soh_model: Literal["penalty", "factor"] = "penalty"
    soc_method: Literal["coulomb", "voltage"] = "coulomb"
    charge_accumulation: ChargeAccumulation = ChargeAccumulation.LEGACY
    runtime_mode: RuntimeMode = RuntimeMode.LEGACY

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @field_validator("thingspeak_base_url")
    @classmethod
    def base_url_must_be_https(cls, v: str) -> str:
        """ThingSpeak API keys travel as query parameters, so HTTPS only."""
        if not v.lower().startswith("https://"):
            raise ValueError(
                f"THINGSPEAK_BASE_URL must use HTTPS (got: '{v[:30]}')"
            )
        return v.rstrip("/")

    @field_validator("request_timeout_s")
    @classmethod
    def timeout_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("REQUEST_TIMEOUT_S must be > 0")
        return v

    @field_validator("rated_capacity_ah")
    @classmethod
    def capacity_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("RATED_CAPACITY_AH must be > 0")
        return v

    @field_validator("efficiency")
    @classmethod
    def efficiency_must_be_fraction(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError("EFFICIENCY must be > 0 and <= 1")
        return v

    @field_validator("average_speed_kmh")
    @classmethod
    def speed_must_be_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("AVERAGE_SPEED_KMH must be >= 0")
        return v

    @field_validator("port")
    @classmethod
    def port_must_be_valid(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL must be a standard level name (got: '{v}')")
        return level

    @model_validator(mode="after")
    def _voltages_must_be_ordered(self) -> MonitorSettings:
        """Require MIN_VOLTAGE < NOMINAL_VOLTAGE < MAX_VOLTAGE."""
        if not self.min_voltage < self.nominal_voltage < self.max_voltage:
            raise ValueError(
                "Voltages must satisfy MIN_VOLTAGE < NOMINAL_VOLTAGE < MAX_VOLTAGE"
            )
        return self

    def battery_params(self) -> BatteryParams:
        """Build the core's :class:`BatteryParams` from these settings."""
        return BatteryParams(
            rated_capacity_ah=self.rated_capacity_ah,
            nominal_voltage=self.nominal_voltage,
            min_voltage=self.min_voltage,
            max_voltage=self.max_voltage,
            efficiency=self.efficiency,
            average_speed_kmh=self.average_speed_kmh,
        )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
