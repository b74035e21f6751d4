"""
Pack parameters and behaviour switches shared by the estimation core.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ChargeAccumulation(StrEnum):
    """How the charge estimator treats zero or negative (charging) current.

    ``LEGACY`` never credits charging current back to the pack, so SOC only
    rises through an explicit calibration. ``SYMMETRIC`` integrates charging
    current the same way as discharge current.
    """

    LEGACY = "legacy"
    SYMMETRIC = "symmetric"


class RuntimeMode(StrEnum):
    """Behaviour of the runtime estimate when the pack is not discharging.

    ``LEGACY`` returns the available capacity in Ah (the historical API
    value). ``FIXED`` returns 0.0 hours.
    """

    LEGACY = "legacy"
    FIXED = "fixed"


@dataclass(frozen=True)
class BatteryParams:
    """Nameplate and vehicle constants for a single-cell Li-ion pack.

    Attributes:
        rated_capacity_ah: Nameplate capacity in amp-hours.
        nominal_voltage: Nominal cell voltage in volts.
        min_voltage: Empty-cell voltage in volts.
        max_voltage: Fully charged cell voltage in volts.
        efficiency: Real-world discharge efficiency factor (0, 1].
        average_speed_kmh: Vehicle average speed used for range estimates.
    """

    rated_capacity_ah: float = 2.0
    nominal_voltage: float = 3.7
    min_voltage: float = 3.0
    max_voltage: float = 4.2
    efficiency: float = 0.85
    average_speed_kmh: float = 25.0

    @property
    def capacity_label(self) -> str:
        """Nameplate capacity formatted the way the dashboard shows it."""
        return f"{round(self.rated_capacity_ah * 1000)}mAh"

    @property
    def battery_type(self) -> str:
        """Chemistry label including nominal voltage, e.g. ``3.7V Li-ion``."""
        return f"{self.nominal_voltage:g}V Li-ion"
