"""
Derived battery metrics: runtime, range, power and available energy.

All functions are pure and total. Callers pass an SOC that is already
clamped to [0, 100]; the charge estimator guarantees this.

CHANGELOG:
- 2026-10-14: Add RuntimeMode.FIXED for the idle branch (STORY-009)
- 2026-10-13: Initial creation (STORY-007)

TODO:
- None
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from evmonitor.core.params import BatteryParams, RuntimeMode
from evmonitor.models import BatteryMetrics, TelemetrySample


def _available_capacity_ah(soc: float, params: BatteryParams) -> float:
    return soc / 100.0 * params.rated_capacity_ah


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (dashboard convention)."""
    return math.floor(value + 0.5)


def round_fixed(value: float, places: int) -> float:
    """Round to *places* decimals with exact halves going away from zero.

    Operates on the exact binary value, so 21.25 becomes 21.3 and 0.125
    becomes 0.13, matching the dashboard's fixed-point formatting.
    """
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def runtime_hours(
    soc: float,
    current: float,
    params: BatteryParams,
    mode: RuntimeMode = RuntimeMode.LEGACY,
) -> float:
    """Estimate remaining runtime at the present discharge current.

    When the pack is idle or charging (current <= 0 or NaN), ``LEGACY``
    mode returns the available capacity in Ah unchanged and ``FIXED`` mode
    returns 0.0.

    Args:
        soc: State of charge in percent.
        current: Pack current in amps, positive while discharging.
        params: Pack parameters (rated capacity, efficiency).
        mode: Idle-branch behaviour.

    Returns:
        Runtime in hours, never negative.
    """
    available = _available_capacity_ah(soc, params)

    if math.isnan(current) or current <= 0:
        if mode is RuntimeMode.FIXED:
            return 0.0
        return available

    runtime = available / abs(current) * params.efficiency
    return max(0.0, runtime)


def range_km(
    soc: float,
    current: float,
    params: BatteryParams,
    mode: RuntimeMode = RuntimeMode.LEGACY,
) -> float:
    """Remaining range: runtime multiplied by the vehicle's average speed."""
    return max(0.0, runtime_hours(soc, current, params, mode) * params.average_speed_kmh)


def power_watts(voltage: float, current: float) -> float:
    """Instantaneous power magnitude in watts."""
    return voltage * abs(current)


def energy_watt_hours(voltage: float, soc: float, params: BatteryParams) -> float:
    """Available energy in watt-hours at the present voltage."""
    return voltage * _available_capacity_ah(soc, params)


def build_metrics(
    sample: TelemetrySample,
    *,
    soc: float,
    soh: float,
    params: BatteryParams,
    runtime_mode: RuntimeMode = RuntimeMode.LEGACY,
    now: datetime,
) -> BatteryMetrics:
    """Assemble the rounded :class:`BatteryMetrics` record for one cycle.

    Precision: SOC/SOH integer percent; voltage, current, runtime, power and
    energy 2 decimals; temperature and range 1 decimal.
    """
    return BatteryMetrics(
        voltage=round_fixed(sample.voltage, 2),
        current=round_fixed(sample.current, 2),
        temperature=round_fixed(sample.temperature, 1),
        charging_status=sample.charging_flag,
        charging_status_text="Charging" if sample.charging_flag == 1 else "Discharging",
        soc=round_half_up(soc),
        soh=round_half_up(soh),
        runtime=round_fixed(runtime_hours(soc, sample.current, params, runtime_mode), 2),
        range=round_fixed(range_km(soc, sample.current, params, runtime_mode), 1),
        power=round_fixed(max(0.0, power_watts(sample.voltage, sample.current)), 2),
        energy=round_fixed(max(0.0, energy_watt_hours(sample.voltage, soc, params)), 2),
        battery_type=params.battery_type,
        capacity=params.capacity_label,
        last_updated=sample.observed_at,
        timestamp=now,
    )
