"""
State-of-health models.

Two scoring models are available and selected by name through
:func:`get_health_model`. They use different scales and are never blended:

- ``penalty`` (:class:`PenaltyHealthModel`, default): start at 100 and
  subtract fixed penalties for voltage sag under load, temperature,
  deep discharge, high C-rate and overcharge.
- ``factor`` (:class:`FactorHealthModel`): multiply a voltage factor and
  a temperature factor, each in [0, 1], and scale to percent.

Both return an unrounded percentage clamped to [0, 100] and are pure, so a
single instance can be shared across request handlers.

CHANGELOG:
- 2026-10-13: Add factor model and get_health_model selector (STORY-006)
- 2026-10-12: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

import math
from typing import Protocol

from evmonitor.core.params import BatteryParams

# Healthy cells drop roughly 0.1 V per amp of load.
_EXPECTED_SAG_V_PER_A = 0.1


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


class HealthModel(Protocol):
    """Interface shared by the state-of-health models."""

    name: str

    def estimate(
        self,
        voltage: float,
        temperature: float,
        current: float = 0.0,
    ) -> float: ...


class PenaltyHealthModel:
    """Additive penalty scoring (Model A).

    Args:
        params: Pack parameters; nominal voltage and rated capacity are used.
    """

    name = "penalty"

    def __init__(self, params: BatteryParams) -> None:
        self._params = params

    def breakdown(
        self,
        voltage: float,
        temperature: float,
        current: float = 0.0,
    ) -> dict[str, int]:
        """Return each penalty separately, keyed by factor name."""
        load = abs(current) if math.isfinite(current) else 0.0
        return {
            "voltage_sag": self._voltage_sag_penalty(voltage, load),
            "temperature": _temperature_penalty(temperature),
            "deep_discharge": _deep_discharge_penalty(voltage),
            "c_rate": self._c_rate_penalty(load),
            "overcharge": _overcharge_penalty(voltage),
        }

    def estimate(
        self,
        voltage: float,
        temperature: float,
        current: float = 0.0,
    ) -> float:
        """Return 100 minus the sum of all penalties, clamped to [0, 100]."""
        total = sum(self.breakdown(voltage, temperature, current).values())
        return _clamp_percent(100.0 - total)

    def _voltage_sag_penalty(self, voltage: float, load: float) -> int:
        if load <= 0:
            return 0
        expected = self._params.nominal_voltage - _EXPECTED_SAG_V_PER_A * load
        if voltage < expected - 0.2:
            return 10
        if voltage < expected - 0.1:
            return 5
        return 0

    def _c_rate_penalty(self, load: float) -> int:
        c_rate = load / self._params.rated_capacity_ah
        if c_rate > 2.0:
            return 8
        if c_rate > 1.5:
            return 5
        if c_rate > 1.0:
            return 2
        return 0


def _temperature_penalty(temperature: float) -> int:
    # 10-40 C carries no penalty.
    if temperature > 60:
        return 15
    if temperature > 50:
        return 10
    if temperature > 40:
        return 5
    if temperature < 0:
        return 8
    if temperature < 10:
        return 3
    return 0


def _deep_discharge_penalty(voltage: float) -> int:
    if voltage < 3.0:
        return 20
    if voltage < 3.2:
        return 10
    if voltage < 3.4:
        return 3
    return 0


def _overcharge_penalty(voltage: float) -> int:
    if voltage > 4.25:
        return 15
    if voltage > 4.22:
        return 5
    return 0


class FactorHealthModel:
    """Multiplicative factor scoring (Model B).

    Current is accepted for interface compatibility but does not affect the
    score.
    """

    name = "factor"

    def __init__(self, params: BatteryParams) -> None:
        self._params = params

    def factors(self, voltage: float, temperature: float) -> dict[str, float]:
        if voltage < self._params.min_voltage + 0.2:
            voltage_factor = 0.8
        elif voltage < self._params.nominal_voltage:
            voltage_factor = 0.9
        else:
            voltage_factor = 1.0

        if temperature > 45 or temperature < 0:
            temperature_factor = 0.85
        elif temperature > 35 or temperature < 10:
            temperature_factor = 0.95
        else:
            temperature_factor = 1.0

        return {"voltage": voltage_factor, "temperature": temperature_factor}

    def estimate(
        self,
        voltage: float,
        temperature: float,
        current: float = 0.0,
    ) -> float:
        f = self.factors(voltage, temperature)
        return _clamp_percent(f["voltage"] * f["temperature"] * 100.0)


_MODELS: dict[str, type[PenaltyHealthModel] | type[FactorHealthModel]] = {
    PenaltyHealthModel.name: PenaltyHealthModel,
    FactorHealthModel.name: FactorHealthModel,
}


def get_health_model(name: str, params: BatteryParams) -> HealthModel:
    """Build the health model registered under *name*.

    Args:
        name: ``"penalty"`` or ``"factor"``.
        params: Pack parameters passed to the model.

    Raises:
        ValueError: If *name* is not a known model.
    """
    try:
        model_cls = _MODELS[name]
    except KeyError:
        raise ValueError(
            f"Unknown SOH model '{name}'. Expected one of: {', '.join(sorted(_MODELS))}"
        ) from None
    return model_cls(params)
