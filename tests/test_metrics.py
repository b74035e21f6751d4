"""
Unit tests for derived metrics (runtime, range, power, energy).

CHANGELOG:
- 2026-10-19: Fixed-point rounding of decimal fields (STORY-013)
- 2026-10-14: Add RuntimeMode.FIXED tests (STORY-009)
- 2026-10-13: Initial creation (STORY-007)

TODO:
- None
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from evmonitor.core.metrics import (
    build_metrics,
    energy_watt_hours,
    power_watts,
    range_km,
    round_fixed,
    round_half_up,
    runtime_hours,
)
from evmonitor.core.params import BatteryParams, RuntimeMode
from evmonitor.models import BatteryMetrics, TelemetrySample

_NOW = datetime(2026, 10, 13, 9, 30, 0, tzinfo=UTC)


class TestRuntimeHours:
    def test_half_charge_at_one_amp(self, params) -> None:
        assert runtime_hours(50, 1.0, params) == pytest.approx(0.85)

    def test_full_charge_at_two_amps(self, params) -> None:
        assert runtime_hours(100, 2.0, params) == pytest.approx(0.85)

    def test_legacy_idle_returns_available_capacity(self, params) -> None:
        assert runtime_hours(50, 0.0, params) == pytest.approx(1.0)

    def test_legacy_charging_returns_available_capacity(self, params) -> None:
        assert runtime_hours(75, -1.5, params) == pytest.approx(1.5)

    def test_legacy_nan_current_returns_available_capacity(self, params) -> None:
        assert runtime_hours(100, float("nan"), params) == pytest.approx(2.0)

    def test_fixed_idle_returns_zero(self, params) -> None:
        assert runtime_hours(50, 0.0, params, RuntimeMode.FIXED) == 0.0

    def test_fixed_discharge_matches_legacy(self, params) -> None:
        assert runtime_hours(50, 1.0, params, RuntimeMode.FIXED) == pytest.approx(0.85)

    def test_empty_pack_has_no_runtime(self, params) -> None:
        assert runtime_hours(0, 1.0, params) == 0.0


class TestRangeKm:
    def test_range_from_runtime_and_speed(self, params) -> None:
        assert range_km(50, 1.0, params) == pytest.approx(21.25)

    def test_custom_speed(self) -> None:
        params = BatteryParams(average_speed_kmh=40.0)
        assert range_km(50, 1.0, params) == pytest.approx(34.0)

    def test_fixed_idle_range_is_zero(self, params) -> None:
        assert range_km(80, 0.0, params, RuntimeMode.FIXED) == 0.0


class TestPowerAndEnergy:
    def test_power_uses_current_magnitude(self) -> None:
        assert power_watts(3.7, -2.0) == pytest.approx(7.4)
        assert power_watts(3.7, 2.0) == pytest.approx(7.4)

    def test_energy_at_half_charge(self, params) -> None:
        assert energy_watt_hours(3.7, 50, params) == pytest.approx(3.7)

    def test_energy_full_pack(self, params) -> None:
        assert energy_watt_hours(4.2, 100, params) == pytest.approx(8.4)


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0.5, 1), (1.5, 2), (2.5, 3), (84.49, 84), (99.5, 100), (0.0, 0)],
    )
    def test_rounding(self, value: float, expected: int) -> None:
        assert round_half_up(value) == expected


class TestRoundFixed:
    @pytest.mark.parametrize(
        ("value", "places", "expected"),
        [
            (21.25, 1, 21.3),
            (0.125, 2, 0.13),
            (2.5, 0, 3.0),
            (-0.125, 2, -0.13),
            (3.8234, 2, 3.82),
            # 1.005 is stored just below the half, so it rounds down.
            (1.005, 2, 1.0),
        ],
    )
    def test_exact_halves_round_away_from_zero(
        self, value: float, places: int, expected: float
    ) -> None:
        assert round_fixed(value, places) == expected

    def test_non_finite_passes_through(self) -> None:
        assert round_fixed(float("inf"), 2) == float("inf")


class TestBuildMetrics:
    def _sample(self, **overrides: object) -> TelemetrySample:
        values = {
            "voltage": 3.8234,
            "current": 1.0,
            "temperature": 27.46,
            "charging_flag": 0,
            "observed_at": _NOW,
        }
        values.update(overrides)
        return TelemetrySample(**values)

    def test_returns_battery_metrics(self, params) -> None:
        metrics = build_metrics(self._sample(), soc=50.0, soh=92.5, params=params, now=_NOW)
        assert isinstance(metrics, BatteryMetrics)

    def test_rounding_precision(self, params) -> None:
        metrics = build_metrics(self._sample(), soc=50.4, soh=92.5, params=params, now=_NOW)
        assert metrics.voltage == 3.82
        assert metrics.current == 1.0
        assert metrics.temperature == 27.5
        assert metrics.soc == 50
        assert metrics.soh == 93

    def test_derived_values(self, params) -> None:
        metrics = build_metrics(
            self._sample(voltage=3.7), soc=50.0, soh=100.0, params=params, now=_NOW
        )
        assert metrics.runtime == 0.85
        assert metrics.range == 21.3
        assert metrics.power == 3.7
        assert metrics.energy == 3.7

    def test_charging_text(self, params) -> None:
        charging = build_metrics(
            self._sample(charging_flag=1), soc=80, soh=100, params=params, now=_NOW
        )
        discharging = build_metrics(self._sample(), soc=80, soh=100, params=params, now=_NOW)
        assert charging.charging_status_text == "Charging"
        assert discharging.charging_status_text == "Discharging"

    def test_labels_and_timestamps(self, params) -> None:
        metrics = build_metrics(self._sample(), soc=80, soh=100, params=params, now=_NOW)
        assert metrics.battery_type == "3.7V Li-ion"
        assert metrics.capacity == "2000mAh"
        assert metrics.last_updated == _NOW
        assert metrics.timestamp == _NOW

    def test_serialises_with_camel_case_keys(self, params) -> None:
        metrics = build_metrics(self._sample(), soc=80, soh=100, params=params, now=_NOW)
        dumped = metrics.model_dump(by_alias=True)
        assert "chargingStatusText" in dumped
        assert "chargingStatus" in dumped
        assert "lastUpdated" in dumped
        assert "batteryType" in dumped

    def test_metrics_are_immutable(self, params) -> None:
        metrics = build_metrics(self._sample(), soc=80, soh=100, params=params, now=_NOW)
        with pytest.raises(ValidationError):
            metrics.soc = 10  # type: ignore[misc]

    def test_negative_voltage_does_not_break_record(self, params) -> None:
        metrics = build_metrics(
            self._sample(voltage=-1.0), soc=50, soh=100, params=params, now=_NOW
        )
        assert metrics.power == 0.0
        assert metrics.energy == 0.0

    def test_power_half_cent_rounds_up(self, params) -> None:
        metrics = build_metrics(
            self._sample(voltage=0.125), soc=50, soh=100, params=params, now=_NOW
        )
        assert metrics.power == 0.13
