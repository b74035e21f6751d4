"""
State-of-charge estimation.

Two estimators live here:

- :class:`ChargeEstimator` integrates pack current over wall-clock time
  (coulomb counting) and owns the only mutable state in the core. A lock
  serialises ``update`` and ``reset`` so concurrent request handlers never
  interleave a read-modify-write of the accumulator.
- :func:`soc_from_voltage` maps a resting cell voltage onto the Li-ion
  discharge curve with a piecewise-linear approximation. It is stateless.

Sign convention: positive current means the pack is discharging.

CHANGELOG:
- 2026-10-14: Add SYMMETRIC charge accumulation (STORY-009)
- 2026-10-13: Add piecewise voltage curve estimator (STORY-004)
- 2026-10-12: Initial creation (STORY-003)

TODO:
- None
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from evmonitor.core.params import BatteryParams, ChargeAccumulation

logger = logging.getLogger(__name__)

_SECONDS_PER_HOUR = 3600.0

# (cell voltage, SOC %) breakpoints, ascending by voltage.
_OCV_CURVE: tuple[tuple[float, float], ...] = (
    (3.0, 0.0),
    (3.4, 10.0),
    (3.7, 40.0),
    (4.0, 80.0),
    (4.2, 100.0),
)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: timezone-aware current UTC time."""
    return datetime.now(tz=UTC)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def soc_from_voltage(voltage: float) -> float:
    """Estimate SOC (%) from cell voltage using the Li-ion discharge curve.

    The curve is steep at both ends and flat in the 3.7-4.0 V region:

    ======== ==========
    Voltage  SOC
    ======== ==========
    >= 4.2 V 100 %
    4.0 V    80 %
    3.7 V    40 %
    3.4 V    10 %
    <= 3.0 V 0 %
    ======== ==========

    Values between breakpoints are linearly interpolated.

    Args:
        voltage: Measured cell voltage in volts.

    Returns:
        SOC percentage clamped to [0, 100]. Non-finite input yields 0.
    """
    if not math.isfinite(voltage):
        return 0.0

    v_lo, soc_lo = _OCV_CURVE[0]
    if voltage <= v_lo:
        return soc_lo

    for v_hi, soc_hi in _OCV_CURVE[1:]:
        if voltage < v_hi:
            soc = soc_lo + (voltage - v_lo) / (v_hi - v_lo) * (soc_hi - soc_lo)
            return _clamp(soc, 0.0, 100.0)
        v_lo, soc_lo = v_hi, soc_hi

    return 100.0


@dataclass
class ChargeState:
    """Mutable accumulator owned by a :class:`ChargeEstimator`.

    Attributes:
        rated_capacity_ah: Nameplate capacity; constant for the lifetime of
            the state.
        consumed_capacity_ah: Charge drawn since the last reset, clamped to
            [0, rated_capacity_ah].
        last_update_time: Timestamp of the last integration step or reset.
            ``None`` until the first sample or calibration.
        is_charging: Informational flag set from the sign of the last current.
    """

    rated_capacity_ah: float
    consumed_capacity_ah: float = 0.0
    last_update_time: datetime | None = None
    is_charging: bool = False

    @property
    def remaining_capacity_ah(self) -> float:
        return self.rated_capacity_ah - self.consumed_capacity_ah

    @property
    def soc_percent(self) -> float:
        """Unrounded SOC in percent, clamped to [0, 100]."""
        soc = 100.0 * self.remaining_capacity_ah / self.rated_capacity_ah
        return _clamp(soc, 0.0, 100.0)


class ChargeEstimator:
    """Coulomb counter for one physical battery.

    Each call to :meth:`update` integrates the given current over the time
    elapsed since the previous call. The first call only records the
    timestamp. A clock that stalls or runs backwards skips integration and
    the stored timestamp is kept, so no interval is ever counted twice.

    In ``LEGACY`` accumulation mode zero or negative current never lowers
    the consumed capacity: SOC can only go back up through :meth:`reset`.
    ``SYMMETRIC`` mode credits charging current back to the pack.

    Args:
        params: Pack parameters; only ``rated_capacity_ah`` is used.
        clock: Zero-argument callable returning the current time. Injected
            so tests can drive time deterministically.
        accumulation: Charging-current policy.
        initial_soc_percent: SOC assumed at construction (default full).

    Usage::

        estimator = ChargeEstimator(BatteryParams())
        soc = estimator.update(current_amps=1.2)
        estimator.reset(100)
    """

    def __init__(
        self,
        params: BatteryParams,
        *,
        clock: Clock = utc_now,
        accumulation: ChargeAccumulation = ChargeAccumulation.LEGACY,
        initial_soc_percent: float = 100.0,
    ) -> None:
        self._params = params
        self._clock = clock
        self._accumulation = accumulation
        self._lock = threading.Lock()
        self._state = ChargeState(
            rated_capacity_ah=params.rated_capacity_ah,
            consumed_capacity_ah=self._consumed_for(initial_soc_percent),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> ChargeState:
        """A snapshot copy of the current accumulator state."""
        with self._lock:
            return ChargeState(
                rated_capacity_ah=self._state.rated_capacity_ah,
                consumed_capacity_ah=self._state.consumed_capacity_ah,
                last_update_time=self._state.last_update_time,
                is_charging=self._state.is_charging,
            )

    @property
    def soc_percent(self) -> float:
        """Unrounded SOC from the last update, without integrating."""
        with self._lock:
            return self._state.soc_percent

    @property
    def accumulation(self) -> ChargeAccumulation:
        return self._accumulation

    def update(
        self,
        current_amps: float,
        voltage_volts: float | None = None,
        now: datetime | None = None,
    ) -> float:
        """Integrate *current_amps* up to *now* and return the new SOC.

        Args:
            current_amps: Pack current in amps, positive while discharging.
                NaN or infinite values are treated as 0 (idle).
            voltage_volts: Terminal voltage; recorded in debug logs only.
            now: Sample time. Defaults to the injected clock.

        Returns:
            Unrounded SOC percentage in [0, 100].
        """
        if now is None:
            now = self._clock()
        if not math.isfinite(current_amps):
            logger.warning("Non-finite current %r treated as 0 A", current_amps)
            current_amps = 0.0

        with self._lock:
            state = self._state
            state.is_charging = current_amps <= 0

            if state.last_update_time is None:
                state.last_update_time = now
                return state.soc_percent

            delta_hours = (now - state.last_update_time).total_seconds() / _SECONDS_PER_HOUR
            if delta_hours <= 0:
                logger.debug(
                    "Clock did not advance (delta=%.6fh), skipping integration",
                    delta_hours,
                )
                return state.soc_percent

            delta_ah = current_amps * delta_hours
            if current_amps > 0 or self._accumulation is ChargeAccumulation.SYMMETRIC:
                state.consumed_capacity_ah = _clamp(
                    state.consumed_capacity_ah + delta_ah,
                    0.0,
                    state.rated_capacity_ah,
                )
            state.last_update_time = now

            logger.debug(
                "Integrated %.3f A (%.3f V) over %.6fh: consumed=%.4f Ah",
                current_amps,
                voltage_volts if voltage_volts is not None else float("nan"),
                delta_hours,
                state.consumed_capacity_ah,
            )
            return state.soc_percent

    def reset(
        self,
        asserted_soc_percent: float = 100.0,
        now: datetime | None = None,
    ) -> float:
        """Calibrate the accumulator to an externally known SOC.

        Out-of-range percentages are clamped to [0, 100].

        Args:
            asserted_soc_percent: Known state of charge, e.g. 100 after the
                user confirms a full charge.
            now: Calibration time. Defaults to the injected clock.

        Returns:
            The resulting consumed capacity in Ah.
        """
        if now is None:
            now = self._clock()

        with self._lock:
            self._state.consumed_capacity_ah = self._consumed_for(asserted_soc_percent)
            self._state.last_update_time = now
            consumed = self._state.consumed_capacity_ah

        logger.info(
            "Charge estimator calibrated to %.1f%% (consumed=%.4f Ah)",
            _clamp(asserted_soc_percent, 0.0, 100.0),
            consumed,
        )
        return consumed

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _consumed_for(self, soc_percent: float) -> float:
        """Consumed capacity matching *soc_percent* (clamped, NaN -> 100 %)."""
        if math.isnan(soc_percent):
            soc_percent = 100.0
        pct = _clamp(soc_percent, 0.0, 100.0)
        return self._params.rated_capacity_ah * (100.0 - pct) / 100.0
