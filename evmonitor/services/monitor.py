"""
Battery monitor service: one estimation cycle per telemetry sample.

Owns the single ChargeEstimator for the physical pack together with the
configured health model and runtime policy. The API layer fetches a feed
entry from the channel and hands it to :meth:`BatteryMonitor.process_feed`;
the monitor normalizes it, updates SOC, scores SOH and builds the metrics
record. A lock serialises whole cycles and calibrations, so the stored
previous sample and the charge accumulator always move together.

CHANGELOG:
- 2026-10-19: Reject calibration in voltage mode (STORY-013)
- 2026-10-15: Add calibrate() for the calibration endpoint (STORY-010)
- 2026-10-13: Initial creation (STORY-007)

TODO:
- None
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal

from evmonitor.core.metrics import build_metrics
from evmonitor.core.params import BatteryParams, RuntimeMode
from evmonitor.core.soc import ChargeEstimator, Clock, soc_from_voltage, utc_now
from evmonitor.core.soh import HealthModel, get_health_model
from evmonitor.normalizer import normalize_feed

if TYPE_CHECKING:
    from evmonitor.config import MonitorSettings
    from evmonitor.models import BatteryMetrics, TelemetrySample

logger = logging.getLogger(__name__)


class CalibrationUnavailableError(Exception):
    """Calibration was requested while SOC is read off the voltage curve."""


class BatteryMonitor:
    """Estimation pipeline for one battery.

    Args:
        params: Pack parameters.
        estimator: Coulomb counter owned by this monitor.
        health_model: SOH scoring strategy.
        soc_method: ``"coulomb"`` integrates current through *estimator*,
            ``"voltage"`` reads SOC off the discharge curve.
        runtime_mode: Idle-branch policy for runtime and range.
        clock: Time source for the metrics timestamp and integration.
    """

    def __init__(
        self,
        params: BatteryParams,
        *,
        estimator: ChargeEstimator,
        health_model: HealthModel,
        soc_method: Literal["coulomb", "voltage"] = "coulomb",
        runtime_mode: RuntimeMode = RuntimeMode.LEGACY,
        clock: Clock = utc_now,
    ) -> None:
        self.params = params
        self.estimator = estimator
        self.health_model = health_model
        self.soc_method = soc_method
        self.runtime_mode = runtime_mode
        self._clock = clock
        self._lock = threading.Lock()
        self._last_sample: TelemetrySample | None = None

    @classmethod
    def from_settings(
        cls,
        settings: MonitorSettings,
        *,
        clock: Clock = utc_now,
    ) -> BatteryMonitor:
        """Build a monitor wired according to *settings*."""
        params = settings.battery_params()
        estimator = ChargeEstimator(
            params,
            clock=clock,
            accumulation=settings.charge_accumulation,
        )
        return cls(
            params,
            estimator=estimator,
            health_model=get_health_model(settings.soh_model, params),
            soc_method=settings.soc_method,
            runtime_mode=settings.runtime_mode,
            clock=clock,
        )

    @property
    def last_sample(self) -> TelemetrySample | None:
        return self._last_sample

    def process_feed(
        self,
        feed: dict[str, Any],
        now: datetime | None = None,
    ) -> BatteryMetrics:
        """Normalize a raw feed entry and run one estimation cycle on it."""
        with self._lock:
            sample = normalize_feed(feed, previous=self._last_sample)
            self._last_sample = sample
            return self._estimate(sample, now)

    def estimate(
        self,
        sample: TelemetrySample,
        now: datetime | None = None,
    ) -> BatteryMetrics:
        """Run one estimation cycle on an already normalized sample."""
        with self._lock:
            self._last_sample = sample
            return self._estimate(sample, now)

    def calibrate(
        self,
        asserted_soc_percent: float = 100.0,
        now: datetime | None = None,
    ) -> float:
        """Reset the charge accumulator to a known SOC.

        Returns:
            The resulting consumed capacity in Ah.

        Raises:
            CalibrationUnavailableError: If ``soc_method`` is ``"voltage"``;
                the charge accumulator is not used in that mode.
        """
        if self.soc_method == "voltage":
            raise CalibrationUnavailableError(
                "Calibration is not available when SOC_METHOD=voltage"
            )
        with self._lock:
            return self.estimator.reset(asserted_soc_percent, now=now or self._clock())

    def _estimate(self, sample: TelemetrySample, now: datetime | None) -> BatteryMetrics:
        if now is None:
            now = self._clock()

        if self.soc_method == "voltage":
            soc = soc_from_voltage(sample.voltage)
        else:
            soc = self.estimator.update(sample.current, sample.voltage, now)

        soh = self.health_model.estimate(sample.voltage, sample.temperature, sample.current)

        metrics = build_metrics(
            sample,
            soc=soc,
            soh=soh,
            params=self.params,
            runtime_mode=self.runtime_mode,
            now=now,
        )
        logger.info(
            "Estimated soc=%d%% soh=%d%% from V=%.2f I=%.2f T=%.1f",
            metrics.soc,
            metrics.soh,
            sample.voltage,
            sample.current,
            sample.temperature,
        )
        return metrics
