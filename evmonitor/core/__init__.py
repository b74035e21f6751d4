"""
Battery estimation core.

Pure computation over in-memory state: the coulomb-counting charge
estimator, the state-of-health models and the derived-metrics functions.
Nothing in this package performs I/O or reads the system clock directly.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-002)
"""

from evmonitor.core.params import BatteryParams, ChargeAccumulation, RuntimeMode
from evmonitor.core.soc import ChargeEstimator, ChargeState, soc_from_voltage
from evmonitor.core.soh import FactorHealthModel, PenaltyHealthModel, get_health_model

__all__ = [
    "BatteryParams",
    "ChargeAccumulation",
    "ChargeEstimator",
    "ChargeState",
    "FactorHealthModel",
    "PenaltyHealthModel",
    "RuntimeMode",
    "get_health_model",
    "soc_from_voltage",
]
