"""
Pure normalizer that converts a ThingSpeak feed entry into a TelemetrySample.

ThingSpeak returns every field as a string (or null when the device did not
write it). The channel layout is:

=======  ==========================  =========
Field    Meaning                     Unit
=======  ==========================  =========
field1   cell voltage                V
field2   pack current (+ discharge)  A
field3   pack temperature            deg C
field4   charging flag               0 / 1
=======  ==========================  =========

Missing sensor data degrades gracefully: a missing or unparseable numeric
field takes the previous sample's value when one is supplied, otherwise 0.
This function never raises and performs no I/O.

CHANGELOG:
- 2026-10-13: Fall back to previous sample values for missing fields (STORY-011)
- 2026-10-12: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any

from evmonitor.models import TelemetrySample

logger = logging.getLogger(__name__)

_FIELD_MAP: dict[str, str] = {
    "voltage": "field1",
    "current": "field2",
    "temperature": "field3",
}
"""Maps TelemetrySample numeric attribute -> ThingSpeak feed key."""

_CHARGING_FIELD = "field4"
_TIMESTAMP_FIELD = "created_at"


def _parse_float(value: Any) -> float | None:
    """Parse a feed value as a finite float, or ``None`` if impossible."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def _parse_flag(value: Any) -> int | None:
    parsed = _parse_float(value)
    if parsed is None:
        return None
    return 1 if int(parsed) == 1 else 0


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.warning("Feed timestamp %r is not ISO 8601, ignoring", value)
        return None


def normalize_feed(
    feed: dict[str, Any],
    *,
    previous: TelemetrySample | None = None,
) -> TelemetrySample:
    """Convert a raw ThingSpeak feed entry into a :class:`TelemetrySample`.

    Args:
        feed: One feed entry as returned by ``/feeds/last.json``.
        previous: Last successfully built sample, used to fill in fields
            the device did not report this time.

    Returns:
        A fully populated :class:`TelemetrySample`.
    """
    values: dict[str, float] = {}

    for attr, key in _FIELD_MAP.items():
        value = _parse_float(feed.get(key))
        if value is None:
            fallback = getattr(previous, attr) if previous is not None else 0.0
            logger.warning(
                "Feed field '%s' (%s) missing or malformed (%r), using %s",
                key,
                attr,
                feed.get(key),
                fallback,
            )
            value = fallback
        values[attr] = value

    charging_flag = _parse_flag(feed.get(_CHARGING_FIELD))
    if charging_flag is None:
        charging_flag = previous.charging_flag if previous is not None else 0

    return TelemetrySample(
        **values,
        charging_flag=charging_flag,
        observed_at=_parse_timestamp(feed.get(_TIMESTAMP_FIELD)),
    )
