"""
GET /api/data endpoint returning the latest battery metrics.

Fetches the most recent feed entry from ThingSpeak, runs one estimation
cycle through the BatteryMonitor and returns the metrics record. A channel
failure is reported as 503 "Telemetry unavailable" and never as a degraded
estimate.

CHANGELOG:
- 2026-10-14: Initial creation (STORY-007)

TODO:
- None
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from evmonitor.api.deps import Channel, Monitor
from evmonitor.channel.thingspeak import TelemetryUnavailableError
from evmonitor.models import DataResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["data"])


@router.get("/data", response_model=DataResponse)
async def data(monitor: Monitor, channel: Channel) -> DataResponse | JSONResponse:
    """Return SOC, SOH and derived metrics for the latest telemetry sample.

    Args:
        monitor: The app's BatteryMonitor.
        channel: The app's ThingSpeak client.

    Returns:
        DataResponse: ``{"success": true, "data": {...}}``, or a 503
        JSONResponse when the channel cannot deliver telemetry.
    """
    try:
        feed = await channel.fetch_latest()
    except TelemetryUnavailableError as exc:
        logger.warning("Telemetry unavailable: %s", exc)
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "error": "Telemetry unavailable",
                "message": str(exc),
            },
        )

    metrics = monitor.process_feed(feed)
    return DataResponse(data=metrics)
