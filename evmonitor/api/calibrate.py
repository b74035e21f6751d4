"""
POST /api/calibrate endpoint resetting the charge estimator to a known SOC.

Used when ground truth is available, e.g. the rider confirms the pack is
fully charged. The body is optional; an empty body calibrates to 100 %.
Out-of-range values are clamped to [0, 100] rather than rejected.

CHANGELOG:
- 2026-10-19: 409 in voltage SOC mode; drop raw input from 400 detail (STORY-013)
- 2026-10-15: Initial creation (STORY-010)

TODO:
- None
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from evmonitor.api.deps import Monitor
from evmonitor.models import CalibrationRequest, CalibrationResponse
from evmonitor.services.monitor import CalibrationUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["calibrate"])


@router.post("/calibrate", response_model=CalibrationResponse)
async def calibrate(request: Request, monitor: Monitor) -> CalibrationResponse | JSONResponse:
    """Calibrate the coulomb counter.

    Args:
        request: The incoming request; optional body ``{"soc": <percent>}``.
        monitor: The app's BatteryMonitor.

    Returns:
        CalibrationResponse with the applied SOC and resulting consumed
        capacity, a 400 JSONResponse for a non-numeric soc, or a 409
        JSONResponse when SOC comes from the voltage curve.
    """
    body = await request.body()
    try:
        payload = (
            CalibrationRequest.model_validate_json(body) if body.strip() else CalibrationRequest()
        )
    except ValidationError as exc:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Invalid calibration request. 'soc' must be a number",
                "detail": exc.errors(
                    include_url=False, include_context=False, include_input=False
                ),
            },
        )

    applied_soc = max(0.0, min(100.0, payload.soc))
    try:
        consumed = monitor.calibrate(applied_soc)
    except CalibrationUnavailableError as exc:
        logger.warning("Calibration rejected: %s", exc)
        return JSONResponse(
            status_code=409,
            content={
                "success": False,
                "error": "Calibration not available",
                "message": str(exc),
            },
        )

    return CalibrationResponse(soc=applied_soc, consumed_capacity_ah=round(consumed, 4))
