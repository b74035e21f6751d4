"""
POST /api/mode endpoint relaying the eco/sport drive mode to the actuator.

The mode is mapped to 0 (eco) or 1 (sport) and written to ThingSpeak
field5. The estimation core never sees this value.

CHANGELOG:
- 2026-10-14: Initial creation (STORY-008)

TODO:
- None
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from evmonitor.api.deps import Channel
from evmonitor.channel.thingspeak import ModeRelayError
from evmonitor.models import ModeRequest, ModeResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["mode"])

INVALID_MODE_ERROR = 'Invalid mode. Must be "eco" or "sport"'


@router.post("/mode", response_model=ModeResponse)
async def set_mode(request: Request, channel: Channel) -> ModeResponse | JSONResponse:
    """Relay the requested drive mode to the channel.

    Args:
        request: The incoming FastAPI request; body ``{"mode": "eco"|"sport"}``.
        channel: The app's ThingSpeak client.

    Returns:
        ModeResponse on success; 400 JSONResponse for a missing or unknown
        mode; 502 JSONResponse when the channel rejects the write.
    """
    body = await request.body()
    try:
        payload = ModeRequest.model_validate_json(body)
    except ValidationError:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": INVALID_MODE_ERROR},
        )

    mode = payload.mode
    logger.info("Setting mode to %s (value: %d)", mode.value.upper(), mode.code)

    try:
        await channel.write_mode(mode.code)
    except ModeRelayError as exc:
        logger.error("Failed to set mode: %s", exc)
        return JSONResponse(
            status_code=502,
            content={
                "success": False,
                "error": "Failed to set mode",
                "message": str(exc),
            },
        )

    return ModeResponse(
        mode=mode,
        mode_value=mode.code,
        message=f"{mode.value.upper()} mode activated",
    )
