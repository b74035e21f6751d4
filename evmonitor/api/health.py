"""
Health check endpoint for the monitor API.

Provides a simple GET /health endpoint that returns status, service name and
the current server time with HTTP 200. It does not touch the telemetry
channel, so it stays green while ThingSpeak is unreachable.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-012)

TODO:
- None
"""

from datetime import UTC, datetime

from fastapi import APIRouter

router = APIRouter(tags=["health"])

SERVICE_NAME = "EV Battery Monitor"


@router.get("/health")
async def health() -> dict[str, str]:
    """Return a simple health status.

    Returns:
        dict: ``{"status": "ok", "service": ..., "timestamp": ...}``.
    """
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "timestamp": datetime.now(tz=UTC).isoformat(),
    }
