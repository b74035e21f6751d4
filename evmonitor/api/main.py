"""
FastAPI application entry point for the EV battery monitor API.

Settings are loaded and validated at startup. The lifespan builds the
ThingSpeak client and the single BatteryMonitor for the pack and stores
both on ``app.state`` for route handlers. Unknown routes and unhandled
errors are answered with the ``{"success": false, ...}`` envelope the
dashboard expects.

CHANGELOG:
- 2026-10-19: JSON envelope for every HTTP error status (STORY-013)
- 2026-10-15: Register calibrate router (STORY-010)
- 2026-10-14: Register data and mode routers (STORY-007, STORY-008)
- 2026-10-12: Initial creation (STORY-001)
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from evmonitor.api.calibrate import router as calibrate_router
from evmonitor.api.data import router as data_router
from evmonitor.api.health import router as health_router
from evmonitor.api.mode import router as mode_router
from evmonitor.channel.thingspeak import ThingSpeakClient
from evmonitor.config import MonitorSettings
from evmonitor.logs import configure_logging, masked_secret
from evmonitor.services.monitor import BatteryMonitor

logger = logging.getLogger(__name__)


def log_config_summary(settings: MonitorSettings) -> None:
    """Log a config summary at startup with API keys masked."""
    logger.info(
        "Monitor starting with config: "
        "channel_id=%s, base_url=%s, rated_capacity_ah=%s, "
        "soh_model=%s, soc_method=%s, charge_accumulation=%s, "
        "runtime_mode=%s, read_key=%s, write_key=%s",
        settings.thingspeak_channel_id,
        settings.thingspeak_base_url,
        settings.rated_capacity_ah,
        settings.soh_model,
        settings.soc_method,
        settings.charge_accumulation.value,
        settings.runtime_mode.value,
        masked_secret(settings.thingspeak_read_api_key),
        masked_secret(settings.thingspeak_write_api_key),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: build the channel client and battery monitor.

    Raises:
        pydantic.ValidationError: If required settings are missing or invalid.
    """
    settings = MonitorSettings()
    app.state.settings = settings
    log_config_summary(settings)

    app.state.channel = ThingSpeakClient(
        base_url=settings.thingspeak_base_url,
        channel_id=settings.thingspeak_channel_id,
        read_api_key=settings.thingspeak_read_api_key,
        write_api_key=settings.thingspeak_write_api_key,
        timeout_s=settings.request_timeout_s,
    )
    app.state.monitor = BatteryMonitor.from_settings(settings)

    logger.info("Settings validated, EV battery monitor API ready")
    yield
    logger.info("EV battery monitor API shutting down")


app = FastAPI(
    title="EV Battery Monitor API",
    description="State of charge, state of health and derived metrics for a Li-ion pack.",
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

app.include_router(health_router)
app.include_router(data_router)
app.include_router(mode_router)
app.include_router(calibrate_router)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap routing and HTTP errors (404, 405, ...) in the JSON error envelope."""
    error = "Endpoint not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": error},
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "message": str(exc),
        },
    )


@app.get("/")
async def root() -> dict:
    """Root status endpoint.

    Returns:
        dict: JSON object with application status.
    """
    return {"status": "ok"}


def main() -> None:
    """Console entrypoint: configure logging and serve the app with uvicorn."""
    settings = MonitorSettings()
    configure_logging(settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
