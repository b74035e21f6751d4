"""
FastAPI dependency injection providers.

Exposes the per-app BatteryMonitor and ThingSpeakClient stored on
``app.state`` during lifespan startup.

CHANGELOG:
- 2026-10-14: Initial creation (STORY-007)
"""

from typing import Annotated

from fastapi import Depends, Request

from evmonitor.channel.thingspeak import ThingSpeakClient
from evmonitor.services.monitor import BatteryMonitor


def get_monitor(request: Request) -> BatteryMonitor:
    """Return the BatteryMonitor owned by the running app."""
    return request.app.state.monitor


def get_channel(request: Request) -> ThingSpeakClient:
    """Return the ThingSpeak client owned by the running app."""
    return request.app.state.channel


# Type aliases for route handlers:
#   async def my_route(monitor: Monitor, channel: Channel): ...
Monitor = Annotated[BatteryMonitor, Depends(get_monitor)]
Channel = Annotated[ThingSpeakClient, Depends(get_channel)]
