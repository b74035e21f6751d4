"""
Telemetry channel package.

Exports the ThingSpeak client and its error hierarchy.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-002)
"""

from evmonitor.channel.thingspeak import (
    ChannelError,
    ModeRelayError,
    TelemetryUnavailableError,
    ThingSpeakClient,
)

__all__ = [
    "ChannelError",
    "ModeRelayError",
    "TelemetryUnavailableError",
    "ThingSpeakClient",
]
