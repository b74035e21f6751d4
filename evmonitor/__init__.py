"""
EV battery monitor package.

Reads pack telemetry (voltage, current, temperature, charging flag) from a
ThingSpeak channel, estimates state of charge and state of health, and
exposes derived metrics plus an eco/sport mode relay over an HTTP API.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""
