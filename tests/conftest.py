"""
Shared test fixtures for the EV battery monitor tests.

Provides a controllable clock for the estimation core, environment
variables for MonitorSettings, and a TestClient whose ThingSpeak channel is
replaced by an AsyncMock through FastAPI dependency overrides.

CHANGELOG:
- 2026-10-14: Add channel mock and client fixtures (STORY-007)
- 2026-10-12: Initial creation (STORY-001)
"""

from __future__ import annotations

from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from evmonitor.core.params import BatteryParams

# All MonitorSettings environment variable names, used for cleanup.
_ALL_MONITOR_ENV_VARS = (
    "THINGSPEAK_CHANNEL_ID",
    "THINGSPEAK_READ_API_KEY",
    "THINGSPEAK_WRITE_API_KEY",
    "THINGSPEAK_BASE_URL",
    "REQUEST_TIMEOUT_S",
    "RATED_CAPACITY_AH",
    "NOMINAL_VOLTAGE",
    "MIN_VOLTAGE",
    "MAX_VOLTAGE",
    "EFFICIENCY",
    "AVERAGE_SPEED_KMH",
    "SOH_MODEL",
    "SOC_METHOD",
    "CHARGE_ACCUMULATION",
    "RUNTIME_MODE",
    "HOST",
    "PORT",
    "LOG_LEVEL",
)

T0 = datetime(2026, 10, 12, 8, 0, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock for deterministic integration tests."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, *, hours: float = 0.0, seconds: float = 0.0) -> datetime:
        self.now = self.now + timedelta(hours=hours, seconds=seconds)
        return self.now


@pytest.fixture(autouse=True)
def _clean_monitor_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove monitor env vars and isolate from .env files before each test."""
    for var in _ALL_MONITOR_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_required(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set only the required ThingSpeak credentials."""
    env = {
        "THINGSPEAK_CHANNEL_ID": "123456",
        "THINGSPEAK_READ_API_KEY": "test-read-key",
        "THINGSPEAK_WRITE_API_KEY": "test-write-key",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def params() -> BatteryParams:
    return BatteryParams()


@pytest.fixture()
def feed() -> dict[str, str]:
    """A typical ThingSpeak last.json entry for a resting, healthy pack."""
    return {
        "created_at": "2026-10-12T08:00:00Z",
        "entry_id": 42,
        "field1": "3.70",
        "field2": "0.00",
        "field3": "25.0",
        "field4": "0",
    }


@pytest.fixture()
def mock_channel(feed: dict[str, str]) -> AsyncMock:
    """Mock ThingSpeakClient returning *feed* and accepting mode writes."""
    channel = AsyncMock()
    channel.fetch_latest = AsyncMock(return_value=feed)
    channel.write_mode = AsyncMock(return_value=17)
    return channel


@pytest.fixture()
def client(env_required: dict[str, str], mock_channel: AsyncMock) -> Generator[TestClient, None, None]:
    """TestClient with the ThingSpeak channel replaced by *mock_channel*.

    Uses a context manager so lifespan startup/shutdown run, giving each
    test a fresh BatteryMonitor.
    """
    from evmonitor.api.deps import get_channel
    from evmonitor.api.main import app

    app.dependency_overrides[get_channel] = lambda: mock_channel
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
