"""
ThingSpeak channel client for reading pack telemetry and relaying the drive mode.

Reads the most recent feed entry from ``/channels/{id}/feeds/last.json`` and
writes the eco/sport mode to field5 through ``/update``. Every failure is
raised as a :class:`ChannelError` subclass so the API layer can report
"telemetry unavailable" separately from a valid estimate.

Operations:
- fetch_latest(): GET the last feed entry as a dict.
- write_mode(value): write 0 (eco) or 1 (sport) to field5.

CHANGELOG:
- 2026-10-14: Add write_mode for the mode relay (STORY-008)
- 2026-10-12: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

_MODE_FIELD = "field5"


class ChannelError(Exception):
    """Base class for telemetry channel failures."""


class TelemetryUnavailableError(ChannelError):
    """The latest telemetry could not be fetched or parsed."""


class ModeRelayError(ChannelError):
    """The drive mode could not be written to the channel."""


class ThingSpeakClient:
    """HTTPS client for a single ThingSpeak channel.

    A new :class:`httpx.AsyncClient` is opened per request, so an instance
    holds no connection state and can be shared by all request handlers.

    Args:
        base_url: ThingSpeak API base URL. Must start with ``https://``.
        channel_id: Channel holding the telemetry fields.
        read_api_key: Channel read key.
        write_api_key: Channel write key.
        timeout_s: Per-request timeout in seconds.

    Raises:
        ValueError: If *base_url* does not start with ``https://``.

    Usage::

        client = ThingSpeakClient(
            base_url="https://api.thingspeak.com",
            channel_id="123456",
            read_api_key="READKEY",
            write_api_key="WRITEKEY",
        )
        feed = await client.fetch_latest()
        await client.write_mode(1)
    """

    def __init__(
        self,
        base_url: str,
        channel_id: str,
        read_api_key: str,
        write_api_key: str,
        timeout_s: float = 10.0,
    ) -> None:
        if not base_url.lower().startswith("https://"):
            raise ValueError(f"ThingSpeak base URL must use HTTPS (got: '{base_url}').")
        self._base_url = base_url.rstrip("/")
        self._channel_id = channel_id
        self._read_api_key = read_api_key
        self._write_api_key = write_api_key
        self._timeout_s = timeout_s

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def read_url(self) -> str:
        return f"{self._base_url}/channels/{self._channel_id}/feeds/last.json"

    @property
    def write_url(self) -> str:
        return f"{self._base_url}/update"

    async def fetch_latest(self) -> dict[str, Any]:
        """Fetch the most recent feed entry of the channel.

        Returns:
            The feed entry, e.g. ``{"created_at": ..., "field1": "3.92", ...}``.

        Raises:
            TelemetryUnavailableError: On network errors, timeouts, non-200
                responses, or a body that is not a JSON object (ThingSpeak
                answers ``-1`` for an empty or private channel).
        """
        try:
            async with httpx.AsyncClient(verify=True, timeout=self._timeout_s) as client:
                response = await client.get(
                    self.read_url,
                    params={"api_key": self._read_api_key},
                )
        except httpx.HTTPError as exc:
            logger.warning("Telemetry fetch failed (network error): %s", exc)
            raise TelemetryUnavailableError(f"ThingSpeak unreachable: {exc}") from exc

        if response.status_code != 200:
            logger.warning("Telemetry fetch failed (HTTP %d)", response.status_code)
            raise TelemetryUnavailableError(
                f"ThingSpeak returned HTTP {response.status_code}"
            )

        try:
            feed = response.json()
        except ValueError as exc:
            raise TelemetryUnavailableError("ThingSpeak returned malformed JSON") from exc

        if not isinstance(feed, dict):
            logger.warning("Telemetry fetch returned non-object body: %r", feed)
            raise TelemetryUnavailableError("ThingSpeak channel has no feed data")

        logger.debug("Fetched feed entry %s", feed.get("entry_id"))
        return feed

    async def write_mode(self, value: int) -> int:
        """Write the numeric drive mode to field5.

        Args:
            value: 0 for eco, 1 for sport.

        Returns:
            The ThingSpeak entry id created by the write.

        Raises:
            ModeRelayError: On network errors, non-200 responses, or a ``0``
                body (ThingSpeak's answer for rate-limited or rejected writes).
        """
        try:
            async with httpx.AsyncClient(verify=True, timeout=self._timeout_s) as client:
                response = await client.get(
                    self.write_url,
                    params={"api_key": self._write_api_key, _MODE_FIELD: value},
                )
        except httpx.HTTPError as exc:
            logger.warning("Mode write failed (network error): %s", exc)
            raise ModeRelayError(f"ThingSpeak unreachable: {exc}") from exc

        if response.status_code != 200:
            logger.warning("Mode write failed (HTTP %d)", response.status_code)
            raise ModeRelayError(f"ThingSpeak returned HTTP {response.status_code}")

        try:
            entry_id = int(response.text.strip())
        except ValueError:
            raise ModeRelayError(
                f"ThingSpeak returned unexpected body: {response.text[:50]!r}"
            ) from None

        if entry_id == 0:
            raise ModeRelayError("ThingSpeak write failed (rate limit or invalid API key)")

        logger.info("Mode value %d written to %s (entry %d)", value, _MODE_FIELD, entry_id)
        return entry_id
