"""
Readers for the external live-value telemetry store.

A device pushes its latest readings into a live-value store; the ingestion
scheduler pulls them from here. Two stores are supported:

- Firebase Realtime Database, read through its REST API with httpx
  (``GET {base}/{channel}.json``).
- Redis, one key per channel, read with redis.asyncio.

Both readers share one contract: ``read(channel)`` returns the numeric value,
``None`` when the channel has no value yet, and raises SourceUnavailable on
transport failure, timeout or a value that is not a finite number. Readers never
retry; the scheduler's next tick is the retry.

CHANGELOG:
- 2026-10-19: Reject NaN and infinite readings
- 2026-10-19: Add Redis reader
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
import math
from typing import Protocol

import httpx
import redis.asyncio as redis
from redis.exceptions import RedisError

from powerwatch.config import Settings
from powerwatch.exceptions import SourceUnavailable

logger = logging.getLogger(__name__)

POWER_CHANNEL = "POWER"
CURRENT_CHANNEL = "CURRENT_DATA"

DEFAULT_TIMEOUT_S: float = 10.0


class TelemetrySource(Protocol):
    """Anything that can return the current value of a named channel."""

    async def read(self, channel: str) -> float | None: ...

    async def aclose(self) -> None: ...


def _coerce(channel: str, raw: object) -> float | None:
    """Convert a raw stored value to float; ``None`` stays ``None``."""
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        raise SourceUnavailable(
            f"Channel {channel} holds a non-numeric value of type {type(raw).__name__}"
        )
    try:
        value = float(raw)
    except ValueError as exc:
        raise SourceUnavailable(f"Channel {channel} holds non-numeric value {raw!r}") from exc
    # Only finite values reach the append-only store.
    if not math.isfinite(value):
        raise SourceUnavailable(f"Channel {channel} holds non-finite value {raw!r}")
    return value


class FirebaseTelemetrySource:
    """Reads channels from a Firebase Realtime Database over REST.

    Args:
        base_url: Database URL, e.g. ``https://<db>.firebasedatabase.app``.
        auth_token: Optional database secret or ID token, sent as ``auth``.
        timeout_s: Upper bound on a single read.
    """

    def __init__(
        self,
        base_url: str,
        *,
        auth_token: str | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        if not base_url.lower().startswith("https://"):
            raise ValueError(f"Firebase URL must use HTTPS (got: '{base_url}')")
        self._base_url = base_url.rstrip("/")
        self._auth_token = auth_token
        self._timeout_s = timeout_s

    async def read(self, channel: str) -> float | None:
        """Return the current value of *channel*, or None if it is unset.

        Raises:
            SourceUnavailable: On network error, timeout, non-2xx status or a
                value that is not numeric.
        """
        params = {"auth": self._auth_token} if self._auth_token else None
        url = f"{self._base_url}/{channel}.json"
        try:
            async with httpx.AsyncClient(timeout=self._timeout_s, verify=True) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise SourceUnavailable(f"Reading {channel} failed: {exc}") from exc

        if response.status_code != 200:
            raise SourceUnavailable(
                f"Reading {channel} failed with HTTP {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise SourceUnavailable(f"Reading {channel} returned invalid JSON") from exc
        return _coerce(channel, payload)

    async def aclose(self) -> None:
        """Nothing to release; a client is opened per read."""


class RedisTelemetrySource:
    """Reads channels from Redis; each channel is a key of the same name.

    Args:
        url: ``redis://`` or ``rediss://`` URL.
        timeout_s: Socket connect and read timeout.
    """

    def __init__(self, url: str, *, timeout_s: float = DEFAULT_TIMEOUT_S) -> None:
        self._client = redis.from_url(
            url,
            socket_timeout=timeout_s,
            socket_connect_timeout=timeout_s,
        )

    async def read(self, channel: str) -> float | None:
        """Return the current value of *channel*, or None if the key is missing.

        Raises:
            SourceUnavailable: On connection error, timeout or non-numeric value.
        """
        try:
            raw = await self._client.get(channel)
        except (RedisError, OSError) as exc:
            raise SourceUnavailable(f"Reading {channel} failed: {exc}") from exc
        return _coerce(channel, raw)

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()


def build_telemetry_source(settings: Settings) -> TelemetrySource:
    """Pick a reader from the scheme of TELEMETRY_SOURCE_URL.

    Raises:
        ValueError: If the scheme is not supported.
    """
    url = settings.telemetry_source_url
    if url.startswith("https://"):
        logger.info("Telemetry source: Firebase REST at %s", url)
        return FirebaseTelemetrySource(
            url,
            auth_token=settings.telemetry_auth_token,
            timeout_s=settings.source_timeout_s,
        )
    if url.startswith(("redis://", "rediss://")):
        logger.info("Telemetry source: Redis")
        return RedisTelemetrySource(url, timeout_s=settings.source_timeout_s)
    raise ValueError(f"Unsupported telemetry source URL scheme: {url!r}")
