"""
Periodic ingestion: pull live readings, append one row per tick.

The IngestionScheduler owns a single asyncio task that runs one tick
immediately and then one every ``interval_s`` seconds until its shutdown
event is set. Each tick reads POWER and CURRENT_DATA from the telemetry
source and inserts one sample through the repository.

Ticks are independent and best-effort (at-most-once): a source or
persistence failure is logged, nothing is written for that tick, and the next
tick runs on schedule. There is no backoff; the fixed period is the retry.

Missing readings: if both channels are absent the tick is skipped; if only
one is absent it is recorded as 0. Cost is never stored, only recomputed.

CHANGELOG:
- 2026-10-19: Track last success and tick count for /health
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from powerwatch.exceptions import PersistenceError, SourceUnavailable
from powerwatch.models import TelemetrySample
from powerwatch.telemetry.source import CURRENT_CHANNEL, POWER_CHANNEL

if TYPE_CHECKING:
    from powerwatch.db.repository import MetricsRepository
    from powerwatch.telemetry.source import TelemetrySource

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_S: float = 30.0
"""Seconds between ingestion ticks."""

DEFAULT_STOP_TIMEOUT_S: float = 15.0
"""How long stop() lets an in-flight tick finish before cancelling it."""


class IngestionState(enum.StrEnum):
    """Where the scheduler is inside the current tick."""

    IDLE = "idle"
    FETCHING = "fetching"
    PERSISTING = "persisting"


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class IngestionScheduler:
    """Recurring pull-from-source, write-to-store task.

    Args:
        source: Live-value reader.
        repository: Metrics repository the samples are appended to.
        interval_s: Seconds between ticks.
        clock: Returns the capture time stamped on each sample.
    """

    def __init__(
        self,
        *,
        source: TelemetrySource,
        repository: MetricsRepository,
        interval_s: float = DEFAULT_INTERVAL_S,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._source = source
        self._repository = repository
        self._interval_s = interval_s
        self._clock = clock
        self._state = IngestionState.IDLE
        self._shutdown_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.ticks: int = 0
        self.last_success_at: datetime | None = None
        self.last_error: str | None = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> IngestionState:
        return self._state

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Single tick
    # ------------------------------------------------------------------

    async def tick(self) -> int | None:
        """Run one fetch-and-persist cycle.

        Never raises for source or persistence failures; those are logged and
        the tick ends without writing.

        Returns:
            The new record id, or None if nothing was written.
        """
        self.ticks += 1
        try:
            self._state = IngestionState.FETCHING
            try:
                power = await self._source.read(POWER_CHANNEL)
                current = await self._source.read(CURRENT_CHANNEL)
            except SourceUnavailable as exc:
                self.last_error = str(exc)
                logger.warning("Tick skipped, telemetry source unavailable: %s", exc)
                return None

            if power is None and current is None:
                logger.info("Tick skipped, no power or current reading available")
                return None

            sample = TelemetrySample(
                power_value=power if power is not None else 0.0,
                current_value=current if current is not None else 0.0,
                timestamp=self._clock(),
            )

            self._state = IngestionState.PERSISTING
            try:
                record_id = await self._repository.insert(sample)
            except PersistenceError as exc:
                self.last_error = str(exc)
                logger.error("Tick dropped, sample not persisted: %s", exc)
                return None
        finally:
            self._state = IngestionState.IDLE

        self.last_success_at = sample.timestamp
        self.last_error = None
        logger.info(
            "Saved sample id=%s power=%.2fW current=%.3fA",
            record_id,
            sample.power_value,
            sample.current_value,
        )
        return record_id

    # ------------------------------------------------------------------
    # Loop and lifecycle
    # ------------------------------------------------------------------

    async def run(self, shutdown_event: asyncio.Event | None = None) -> None:
        """Tick immediately, then every interval, until *shutdown_event* is set.

        An unexpected error in one iteration is logged and the loop carries on.
        """
        event = shutdown_event if shutdown_event is not None else self._shutdown_event
        logger.info("Ingestion loop started (interval=%ss)", self._interval_s)
        while not event.is_set():
            try:
                await self.tick()
            except Exception:
                logger.error("Ingestion tick error", exc_info=True)
            # Use wait with timeout so we can check shutdown between sleeps
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(event.wait(), timeout=self._interval_s)
        logger.info("Ingestion loop stopped")

    def start(self) -> asyncio.Task[None]:
        """Launch the loop as a background task on the running event loop."""
        if self.running:
            raise RuntimeError("Ingestion scheduler already running")
        self._shutdown_event.clear()
        self._task = asyncio.create_task(self.run(), name="powerwatch-ingestion")
        return self._task

    async def stop(self, timeout_s: float = DEFAULT_STOP_TIMEOUT_S) -> None:
        """Stop scheduling ticks and wait for the loop to exit.

        An in-flight tick gets *timeout_s* to finish; after that the task is
        cancelled and the tick abandoned.
        """
        self._shutdown_event.set()
        task = self._task
        if task is None:
            return
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=timeout_s)
        except TimeoutError:
            logger.warning("In-flight tick did not finish in %.1fs, cancelling", timeout_s)
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        finally:
            self._task = None
