"""
Metrics repository: append and range-query persisted telemetry samples.

Every call runs in its own session drawn from the shared pool and is bounded
by ``asyncio.wait_for``. Driver errors, pool exhaustion and timeouts are
translated to PersistenceError so callers deal with one failure type.

Range queries always return samples in ascending timestamp order (ties broken
by id), which is the precondition of the integration engine.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from datetime import UTC, datetime
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from powerwatch.db.models import EnergyMetric
from powerwatch.exceptions import PersistenceError
from powerwatch.models import TelemetrySample
from powerwatch.services.windows import TimeWindow

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

DEFAULT_TIMEOUT_S: float = 10.0


def _as_utc(value: datetime) -> datetime:
    """Normalise a datetime to UTC; naive values (SQLite) are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _row_to_sample(row: EnergyMetric) -> TelemetrySample:
    return TelemetrySample(
        power_value=row.power_value,
        current_value=row.current_value,
        timestamp=_as_utc(row.timestamp),
    )


class MetricsRepository:
    """Append-only access to the ``energy_metrics`` table.

    Args:
        session_factory: Factory producing sessions on the shared engine.
        timeout_s: Upper bound, in seconds, on any single operation.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self._session_factory = session_factory
        self._timeout_s = timeout_s

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def insert(self, sample: TelemetrySample) -> int:
        """Persist one sample and return its surrogate id.

        Raises:
            PersistenceError: On connectivity, constraint or timeout failure.
        """
        return await self._bounded("insert", self._insert(sample))

    async def query_range(self, window: TimeWindow) -> list[TelemetrySample]:
        """Return samples inside *window*, oldest first.

        Raises:
            PersistenceError: On connectivity or timeout failure.
        """
        return await self._bounded("query_range", self._query_range(window))

    async def recent(self, limit: int) -> list[TelemetrySample]:
        """Return the newest *limit* samples, ordered oldest to newest.

        Raises:
            PersistenceError: On connectivity or timeout failure.
        """
        if limit < 1:
            return []
        return await self._bounded("recent", self._recent(limit))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _bounded(self, op: str, coro: Awaitable[_T]) -> _T:
        try:
            return await asyncio.wait_for(coro, timeout=self._timeout_s)
        except TimeoutError as exc:
            raise PersistenceError(
                f"{op} timed out after {self._timeout_s:.1f}s"
            ) from exc
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError(f"{op} failed: {exc}") from exc

    async def _insert(self, sample: TelemetrySample) -> int:
        row = EnergyMetric(
            power_value=sample.power_value,
            current_value=sample.current_value,
            timestamp=_as_utc(sample.timestamp),
        )
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
            return row.id

    async def _query_range(self, window: TimeWindow) -> list[TelemetrySample]:
        stmt = select(EnergyMetric)
        if window.start is not None:
            stmt = stmt.where(EnergyMetric.timestamp >= _as_utc(window.start))
        if window.end is not None:
            stmt = stmt.where(EnergyMetric.timestamp < _as_utc(window.end))
        stmt = stmt.order_by(EnergyMetric.timestamp.asc(), EnergyMetric.id.asc())

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            rows = result.scalars().all()

        logger.debug(
            "Range query start=%s end=%s rows=%d", window.start, window.end, len(rows)
        )
        return [_row_to_sample(row) for row in rows]

    async def _recent(self, limit: int) -> list[TelemetrySample]:
        stmt = (
            select(EnergyMetric)
            .order_by(EnergyMetric.timestamp.desc(), EnergyMetric.id.desc())
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            rows = result.scalars().all()
        return [_row_to_sample(row) for row in reversed(rows)]
