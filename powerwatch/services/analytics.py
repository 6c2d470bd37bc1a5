"""
Read-side analytics over the persisted sample history.

Every query follows the same path: select samples for a time window, integrate
them to kWh, and (for cost views) bill the result under the tariff. Nothing is
cached or stored; each call recomputes from the store. Failures propagate to
the caller; a cost of zero only ever means zero energy.

CHANGELOG:
- 2026-10-19: Weekly chart loads all seven days in a single range query
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta, tzinfo
from typing import TYPE_CHECKING

from powerwatch.exceptions import InvalidQuery
from powerwatch.models import TelemetrySample
from powerwatch.services.energy import integrate_energy_kwh
from powerwatch.services.tariff import DEFAULT_TARIFF, TariffSchedule
from powerwatch.services.windows import TimeWindow

if TYPE_CHECKING:
    from powerwatch.db.repository import MetricsRepository

logger = logging.getLogger(__name__)

PERIOD_DAYS: dict[str, int] = {
    "weekly": 7,
    "monthly": 30,
}

CHART_DAYS = 7
HISTORY_LIMIT = 30

# Fixed English labels, independent of the process locale.
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass(frozen=True)
class CostSummary:
    """Cost of the current calendar day and calendar month."""

    today: float
    month: float


@dataclass(frozen=True)
class ChartSeries:
    """Parallel label/value lists for a bar chart."""

    labels: list[str]
    values: list[float]


def parse_day(value: str | date) -> date:
    """Accept a date or an ISO ``YYYY-MM-DD`` string.

    Raises:
        InvalidQuery: If *value* is not a valid ISO calendar date.
    """
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidQuery(f"Invalid date '{value}', expected YYYY-MM-DD") from exc


class AnalyticsAggregator:
    """Answers cost and energy questions from the metrics repository.

    Args:
        repository: Source of persisted samples.
        tariff: Billing ladder.
        tz: Zone in which calendar days and months are cut.
        clock: Returns the current instant (timezone-aware).
    """

    def __init__(
        self,
        repository: MetricsRepository,
        *,
        tariff: TariffSchedule = DEFAULT_TARIFF,
        tz: tzinfo = UTC,
        clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC),
    ) -> None:
        self._repository = repository
        self._tariff = tariff
        self._tz = tz
        self._clock = clock

    def _today(self) -> date:
        return self._clock().astimezone(self._tz).date()

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    async def energy_kwh(self, window: TimeWindow) -> float:
        """Integrated energy inside *window*, in kWh."""
        samples = await self._repository.query_range(window)
        return integrate_energy_kwh(samples)

    async def cost(self, window: TimeWindow) -> float:
        """Billed amount for the energy inside *window*."""
        return self._tariff.bill(await self.energy_kwh(window))

    # ------------------------------------------------------------------
    # Query shapes
    # ------------------------------------------------------------------

    async def cost_summary(self) -> CostSummary:
        """Cost so far for today and for the current month."""
        today = self._today()
        return CostSummary(
            today=await self.cost(TimeWindow.calendar_day(today, self._tz)),
            month=await self.cost(
                TimeWindow.calendar_month(today.year, today.month, self._tz)
            ),
        )

    async def period_cost(self, period: str) -> float:
        """Cost over a rolling window named by *period*.

        Raises:
            InvalidQuery: If *period* is not ``weekly`` or ``monthly``.
        """
        days = PERIOD_DAYS.get(period)
        if days is None:
            raise InvalidQuery(
                f"Invalid period '{period}'. Must be one of: {sorted(PERIOD_DAYS)}."
            )
        return await self.cost(TimeWindow.trailing_days(days, self._clock()))

    async def total_energy(self) -> float:
        """All-time energy in kWh."""
        return await self.energy_kwh(TimeWindow.unbounded())

    async def energy_for_day(self, day: str | date) -> tuple[date, float]:
        """Energy for one calendar day.

        Raises:
            InvalidQuery: If *day* is not a valid ISO date.
        """
        parsed = parse_day(day)
        return parsed, await self.energy_kwh(TimeWindow.calendar_day(parsed, self._tz))

    async def weekly_bill_chart(self) -> ChartSeries:
        """Bill for each of the last seven calendar days, oldest first.

        Each day is integrated and billed on its own; days without samples
        are reported as 0. Always returns exactly seven entries.
        """
        today = self._today()
        days = [today - timedelta(days=offset) for offset in range(CHART_DAYS - 1, -1, -1)]
        window = TimeWindow(
            start=TimeWindow.calendar_day(days[0], self._tz).start,
            end=TimeWindow.calendar_day(days[-1], self._tz).end,
        )
        samples = await self._repository.query_range(window)

        by_day: dict[date, list[TelemetrySample]] = defaultdict(list)
        for sample in samples:
            by_day[sample.timestamp.astimezone(self._tz).date()].append(sample)

        values = [
            self._tariff.bill(integrate_energy_kwh(by_day.get(day, []))) for day in days
        ]
        logger.debug("Weekly chart built from %d samples", len(samples))
        return ChartSeries(
            labels=[WEEKDAY_LABELS[day.weekday()] for day in days],
            values=values,
        )

    async def power_history(self, limit: int = HISTORY_LIMIT) -> list[TelemetrySample]:
        """Newest *limit* raw samples, oldest to newest."""
        return await self._repository.recent(limit)
