"""
Tests for AnalyticsAggregator over a real (in-memory SQLite) repository.

Fixture history, clock fixed at 2026-10-19 20:00 UTC (a Monday):
- 2026-10-02: 10 kW held for 10 hours -> 100 kWh.
- 2026-10-19: 10 kW held for 15 hours -> 150 kWh.
Zero-power samples at equal timestamps keep the gap between the two days at
0 W, so the month integrates to exactly 250 kWh.

CHANGELOG:
- 2026-10-19: Initial creation
"""

from __future__ import annotations

from datetime import date, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from powerwatch.db.models import Base
from powerwatch.db.repository import MetricsRepository
from powerwatch.db.session import create_session_factory
from powerwatch.exceptions import InvalidQuery, MalformedSequence, PersistenceError
from powerwatch.services.analytics import AnalyticsAggregator
from powerwatch.services.ingestion import IngestionScheduler
from powerwatch.services.tariff import bill
from tests.helpers import make_sample, utc

NOW = utc(2026, 10, 19, 20, 0, 0)

_HISTORY = [
    (10000.0, utc(2026, 10, 2, 0)),
    (10000.0, utc(2026, 10, 2, 10)),
    (0.0, utc(2026, 10, 2, 10)),
    (0.0, utc(2026, 10, 19, 0)),
    (10000.0, utc(2026, 10, 19, 0)),
    (10000.0, utc(2026, 10, 19, 15)),
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _make_repository() -> tuple[AsyncEngine, MetricsRepository]:
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine, MetricsRepository(create_session_factory(engine), timeout_s=5.0)


async def _seeded() -> tuple[AsyncEngine, AnalyticsAggregator]:
    engine, repo = await _make_repository()
    for power, ts in _HISTORY:
        await repo.insert(make_sample(power, ts))
    return engine, AnalyticsAggregator(repo, clock=lambda: NOW)


# ---------------------------------------------------------------------------
# Window-scoped cost and energy
# ---------------------------------------------------------------------------


class TestCostViews:
    @pytest.mark.asyncio
    async def test_cost_summary_today_and_month(self) -> None:
        engine, aggregator = await _seeded()
        try:
            summary = await aggregator.cost_summary()
            assert summary.today == pytest.approx(112.5)
            assert summary.month == pytest.approx(450.0)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_weekly_period_only_sees_last_seven_days(self) -> None:
        engine, aggregator = await _seeded()
        try:
            assert await aggregator.period_cost("weekly") == pytest.approx(112.5)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_monthly_period_sees_thirty_days(self) -> None:
        engine, aggregator = await _seeded()
        try:
            assert await aggregator.period_cost("monthly") == pytest.approx(450.0)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_unknown_period_is_invalid_query(self) -> None:
        engine, aggregator = await _seeded()
        try:
            with pytest.raises(InvalidQuery, match="yearly"):
                await aggregator.period_cost("yearly")
        finally:
            await engine.dispose()


class TestEnergyViews:
    @pytest.mark.asyncio
    async def test_total_energy_all_time(self) -> None:
        engine, aggregator = await _seeded()
        try:
            assert await aggregator.total_energy() == pytest.approx(250.0)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_energy_for_iso_day(self) -> None:
        engine, aggregator = await _seeded()
        try:
            day, energy = await aggregator.energy_for_day("2026-10-02")
            assert day == date(2026, 10, 2)
            assert energy == pytest.approx(100.0)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_energy_for_empty_day_is_zero(self) -> None:
        engine, aggregator = await _seeded()
        try:
            _, energy = await aggregator.energy_for_day(date(2026, 10, 10))
            assert energy == 0
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["yesterday", "2026-13-01", "19/10/2026", ""])
    async def test_bad_date_is_invalid_query(self, value: str) -> None:
        aggregator = AnalyticsAggregator(AsyncMock(), clock=lambda: NOW)
        with pytest.raises(InvalidQuery):
            await aggregator.energy_for_day(value)

    @pytest.mark.asyncio
    async def test_days_are_cut_in_report_timezone(self) -> None:
        engine, repo = await _make_repository()
        try:
            # 20:00 and 21:00 UTC on the 18th are the 19th in UTC+05:30.
            await repo.insert(make_sample(2000.0, utc(2026, 10, 18, 20)))
            await repo.insert(make_sample(2000.0, utc(2026, 10, 18, 21)))
            aggregator = AnalyticsAggregator(
                repo, tz=timezone(timedelta(hours=5, minutes=30)), clock=lambda: NOW
            )

            _, on_19th = await aggregator.energy_for_day("2026-10-19")
            _, on_18th = await aggregator.energy_for_day("2026-10-18")

            assert on_19th == pytest.approx(2.0)
            assert on_18th == 0
        finally:
            await engine.dispose()


# ---------------------------------------------------------------------------
# Charts
# ---------------------------------------------------------------------------


class TestWeeklyBillChart:
    @pytest.mark.asyncio
    async def test_seven_entries_oldest_first(self) -> None:
        engine, aggregator = await _seeded()
        try:
            chart = await aggregator.weekly_bill_chart()
            assert chart.labels == ["Tue", "Wed", "Thu", "Fri", "Sat", "Sun", "Mon"]
            assert chart.values[:6] == [0.0] * 6
            assert chart.values[6] == pytest.approx(112.5)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_empty_store_still_has_seven_zero_entries(self) -> None:
        engine, repo = await _make_repository()
        try:
            chart = await AnalyticsAggregator(repo, clock=lambda: NOW).weekly_bill_chart()
            assert len(chart.labels) == 7
            assert chart.values == [0.0] * 7
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_pairs_spanning_midnight_count_for_neither_day(self) -> None:
        engine, repo = await _make_repository()
        try:
            await repo.insert(make_sample(500000.0, utc(2026, 10, 17, 23)))
            await repo.insert(make_sample(500000.0, utc(2026, 10, 18, 1)))
            chart = await AnalyticsAggregator(repo, clock=lambda: NOW).weekly_bill_chart()
            assert chart.values == [0.0] * 7
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_each_day_billed_independently(self) -> None:
        engine, repo = await _make_repository()
        try:
            # 150 kWh on each of two days: two bills of 112.5, not one of 250 kWh.
            for day in (15, 16):
                await repo.insert(make_sample(10000.0, utc(2026, 10, day, 0)))
                await repo.insert(make_sample(10000.0, utc(2026, 10, day, 15)))
            chart = await AnalyticsAggregator(repo, clock=lambda: NOW).weekly_bill_chart()
            assert chart.values[2] == pytest.approx(112.5)
            assert chart.values[3] == pytest.approx(112.5)
        finally:
            await engine.dispose()


class TestPowerHistory:
    @pytest.mark.asyncio
    async def test_latest_thirty_oldest_first(self) -> None:
        engine, repo = await _make_repository()
        try:
            for i in range(40):
                await repo.insert(make_sample(float(i), NOW - timedelta(seconds=30 * (39 - i))))
            history = await AnalyticsAggregator(repo, clock=lambda: NOW).power_history()
            assert len(history) == 30
            assert [s.power_value for s in history] == [float(i) for i in range(10, 40)]
            assert history[-1].timestamp == NOW
        finally:
            await engine.dispose()


# ---------------------------------------------------------------------------
# Failures are never reported as zero
# ---------------------------------------------------------------------------


class TestFailurePropagation:
    @pytest.mark.asyncio
    async def test_persistence_error_propagates(self) -> None:
        repository = AsyncMock()
        repository.query_range = AsyncMock(side_effect=PersistenceError("down"))
        aggregator = AnalyticsAggregator(repository, clock=lambda: NOW)

        with pytest.raises(PersistenceError):
            await aggregator.cost_summary()

    @pytest.mark.asyncio
    async def test_out_of_order_samples_raise(self) -> None:
        repository = AsyncMock()
        repository.query_range = AsyncMock(
            return_value=[
                make_sample(100.0, utc(2026, 10, 19, 2)),
                make_sample(100.0, utc(2026, 10, 19, 1)),
            ]
        )
        aggregator = AnalyticsAggregator(repository, clock=lambda: NOW)

        with pytest.raises(MalformedSequence):
            await aggregator.total_energy()


# ---------------------------------------------------------------------------
# End to end: scheduler -> store -> integrate -> bill
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_ingested_hourly_samples_integrate_to_quarter_kwh() -> None:
    engine, repo = await _make_repository()
    try:
        t0 = utc(2026, 10, 19, 6)
        readings = iter([100.0, 1.0, 200.0, 1.0, 0.0, 0.0])
        stamps = iter([t0, t0 + timedelta(hours=1), t0 + timedelta(hours=2)])
        source = AsyncMock()
        source.read = AsyncMock(side_effect=lambda channel: next(readings))
        scheduler = IngestionScheduler(
            source=source, repository=repo, clock=lambda: next(stamps)
        )

        for _ in range(3):
            assert await scheduler.tick() is not None

        aggregator = AnalyticsAggregator(repo, clock=lambda: NOW)
        _, energy = await aggregator.energy_for_day("2026-10-19")

        assert energy == pytest.approx(0.25)
        assert bill(energy) == 0
    finally:
        await engine.dispose()
