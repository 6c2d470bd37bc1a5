"""
Cost, energy and chart endpoints.

Thin HTTP layer over AnalyticsAggregator. Money is rendered as a string fixed
to 2 decimal places and energy as kWh fixed to 3. Errors raised by the
aggregator (InvalidQuery, PersistenceError, MalformedSequence) are mapped to
status codes by the handlers registered in powerwatch.api.main.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from powerwatch.api.deps import Aggregator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analytics"])


def _money(amount: float) -> str:
    return f"{amount:.2f}"


def _kwh(energy: float) -> str:
    return f"{energy:.3f}"


# ---------------------------------------------------------------------------
# Pydantic response models
# ---------------------------------------------------------------------------


class CostSummaryOut(BaseModel):
    """Cost of the current calendar day and month."""

    cost_today: str
    cost_month: str


class PeriodCostOut(BaseModel):
    """Cost over a rolling period."""

    totalCost: str


class TotalEnergyOut(BaseModel):
    """All-time energy in kWh."""

    totalEnergy: str


class DayEnergyOut(BaseModel):
    """Energy for one calendar day in kWh."""

    date: str
    totalEnergy: str


class BillChartOut(BaseModel):
    """Seven weekday labels with one bill amount each."""

    labels: list[str]
    data: list[str]


class PowerHistoryOut(BaseModel):
    """Raw power readings with their ISO timestamps, oldest first."""

    labels: list[str]
    data: list[float]


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/cost", response_model=CostSummaryOut)
async def get_cost_summary(aggregator: Aggregator) -> CostSummaryOut:
    """Cost so far today and this month."""
    summary = await aggregator.cost_summary()
    return CostSummaryOut(
        cost_today=_money(summary.today),
        cost_month=_money(summary.month),
    )


@router.get("/cost/{period}", response_model=PeriodCostOut)
async def get_period_cost(period: str, aggregator: Aggregator) -> PeriodCostOut:
    """Cost over the trailing ``weekly`` (7 day) or ``monthly`` (30 day) window."""
    return PeriodCostOut(totalCost=_money(await aggregator.period_cost(period)))


@router.get("/energy/total", response_model=TotalEnergyOut)
async def get_total_energy(aggregator: Aggregator) -> TotalEnergyOut:
    """All-time energy."""
    return TotalEnergyOut(totalEnergy=_kwh(await aggregator.total_energy()))


@router.get("/energy/{day}", response_model=DayEnergyOut)
async def get_day_energy(day: str, aggregator: Aggregator) -> DayEnergyOut:
    """Energy for one ISO calendar day (``YYYY-MM-DD``)."""
    parsed, energy = await aggregator.energy_for_day(day)
    return DayEnergyOut(date=parsed.isoformat(), totalEnergy=_kwh(energy))


@router.get("/charts/weekly-bill", response_model=BillChartOut)
async def get_weekly_bill_chart(aggregator: Aggregator) -> BillChartOut:
    """Per-day bill for the last seven days, oldest first."""
    chart = await aggregator.weekly_bill_chart()
    return BillChartOut(labels=chart.labels, data=[_money(v) for v in chart.values])


@router.get("/charts/power-history", response_model=PowerHistoryOut)
async def get_power_history(aggregator: Aggregator) -> PowerHistoryOut:
    """Most recent raw power readings, oldest first."""
    samples = await aggregator.power_history()
    logger.debug("Power history: %d samples", len(samples))
    return PowerHistoryOut(
        labels=[s.timestamp.isoformat() for s in samples],
        data=[s.power_value for s in samples],
    )
