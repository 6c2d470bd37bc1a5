"""
Progressive tiered tariff.

A tariff is a declarative table of (upper bound, marginal rate) tiers. The
base amount at the start of every tier is precomputed as a running sum, so
the bill for any quantity is ``base + rate * (units - lower)`` of the tier it
falls in. Continuity at each boundary follows directly from the table.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import math
from bisect import bisect_left
from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class TariffTier:
    """One band of the ladder.

    Attributes:
        upper_kwh: Upper bound of the band (inclusive); ``math.inf`` for the
            last band.
        rate: Marginal price per kWh inside the band.
    """

    upper_kwh: float
    rate: float


@dataclass(frozen=True)
class _Band:
    lower_kwh: float
    upper_kwh: float
    rate: float
    base: float


def cumulative_bands(tiers: Sequence[TariffTier]) -> list[_Band]:
    """Attach the running base amount to each tier.

    ``base`` of a band is the bill at its lower bound, i.e. the sum of every
    earlier band charged in full.
    """
    bands: list[_Band] = []
    lower = 0.0
    base = 0.0
    for tier in tiers:
        bands.append(_Band(lower, tier.upper_kwh, tier.rate, base))
        if math.isfinite(tier.upper_kwh):
            base += tier.rate * (tier.upper_kwh - lower)
        lower = tier.upper_kwh
    return bands


class TariffSchedule:
    """Piecewise-linear, continuous, non-decreasing billing function.

    Args:
        tiers: Bands in ascending order. Upper bounds must strictly increase
            and the last one must be ``math.inf``; rates must be >= 0.

    Raises:
        ValueError: If the tier table is malformed.
    """

    def __init__(self, tiers: Sequence[TariffTier]) -> None:
        if not tiers:
            raise ValueError("A tariff needs at least one tier")
        previous = 0.0
        for tier in tiers:
            if tier.upper_kwh <= previous:
                raise ValueError(
                    f"Tier bounds must strictly increase (got {tier.upper_kwh} "
                    f"after {previous})"
                )
            if tier.rate < 0:
                raise ValueError(f"Negative rate {tier.rate} in tier up to {tier.upper_kwh}")
            previous = tier.upper_kwh
        if not math.isinf(tiers[-1].upper_kwh):
            raise ValueError("The last tier must be open-ended (math.inf)")

        self._bands = cumulative_bands(tiers)
        self._uppers = [band.upper_kwh for band in self._bands]

    @property
    def boundaries(self) -> list[float]:
        """Finite tier boundaries in kWh."""
        return [u for u in self._uppers if math.isfinite(u)]

    def bill(self, units_kwh: float) -> float:
        """Amount owed for *units_kwh*; 0 for non-positive input."""
        if units_kwh <= 0:
            return 0.0
        band = self._bands[bisect_left(self._uppers, units_kwh)]
        return band.base + band.rate * (units_kwh - band.lower_kwh)


DEFAULT_TIERS: tuple[TariffTier, ...] = (
    TariffTier(100, 0.0),
    TariffTier(200, 2.25),
    TariffTier(400, 4.50),
    TariffTier(500, 6.00),
    TariffTier(600, 8.00),
    TariffTier(800, 9.00),
    TariffTier(1000, 10.00),
    TariffTier(math.inf, 11.00),
)

DEFAULT_TARIFF = TariffSchedule(DEFAULT_TIERS)


def bill(units_kwh: float) -> float:
    """Bill *units_kwh* under the default ladder."""
    return DEFAULT_TARIFF.bill(units_kwh)
