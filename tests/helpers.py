"""
Sample builders shared across test modules.

CHANGELOG:
- 2026-10-19: Initial creation
"""

from __future__ import annotations

from datetime import UTC, datetime

from powerwatch.models import TelemetrySample


def make_sample(
    power: float,
    ts: datetime,
    current: float | None = 1.0,
) -> TelemetrySample:
    """Build a TelemetrySample."""
    return TelemetrySample(power_value=power, current_value=current, timestamp=ts)


def utc(*args: int) -> datetime:
    """Shorthand for an aware UTC datetime."""
    return datetime(*args, tzinfo=UTC)
