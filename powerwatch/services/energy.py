"""
Energy integration over irregularly spaced power samples.

Applies the trapezoidal rule to consecutive (power, timestamp) pairs. With
power in watts the running total is in watt-hours; the kWh helper divides by
1000 and is what the billing path consumes.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Sequence
from itertools import pairwise

from powerwatch.exceptions import MalformedSequence
from powerwatch.models import TelemetrySample

_SECONDS_PER_HOUR = 3600.0
_WH_PER_KWH = 1000.0


def integrate_energy_wh(samples: Sequence[TelemetrySample]) -> float:
    """Integrate power over time with the trapezoidal rule.

    Each consecutive pair contributes the mean of its two power readings
    multiplied by the hours between them. Fewer than two samples yield 0;
    a pair with identical timestamps contributes 0.

    Args:
        samples: Samples in ascending timestamp order.

    Returns:
        float: Energy in watt-hours.

    Raises:
        MalformedSequence: If any sample is earlier than its predecessor.
    """
    total = 0.0
    for index, (prev, curr) in enumerate(pairwise(samples), start=1):
        elapsed_s = (curr.timestamp - prev.timestamp).total_seconds()
        if elapsed_s < 0:
            raise MalformedSequence(
                f"Sample {index} at {curr.timestamp.isoformat()} precedes "
                f"sample {index - 1} at {prev.timestamp.isoformat()}"
            )
        total += (prev.power_value + curr.power_value) / 2 * (elapsed_s / _SECONDS_PER_HOUR)
    return total


def integrate_energy_kwh(samples: Sequence[TelemetrySample]) -> float:
    """Integrate *samples* and return kilowatt-hours.

    Raises:
        MalformedSequence: If any sample is earlier than its predecessor.
    """
    return integrate_energy_wh(samples) / _WH_PER_KWH
