"""
Pydantic models for telemetry samples.

TelemetrySample is the in-memory form of one ingestion reading. It is what
the scheduler hands to the repository and what the repository hands back to
the integration engine.

CHANGELOG:
- 2026-10-19: Initial creation
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class TelemetrySample(BaseModel):
    """A single power/current observation.

    Attributes:
        power_value: Instantaneous power in watts.
        current_value: Instantaneous current in amps, if reported.
        timestamp: Capture time (timezone-aware, UTC).
    """

    model_config = ConfigDict(frozen=True)

    power_value: float
    current_value: float | None = None
    timestamp: datetime
