"""
Telemetry source package.

Exports the live-value readers and the factory that picks one from settings.

CHANGELOG:
- 2026-10-19: Initial creation
"""

from powerwatch.telemetry.source import (
    CURRENT_CHANNEL,
    POWER_CHANNEL,
    FirebaseTelemetrySource,
    RedisTelemetrySource,
    TelemetrySource,
    build_telemetry_source,
)

__all__ = [
    "CURRENT_CHANNEL",
    "POWER_CHANNEL",
    "FirebaseTelemetrySource",
    "RedisTelemetrySource",
    "TelemetrySource",
    "build_telemetry_source",
]
