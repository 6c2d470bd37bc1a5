"""
Error taxonomy shared by the ingestion loop and the analytics read path.

Ingestion-side errors (SourceUnavailable, PersistenceError) are recovered
locally by the scheduler. Read-side errors are mapped to HTTP status codes by
the exception handlers registered in powerwatch.api.main.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""


class PowerwatchError(Exception):
    """Base class for all service errors."""


class SourceUnavailable(PowerwatchError):
    """The live telemetry store could not be reached or returned garbage."""


class PersistenceError(PowerwatchError):
    """The relational store rejected or failed to complete an operation."""


class MalformedSequence(PowerwatchError):
    """Samples handed to the integrator are not in ascending timestamp order."""


class InvalidQuery(PowerwatchError):
    """The caller asked for an unknown period or an unparsable date."""


class InsightUnavailable(PowerwatchError):
    """The external text-generation capability failed to answer."""
