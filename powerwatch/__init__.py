"""
Powerwatch: live power telemetry ingestion and tiered-tariff billing analytics.

CHANGELOG:
- 2026-10-19: Initial creation
"""

__version__ = "0.1.0"
