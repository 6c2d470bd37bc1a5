"""
FastAPI dependency injection providers.

Components are built once in the application lifespan and stored on
``app.state``; these providers hand them to route handlers via Depends().

CHANGELOG:
- 2026-10-19: Serve lifespan-built components instead of a global session
- 2026-10-19: Initial creation
"""

from typing import Annotated

from fastapi import Depends, Request

from powerwatch.services.analytics import AnalyticsAggregator
from powerwatch.services.ingestion import IngestionScheduler
from powerwatch.services.insight import InsightGenerator


def get_aggregator(request: Request) -> AnalyticsAggregator:
    """Return the analytics aggregator built at startup."""
    return request.app.state.aggregator


def get_insight_generator(request: Request) -> InsightGenerator | None:
    """Return the insight generator, or None when it is not configured."""
    return getattr(request.app.state, "insight", None)


def get_scheduler(request: Request) -> IngestionScheduler | None:
    """Return the ingestion scheduler, or None when ingestion is disabled."""
    return getattr(request.app.state, "scheduler", None)


# Type aliases for injecting components via FastAPI Depends().
Aggregator = Annotated[AnalyticsAggregator, Depends(get_aggregator)]
Insight = Annotated[InsightGenerator | None, Depends(get_insight_generator)]
Scheduler = Annotated[IngestionScheduler | None, Depends(get_scheduler)]
