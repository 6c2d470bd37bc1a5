"""
Health check endpoint.

GET /health returns the service status plus a snapshot of the ingestion
scheduler (state, tick count, last successful write). No authentication is
required -- this is intended for container health checks and monitoring.

CHANGELOG:
- 2026-10-19: Report ingestion scheduler state
- 2026-10-19: Initial creation
"""

from fastapi import APIRouter

from powerwatch.api.deps import Scheduler

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(scheduler: Scheduler) -> dict:
    """Return service status and ingestion progress."""
    if scheduler is None:
        ingestion: dict = {"state": "disabled"}
    else:
        ingestion = {
            "state": str(scheduler.state) if scheduler.running else "stopped",
            "ticks": scheduler.ticks,
            "last_success_at": (
                scheduler.last_success_at.isoformat()
                if scheduler.last_success_at
                else None
            ),
            "last_error": scheduler.last_error,
        }
    return {"status": "ok", "ingestion": ingestion}
