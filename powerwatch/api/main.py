"""
FastAPI application factory and process entry point.

The lifespan builds every component from Settings (engine and pool,
repository, telemetry source, aggregator, insight client), stores them on
app.state for the Depends() providers, and starts the ingestion scheduler.
On shutdown the scheduler is stopped before the engine is disposed.

Run with ``powerwatch`` (console script) or
``uvicorn powerwatch.api.main:create_app --factory``.

CHANGELOG:
- 2026-10-19: Release already-built components when startup fails
- 2026-10-19: Map service errors to HTTP status codes
- 2026-10-19: Start and stop the ingestion scheduler in the lifespan
- 2026-10-19: Initial creation

TODO:
- None
"""

import hashlib
import json
import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import UTC, datetime

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from powerwatch import __version__
from powerwatch.api.analytics import router as analytics_router
from powerwatch.api.health import router as health_router
from powerwatch.api.insight import router as insight_router
from powerwatch.config import Settings
from powerwatch.db.repository import MetricsRepository
from powerwatch.db.session import create_engine, create_session_factory
from powerwatch.exceptions import InvalidQuery, MalformedSequence, PersistenceError
from powerwatch.services.analytics import AnalyticsAggregator
from powerwatch.services.ingestion import IngestionScheduler
from powerwatch.services.insight import GeminiInsightGenerator
from powerwatch.telemetry.source import build_telemetry_source

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


class _JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: str = "INFO") -> None:
    """Install a JSON-formatted stderr handler on the root logger."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())


def _masked(value: str | None) -> str:
    """Return a short non-reversible fingerprint for diagnostics."""
    if not value:
        return "empty"
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:10]
    return f"len={len(value)} sha256={digest}"


def log_config_summary(settings: Settings) -> None:
    """Log a config summary at startup, with secrets masked."""
    logger.info(
        "Powerwatch starting with config: "
        "telemetry_source_url=%s, ingest_interval_s=%s, ingestion_enabled=%s, "
        "source_timeout_s=%s, db_timeout_s=%s, db_pool_size=%s, "
        "db_max_overflow=%s, db_pool_timeout_s=%s, report_timezone=%s, "
        "cors_origins=%s, insight_model=%s, "
        "telemetry_token_masked=%s, insight_key_masked=%s",
        settings.telemetry_source_url,
        settings.ingest_interval_s,
        settings.ingestion_enabled,
        settings.source_timeout_s,
        settings.db_timeout_s,
        settings.db_pool_size,
        settings.db_max_overflow,
        settings.db_pool_timeout_s,
        settings.report_timezone,
        settings.cors_origin_list,
        settings.insight_model,
        _masked(settings.telemetry_auth_token),
        _masked(settings.insight_api_key),
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build components on startup; stop ingestion and release pools on shutdown.

    Cleanups are registered as each component is built, so a failure part way
    through startup still releases whatever was already created. They run in
    reverse order: scheduler, then telemetry source, then engine.
    """
    settings: Settings = app.state.settings
    log_config_summary(settings)

    async with AsyncExitStack() as stack:
        engine = create_engine(settings)
        stack.push_async_callback(engine.dispose)
        repository = MetricsRepository(
            create_session_factory(engine), timeout_s=settings.db_timeout_s
        )

        source = build_telemetry_source(settings)
        stack.push_async_callback(source.aclose)

        app.state.aggregator = AnalyticsAggregator(repository, tz=settings.tz)
        app.state.insight = (
            GeminiInsightGenerator(
                api_key=settings.insight_api_key,
                model=settings.insight_model,
                base_url=settings.insight_api_url,
                timeout_s=settings.insight_timeout_s,
            )
            if settings.insight_api_key
            else None
        )

        scheduler: IngestionScheduler | None = None
        if settings.ingestion_enabled:
            scheduler = IngestionScheduler(
                source=source,
                repository=repository,
                interval_s=settings.ingest_interval_s,
            )
            scheduler.start()
            stack.push_async_callback(scheduler.stop)
        else:
            logger.info("Ingestion disabled, serving analytics only")
        app.state.scheduler = scheduler

        logger.info("Powerwatch API ready")
        try:
            yield
        finally:
            logger.info("Powerwatch API shutting down")


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


async def _invalid_query_handler(request: Request, exc: InvalidQuery) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _persistence_error_handler(
    request: Request, exc: PersistenceError
) -> JSONResponse:
    logger.error("Metrics store failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Metrics store unavailable."})


async def _malformed_sequence_handler(
    request: Request, exc: MalformedSequence
) -> JSONResponse:
    logger.error("Out-of-order samples on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=500, content={"detail": "Stored samples are out of order."}
    )


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Service settings; loaded from the environment when omitted.
    """
    if settings is None:
        settings = Settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Powerwatch API",
        description="Live power telemetry ingestion and tiered-tariff billing.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    app.add_exception_handler(InvalidQuery, _invalid_query_handler)
    app.add_exception_handler(PersistenceError, _persistence_error_handler)
    app.add_exception_handler(MalformedSequence, _malformed_sequence_handler)

    app.include_router(health_router)
    app.include_router(analytics_router)
    app.include_router(insight_router)

    @app.get("/")
    async def root() -> dict:
        """Root liveness endpoint."""
        return {"status": "ok"}

    return app


def main() -> None:
    """Console entry point: serve the API with uvicorn."""
    settings = Settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
