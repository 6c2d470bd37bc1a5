"""
Service configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All connection details come from environment variables or a .env file;
no hardcoded URLs or credentials.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings

_DEFAULT_INSIGHT_API_URL = "https://generativelanguage.googleapis.com/v1beta"


class Settings(BaseSettings):
    """Powerwatch service configuration.

    Attributes:
        database_url: SQLAlchemy async URL of the metrics store.
        telemetry_source_url: Live-value store URL. ``https://`` selects the
            Firebase Realtime Database REST reader, ``redis://`` or
            ``rediss://`` selects the Redis reader.
        telemetry_auth_token: Optional token passed to the live-value store.
        ingest_interval_s: Seconds between ingestion ticks (default 30).
        ingestion_enabled: Start the ingestion scheduler with the app.
        source_timeout_s: Upper bound on a single telemetry read.
        db_timeout_s: Upper bound on a single persistence call.
        db_pool_size: Connections kept open in the shared pool.
        db_max_overflow: Extra connections allowed above db_pool_size.
        db_pool_timeout_s: How long a caller queues for a pooled connection.
        report_timezone: IANA zone used to cut calendar days and months.
        cors_origins: Comma-separated list of allowed browser origins.
        insight_api_key: API key for the text-generation service. The insight
            endpoint answers 503 while this is unset.
        insight_model: Text-generation model name.
        insight_api_url: Base URL of the text-generation REST API.
        insight_timeout_s: Upper bound on a single text-generation call.
        log_level: Root log level.
        host: Interface the HTTP server binds to.
        port: Port the HTTP server listens on.
    """

    database_url: str
    telemetry_source_url: str
    telemetry_auth_token: str | None = None
    ingest_interval_s: float = 30.0
    ingestion_enabled: bool = True
    source_timeout_s: float = 10.0
    db_timeout_s: float = 10.0
    db_pool_size: int = 5
    db_max_overflow: int = 5
    db_pool_timeout_s: float = 30.0
    report_timezone: str = "UTC"
    cors_origins: str = "http://127.0.0.1:5500,https://power-monitoring.netlify.app"
    insight_api_key: str | None = None
    insight_model: str = "gemini-pro"
    insight_api_url: str = _DEFAULT_INSIGHT_API_URL
    insight_timeout_s: float = 30.0
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3001

    @field_validator("telemetry_source_url")
    @classmethod
    def telemetry_source_url_must_be_supported(cls, v: str) -> str:
        """Accept only the schemes build_telemetry_source knows how to read."""
        if not v.startswith(("https://", "redis://", "rediss://")):
            raise ValueError(
                "TELEMETRY_SOURCE_URL must start with https://, redis:// or rediss://"
            )
        return v.rstrip("/")

    @field_validator("ingest_interval_s")
    @classmethod
    def ingest_interval_must_be_positive(cls, v: float) -> float:
        """Reject sub-second ingestion intervals."""
        if v < 1:
            raise ValueError("INGEST_INTERVAL_S must be >= 1")
        return v

    @field_validator(
        "source_timeout_s", "db_timeout_s", "db_pool_timeout_s", "insight_timeout_s"
    )
    @classmethod
    def timeouts_must_be_positive(cls, v: float) -> float:
        """External calls must always be bounded."""
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("db_pool_size")
    @classmethod
    def pool_size_must_be_positive(cls, v: int) -> int:
        """Validate the pool keeps at least one connection."""
        if v < 1:
            raise ValueError("DB_POOL_SIZE must be >= 1")
        return v

    @field_validator("db_max_overflow")
    @classmethod
    def max_overflow_must_be_non_negative(cls, v: int) -> int:
        """Validate overflow is non-negative."""
        if v < 0:
            raise ValueError("DB_MAX_OVERFLOW must be >= 0")
        return v

    @field_validator("report_timezone")
    @classmethod
    def report_timezone_must_exist(cls, v: str) -> str:
        """Validate the zone name against the local tz database."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown REPORT_TIMEZONE '{v}'") from exc
        return v

    @property
    def tz(self) -> ZoneInfo:
        """Report time zone as a tzinfo."""
        return ZoneInfo(self.report_timezone)

    @property
    def cors_origin_list(self) -> list[str]:
        """CORS origins split on commas, blanks dropped."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
