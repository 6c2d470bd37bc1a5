"""
Async database engine and session factory.

Uses SQLAlchemy 2.x async engine (asyncpg driver for PostgreSQL in
production). The engine owns the single bounded connection pool shared by
the ingestion scheduler and the analytics request handlers; callers beyond
pool capacity queue for up to ``pool_timeout`` seconds.

The engine is built once in the application lifespan and passed to the
components that need it. There are no module-level singletons.

CHANGELOG:
- 2026-10-19: Build engine from Settings and drop module-level singletons
- 2026-10-19: Initial creation
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from powerwatch.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """Create an async SQLAlchemy engine with a bounded pool.

    Args:
        settings: Service settings carrying DATABASE_URL and pool limits.

    Returns:
        AsyncEngine: Configured async engine.
    """
    return create_async_engine(
        settings.database_url,
        echo=False,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout_s,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to *engine*.

    Args:
        engine: The shared async engine.

    Returns:
        async_sessionmaker: Factory for creating AsyncSession instances.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
