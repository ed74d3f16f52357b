"""Connection settings and the shared async engine for the blob store.

Settings come from either a single ``DATABASE_URL`` or the individual
``PG_HOST`` / ``PG_PORT`` / ``PG_USER`` / ``PG_PASSWORD`` / ``PG_DATABASE``
variables, with ``PG_POOL_SIZE`` / ``PG_MAX_OVERFLOW`` / ``PG_ECHO`` for
pool tuning.  The URL is always normalised to the asyncpg driver; the
driver-less form is only needed to render offline migration SQL.

One engine and one session factory are shared by the whole process.  They
are built on first use and torn down by ``dispose_engine()`` at shutdown.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

logger = logging.getLogger(__name__)

_ASYNC_SCHEME = "postgresql+asyncpg://"
_PLAIN_SCHEME = "postgresql://"


@dataclass(frozen=True)
class DatabaseSettings:
    """Where and how to connect to PostgreSQL."""

    url: str
    pool_size: int = 5
    max_overflow: int = 10
    echo: bool = False

    @property
    def sync_url(self) -> str:
        return self.url.replace(_ASYNC_SCHEME, _PLAIN_SCHEME, 1)


def _url_from_parts() -> str:
    host = os.getenv("PG_HOST", "localhost")
    port = os.getenv("PG_PORT", "5432")
    user = os.getenv("PG_USER", "intake")
    password = os.getenv("PG_PASSWORD", "intake")
    database = os.getenv("PG_DATABASE", "intake")
    return f"{_PLAIN_SCHEME}{user}:{password}@{host}:{port}/{database}"


def load_database_settings() -> DatabaseSettings:
    """Build ``DatabaseSettings`` from the environment (``DATABASE_URL`` wins)."""
    url = os.getenv("DATABASE_URL") or _url_from_parts()
    if url.startswith(_PLAIN_SCHEME):
        url = _ASYNC_SCHEME + url[len(_PLAIN_SCHEME):]
    return DatabaseSettings(
        url=url,
        pool_size=int(os.getenv("PG_POOL_SIZE", "5")),
        max_overflow=int(os.getenv("PG_MAX_OVERFLOW", "10")),
        echo=os.getenv("PG_ECHO", "").lower() in ("1", "true", "yes"),
    )


# ---------------------------------------------------------------------------
# Process-wide engine
# ---------------------------------------------------------------------------

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine(settings: DatabaseSettings | None = None) -> AsyncEngine:
    """Return the shared engine, creating it from ``settings`` on first call."""
    global _engine
    if _engine is None:
        settings = settings or load_database_settings()
        _engine = create_async_engine(
            settings.url,
            echo=settings.echo,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_pre_ping=True,
        )
        logger.info(
            "Database engine created: pool_size=%d max_overflow=%d",
            settings.pool_size,
            settings.max_overflow,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Sessions never expire loaded rows on commit (blobs are read once per request)."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(), class_=AsyncSession, expire_on_commit=False
        )
    return _session_factory


async def check_connection() -> bool:
    """Round-trip ``SELECT 1``; False (and an error log) if the database is down."""
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.error("Database check failed: %s", exc)
        return False
    return True


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Database engine disposed")
