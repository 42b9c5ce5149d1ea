from collections.abc import AsyncGenerator
from typing import Any

import structlog
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from esg_tracker.core.config import settings

logger = structlog.get_logger()


def engine_options(url: str) -> dict[str, Any]:
    """Pool and timeout settings for a database URL.

    Pool sizing and server-side timeouts only make sense for PostgreSQL;
    SQLite (local dev, tests) gets a plain engine.
    """
    if make_url(url).get_backend_name() != "postgresql":
        return {"echo": settings.APP_DEBUG}
    return {
        "echo": settings.APP_DEBUG,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,  # Drop stale connections before use
        "pool_recycle": 1800,
        "pool_timeout": 30,  # Wait max 30s for a pool connection before raising
        "connect_args": {
            "server_settings": {
                "statement_timeout": "30000",
                "idle_in_transaction_session_timeout": "60000",
                "lock_timeout": "10000",
            },
            "command_timeout": 30,
        },
    }


engine = create_async_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# ── Read replica (optional) ───────────────────────────────────────────────────
# Falls back to primary when DATABASE_URL_READ_REPLICA is not set.

if settings.DATABASE_URL_READ_REPLICA:
    _read_engine = create_async_engine(
        settings.DATABASE_URL_READ_REPLICA,
        **engine_options(settings.DATABASE_URL_READ_REPLICA),
    )
    logger.info("read_replica_configured")
else:
    _read_engine = engine

read_only_session_factory = async_sessionmaker(
    _read_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession]:
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_readonly_db() -> AsyncGenerator[AsyncSession]:
    """Read-only session, routed to the replica if DATABASE_URL_READ_REPLICA is set.

    Listing and lookups tolerate replica lag; writes always go through get_db.
    """
    async with read_only_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
