"""Database engine, session factory and connection checks.

The worker and the API share this module. Both connect with the privileged
service-role credentials, which bypass row-level security, so every
repository query re-applies its own ``user_id`` filter.
"""

import time
from collections.abc import AsyncGenerator
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from daylight.config import settings
from daylight.utils.logging import get_logger

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base for the journal, job and event tables."""


engine = create_async_engine(
    settings.database_url,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    pool_pre_ping=True,
    echo=settings.database_echo,
    # Supabase pooler (PgBouncer) cannot use prepared statements
    connect_args={"statement_cache_size": 0},
)

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request.

    Uncommitted work is rolled back when the session closes.
    """
    async with async_session_maker() as session:
        yield session


class DatabaseClient:
    """Reachability checks for the shared engine."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.is_connected = False

    async def _ping(self) -> float:
        started = time.perf_counter()
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return (time.perf_counter() - started) * 1000

    async def connect(self) -> None:
        try:
            latency_ms = await self._ping()
        except (SQLAlchemyError, OSError):
            self.is_connected = False
            LOGGER.error("Database connection failed", exc_info=True)
            raise
        self.is_connected = True
        LOGGER.info(f"Database reachable ({latency_ms:.1f} ms)")

    async def disconnect(self) -> None:
        await self.engine.dispose()
        self.is_connected = False
        LOGGER.info("Database engine disposed")

    async def health_check(self) -> Dict[str, Any]:
        try:
            latency_ms = await self._ping()
        except (SQLAlchemyError, OSError) as e:
            self.is_connected = False
            return {"status": "unhealthy", "connected": False, "error": str(e)}

        self.is_connected = True
        return {"status": "healthy", "connected": True, "latency_ms": round(latency_ms, 1)}


db_client = DatabaseClient(engine)


async def init_database() -> None:
    """Verify the database is reachable.

    Schema changes are applied with Alembic, never at startup.
    """
    await db_client.connect()


async def close_database() -> None:
    await db_client.disconnect()
