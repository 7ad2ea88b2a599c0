"""
Database
========
Async engine lifecycle, startup connection retries and session dependency.
"""

import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable

import structlog
from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from token_usage.core.retry import (
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_ATTEMPTS,
    retry_with_backoff,
)
from token_usage.models import Base, TokenUsage
from token_usage.services.usage import UPSERT_INSERTS

logger = structlog.get_logger()


class StoreUnavailableError(RuntimeError):
    """The relational store could not be reached at startup."""


class UsageStore:
    """
    Process-wide handle on the relational store.

    Owns the engine (and so the connection pool) and hands out sessions.
    One instance lives on ``app.state.store`` for the lifetime of the app.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def ensure_schema(self) -> None:
        """Create the usage table and its (date, model) index if missing."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            # create_all skips indexes of tables that already exist
            for index in TokenUsage.__table__.indexes:
                await conn.run_sync(index.create, checkfirst=True)
        logger.info("Ensured token usage table", table=TokenUsage.__tablename__)

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def close(self) -> None:
        await self.engine.dispose()


def build_engine(
    url: str,
    pool_size: int | None = None,
    max_overflow: int | None = None,
) -> AsyncEngine:
    """Build an async engine; pool sizing only applies to server databases."""
    options: dict = {"pool_pre_ping": True}
    if make_url(url).get_backend_name() != "sqlite":
        if pool_size is not None:
            options["pool_size"] = pool_size
        if max_overflow is not None:
            options["max_overflow"] = max_overflow
    return create_async_engine(url, **options)


async def connect_store(
    url: str,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    pool_size: int | None = None,
    max_overflow: int | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> UsageStore:
    """
    Open and verify a connection to the store, retrying with backoff.

    Every attempt builds a fresh engine and pings it; a failed engine is
    disposed before the next attempt. Once connected, the usage table is
    created if absent.

    Raises:
        StoreUnavailableError: if the backend cannot run the usage upsert,
            or if every attempt failed
    """
    backend = make_url(url).get_backend_name()
    if backend not in UPSERT_INSERTS:
        raise StoreUnavailableError(
            f"Unsupported database backend {backend!r}, use one of: {', '.join(UPSERT_INSERTS)}"
        )

    async def attempt() -> UsageStore:
        engine = build_engine(url, pool_size=pool_size, max_overflow=max_overflow)
        store = UsageStore(engine)
        try:
            await store.ping()
        except Exception:
            await engine.dispose()
            raise
        return store

    try:
        store = await retry_with_backoff(
            attempt,
            max_attempts=max_attempts,
            base_delay=base_delay,
            retry_on=(SQLAlchemyError, OSError),
            sleep=sleep,
        )
    except (SQLAlchemyError, OSError) as e:
        raise StoreUnavailableError(
            f"Failed to connect to the database after {max_attempts} attempts: {e}"
        ) from e

    logger.info("Database connection successful")
    await store.ensure_schema()
    return store


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session from the app's store."""
    store: UsageStore = request.app.state.store
    async with store.session() as session:
        yield session
