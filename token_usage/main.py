"""
Token Usage Backend
===================
FastAPI application entry point.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from token_usage import __version__
from token_usage.api import api_router, register_exception_handlers
from token_usage.config import Settings, settings as default_settings
from token_usage.database import StoreUnavailableError, UsageStore, connect_store


def configure_logging(settings: Settings) -> None:
    """Configure structured logging."""
    logging.basicConfig(format="%(message)s", level=settings.log_level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging(default_settings)

logger = structlog.get_logger()


async def open_store(settings: Settings) -> UsageStore:
    """
    Connect to the configured database or fail startup.

    Nothing works without storage, so a missing DATABASE_URL or an
    exhausted retry budget is fatal.
    """
    if not settings.database_url:
        logger.critical("DATABASE_URL environment variable not set")
        raise StoreUnavailableError("DATABASE_URL environment variable not set")

    try:
        return await connect_store(
            settings.database_url,
            max_attempts=settings.database_connect_max_attempts,
            base_delay=settings.database_connect_base_delay,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
    except StoreUnavailableError as e:
        logger.critical("Failed to connect to the database", error=str(e))
        raise


def create_app(
    settings: Settings | None = None,
    store: UsageStore | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration (defaults to the environment)
        store: Pre-connected store; when omitted one is opened at startup
            and closed at shutdown
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        # Startup
        logger.info("Starting Token Usage service", env=settings.app_env)
        owns_store = app.state.store is None
        if owns_store:
            app.state.store = await open_store(settings)
        logger.info("Database connected")

        yield

        # Shutdown
        logger.info("Shutting down Token Usage service")
        if owns_store:
            await app.state.store.close()
            app.state.store = None
        logger.info("Database disconnected")

    app = FastAPI(
        title="Token Usage API",
        description="Per-day, per-model token usage counters",
        version=__version__,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )
    app.state.store = store

    register_exception_handlers(app)

    # Mount Prometheus metrics endpoint
    if settings.metrics_enabled:
        metrics_app = make_asgi_app()
        app.mount("/metrics", metrics_app)

    # Include API routes
    app.include_router(api_router)

    return app


app = create_app()


def run() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "token_usage.main:app",
        host=default_settings.app_host,
        port=default_settings.app_port,
        reload=default_settings.app_debug,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
