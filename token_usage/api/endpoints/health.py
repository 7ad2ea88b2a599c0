"""
Health Check Endpoints
======================
Liveness and readiness probes.
"""

import structlog
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from token_usage import __version__
from token_usage.database import UsageStore

router = APIRouter()
logger = structlog.get_logger()


class HealthResponse(BaseModel):
    status: str
    version: str


class ReadinessResponse(HealthResponse):
    """Liveness plus the state of the usage store."""

    database: str
    backend: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ReadinessResponse}},
)
async def readiness_check(request: Request) -> ReadinessResponse | JSONResponse:
    """
    Ping the store opened at startup.

    Returns 503 while the store is unreachable, so load balancers stop
    routing usage reports to this instance.
    """
    store: UsageStore = request.app.state.store
    backend = store.engine.dialect.name

    try:
        await store.ping()
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Readiness check failed", backend=backend, error=str(e))
        body = ReadinessResponse(
            status="degraded",
            database="disconnected",
            backend=backend,
            version=__version__,
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(),
        )

    return ReadinessResponse(
        status="ok",
        database="connected",
        backend=backend,
        version=__version__,
    )
