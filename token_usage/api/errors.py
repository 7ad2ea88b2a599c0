"""
Error Responses
===============
Render every HTTP error as a JSON body with a message and optional cause.
"""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()


def error_detail(message: str, error: Exception | str | None = None) -> dict[str, str]:
    """Build an HTTPException detail carrying the underlying cause."""
    detail = {"message": message}
    if error is not None:
        detail["error"] = str(error)
    return detail


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    content = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Malformed request bodies are client errors (400), not 422."""
    error = _format_validation_errors(exc)
    logger.warning("Invalid request payload", path=request.url.path, error=error)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_detail("Invalid request payload", error),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
