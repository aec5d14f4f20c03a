"""
Exception handlers.

All error responses share the ``{"error", "code", ["details"]}`` shape and echo
the request's correlation id so a client report can be matched to the logs.
"""
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...domain.errors import AuthenticationError, DomainError
from ...utils.logger import get_correlation_id, get_logger

logger = get_logger(__name__)


def _error_response(
    status_code: int, body: Dict[str, Any], headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    merged = {"X-Correlation-Id": get_correlation_id() or ""}
    merged.update(headers or {})
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=merged)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Expected failures: validation, not found, permission, conflict, upstream"""
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"{request.method} {request.url.path} rejected: {exc.error_code} {exc.message}",
        extra={"error_code": exc.error_code, "status": exc.http_status}
    )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return _error_response(exc.http_status, exc.to_dict(), headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed bodies and query params are a 400 here, not FastAPI's default 422
    errors = exc.errors()
    logger.warning(
        f"{request.method} {request.url.path} failed validation ({len(errors)} errors)",
        extra={"error_code": "VALIDATION_ERROR", "fields": [".".join(map(str, e.get("loc", ()))) for e in errors]}
    )
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        {"error": "Request validation failed", "code": "VALIDATION_ERROR", "details": {"errors": errors}},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Store outages and bugs; the trace goes to the log, never to the client"""
    logger.error(f"{request.method} {request.url.path} failed: {exc!r}", exc_info=exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"error": "An unexpected error occurred", "code": "INTERNAL_ERROR"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
