"""
Correlation ID Middleware

Tags every request with a correlation id (taken from the X-Correlation-Id
header or generated), echoes it on the response and writes one access log
line per request.
"""

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from ...utils.logger import get_logger, set_correlation_id
from ...utils.idgen import generate_correlation_id

logger = get_logger(__name__)

# Client supplied ids longer than this are replaced
MAX_CORRELATION_ID_LENGTH = 128


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Correlation id propagation and request access logging"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = request.headers.get("X-Correlation-Id", "").strip()
        if not correlation_id or len(correlation_id) > MAX_CORRELATION_ID_LENGTH:
            correlation_id = generate_correlation_id()
        set_correlation_id(correlation_id)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Correlation-Id"] = correlation_id
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)",
            extra={"action": request.method, "status": response.status_code}
        )
        return response
