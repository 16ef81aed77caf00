"""Middleware for request processing and observability."""

import time
from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add correlation ID and a completion log to every request.

    - Generates UUID4 per request (or uses X-Correlation-Id header if present)
    - Stores in request.state.correlation_id
    - Binds to structlog context for all subsequent logging
    - Logs method, path, status and duration once the response is ready
    - Adds X-Correlation-Id response header
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request with correlation ID tracking."""
        correlation_id = request.headers.get("X-Correlation-Id") or str(uuid4())

        request.state.correlation_id = correlation_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                status_code=500,
                duration_ms=int((time.perf_counter() - start_time) * 1000),
            )
            raise
        duration_ms = int((time.perf_counter() - start_time) * 1000)

        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

        response.headers["X-Correlation-Id"] = correlation_id

        return response
