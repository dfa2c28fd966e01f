"""Request logging middleware.

Binds a correlation id to every log line emitted while a request is handled
and echoes it back in the response headers.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from marketdesk.core.logging import (
    bind_contextvars,
    clear_contextvars,
    clear_correlation_id,
    get_logger,
    set_correlation_id,
)

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs request start and completion with timing and a correlation id."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        clear_contextvars()

        correlation_id = set_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        bind_contextvars(
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
            query_params=str(request.query_params) if request.query_params else None,
        )

        start_time = time.perf_counter()
        logger.info("request_started")

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception(
                "request_failed",
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                error_type=type(exc).__name__,
            )
            raise
        else:
            logger.info(
                "request_completed",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_contextvars()
            clear_correlation_id()
