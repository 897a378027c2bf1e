"""
sleuth_sample.observability.middleware

HTTP middleware for request-scoped trace context.

Responsibilities:
- Bracket every request with the `RequestBoundaryInterceptor`.
- Bind request metadata into structlog contextvars.
- Emit a correlated access line and echo the trace id on the response.
"""

from __future__ import annotations

from time import perf_counter

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from sleuth_sample.tracing.interceptor import RequestBoundaryInterceptor


class TraceContextMiddleware(BaseHTTPMiddleware):
    """
    - Continues the caller's trace (or starts one) for every request
    - Guarantees the context is cleared when the request ends, however it ends
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        interceptor: RequestBoundaryInterceptor,
        response_header: str = "X-Trace-Id",
    ) -> None:
        super().__init__(app)
        self._interceptor = interceptor
        self._response_header = response_header

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            path=request.url.path,
            method=request.method,
        )
        access = structlog.get_logger("access")
        start = perf_counter()
        status_code = 500
        try:
            with self._interceptor.bracket(request.headers) as uow:
                try:
                    response = await call_next(request)
                    status_code = response.status_code
                finally:
                    # Logged before the bracket closes so the line carries the ids.
                    access.info(
                        "http_request",
                        status_code=status_code,
                        elapsed_ms=round((perf_counter() - start) * 1000.0, 2),
                        continued=uow.derived,
                    )
        finally:
            # Avoid leaking context across requests under async concurrency.
            structlog.contextvars.clear_contextvars()

        if self._response_header and uow.context is not None:
            response.headers[self._response_header] = uow.context.trace_id
        return response


# --- Module Notes -----------------------------------------------------------
# This middleware complements `observability.logging.configure_logging` by ensuring
# trace ids are present on every log line without explicit parameter threading.
