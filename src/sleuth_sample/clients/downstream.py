"""
sleuth_sample.clients.downstream

HTTP client boundary for calls to the downstream service.

Responsibilities:
- Attach the current trace context to every outbound request.
- Call the downstream `/hello` endpoint.
"""

from __future__ import annotations

import httpx

from sleuth_sample.observability.logging import get_logger
from sleuth_sample.settings import Settings
from sleuth_sample.tracing.interceptor import RequestBoundaryInterceptor

log = get_logger(__name__)


def build_http_client(
    settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.downstream_base_url,
        timeout=settings.downstream_timeout_s,
        transport=transport,
    )


class DownstreamClient:
    """
    The next hop derives its own child span from the headers we send, so the
    same trace id shows up in both services' logs.
    """

    def __init__(self, *, http: httpx.AsyncClient, interceptor: RequestBoundaryInterceptor) -> None:
        self._http = http
        self._interceptor = interceptor

    def _trace_headers(self) -> dict[str, str]:
        # Pass-through of the current ids; empty when called outside a request.
        return dict(self._interceptor.outbound_headers())

    async def hello(self) -> str:
        log.info("downstream_call", endpoint="/hello")
        r = await self._http.get("/hello", headers=self._trace_headers())
        r.raise_for_status()
        return r.text


# --- Module Notes -----------------------------------------------------------
# Retries/timeouts per environment belong in `build_http_client`, not in callers.
