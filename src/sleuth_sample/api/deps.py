"""
sleuth_sample.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, the interceptor and outbound clients.
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from fastapi import Depends, Request

from sleuth_sample.clients.downstream import DownstreamClient
from sleuth_sample.settings import Settings
from sleuth_sample.tracing.interceptor import RequestBoundaryInterceptor


def settings_dep(request: Request) -> Settings:
    # Settings passed to `create_app` win over the env-cached instance.
    return request.app.state.settings  # type: ignore[attr-defined]


def interceptor_dep(request: Request) -> RequestBoundaryInterceptor:
    return request.app.state.interceptor  # type: ignore[attr-defined]


def downstream_client(
    request: Request,
    interceptor: RequestBoundaryInterceptor = Depends(interceptor_dep),
) -> DownstreamClient:
    # The shared httpx client is opened in the app lifespan (see `sleuth_sample.api.app`).
    return DownstreamClient(http=request.app.state.downstream_http, interceptor=interceptor)


# --- Module Notes -----------------------------------------------------------
# Tests override `downstream_client` to route outbound calls to an in-memory transport.
