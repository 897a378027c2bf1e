"""
sleuth_sample.api.app

FastAPI app factory for the Sleuth sample service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Wire the tracing core (propagation formats, interceptor) from settings.
- Open and close the shared outbound HTTP client.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from sleuth_sample.api.routers.health import router as health_router
from sleuth_sample.api.routers.hello import router as hello_router
from sleuth_sample.clients.downstream import build_http_client
from sleuth_sample.observability.logging import configure_logging, get_logger
from sleuth_sample.observability.middleware import TraceContextMiddleware
from sleuth_sample.settings import Settings
from sleuth_sample.tracing.carriers import Propagation
from sleuth_sample.tracing.interceptor import RequestBoundaryInterceptor
from sleuth_sample.tracing.propagator import propagator

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        log_format=settings.log_format,
        pattern=settings.log_pattern,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, propagation=settings.propagation_types)
        app.state.downstream_http = build_http_client(settings)
        try:
            yield
        finally:
            await app.state.downstream_http.aclose()
            log.info("shutdown")

    app = FastAPI(
        title="Sleuth Sample",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    interceptor = RequestBoundaryInterceptor(
        propagation=Propagation.from_types(settings.propagation_types),
        propagator=propagator,
    )
    app.state.settings = settings
    app.state.interceptor = interceptor

    app.add_middleware(
        TraceContextMiddleware,
        interceptor=interceptor,
        response_header=settings.trace_response_header,
    )
    app.include_router(health_router, tags=["health"])
    app.include_router(hello_router)

    return app


# --- Module Notes -----------------------------------------------------------
# This file is intentionally small: app composition stays here; tracing stays in
# `sleuth_sample.tracing` and logging in `sleuth_sample.observability`.
