"""
tests.conftest

Shared fixtures.

Responsibilities:
- Guarantee every test starts and ends with no trace context installed.
- Provide an app wired to an in-memory downstream and a captured log stream.
"""

from __future__ import annotations

import io
from collections.abc import AsyncIterator, Callable, Iterator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from sleuth_sample.api.app import create_app
from sleuth_sample.api.deps import downstream_client
from sleuth_sample.clients.downstream import DownstreamClient
from sleuth_sample.observability.logging import configure_logging
from sleuth_sample.settings import Settings
from sleuth_sample.tracing.propagator import propagator

TEST_PATTERN = "[{correlation}] {event}"


@pytest.fixture(autouse=True)
def _clean_trace_slot() -> Iterator[None]:
    propagator.clear()
    yield
    propagator.clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(env="test", log_level="DEBUG", propagation_types=["w3c", "b3"])


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def downstream_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def route_downstream(
    downstream_requests: list[httpx.Request],
) -> Callable[[FastAPI, int], None]:
    """Point `/hello/relay` at an in-memory downstream answering with `status`."""

    def _route(app: FastAPI, status: int = 200) -> None:
        def _downstream(request: httpx.Request) -> httpx.Response:
            downstream_requests.append(request)
            return httpx.Response(status, text="hello")

        http = httpx.AsyncClient(
            transport=httpx.MockTransport(_downstream), base_url="http://downstream"
        )
        app.dependency_overrides[downstream_client] = lambda: DownstreamClient(
            http=http, interceptor=app.state.interceptor
        )

    return _route


@pytest.fixture
def app(
    settings: Settings,
    log_stream: io.StringIO,
    route_downstream: Callable[[FastAPI, int], None],
) -> FastAPI:
    app = create_app(settings=settings)
    # create_app points logging at stdout; route it into the test buffer instead.
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        pattern=TEST_PATTERN,
        stream=log_stream,
    )
    route_downstream(app, 200)
    return app


@pytest_asyncio.fixture
async def api_client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    # httpx ASGITransport does not run lifespan; the downstream override replaces what it would open.
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# --- Module Notes -----------------------------------------------------------
# The compact "[{correlation}] {event}" pattern keeps assertions independent of timestamps.
