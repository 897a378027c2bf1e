from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse
from starlette.status import HTTP_502_BAD_GATEWAY

from sleuth_sample.api.deps import downstream_client
from sleuth_sample.clients.downstream import DownstreamClient
from sleuth_sample.observability.logging import get_logger
from sleuth_sample.tracing.propagator import current_context

router = APIRouter(prefix="/hello", tags=["hello"])

log = get_logger(__name__)


@router.get("", response_class=PlainTextResponse)
async def hello() -> str:
    log.info("Hello from Sleuth sample")
    return "hello"


@router.get("/relay")
async def relay(client: DownstreamClient = Depends(downstream_client)) -> dict[str, str]:
    log.info("relaying greeting")
    try:
        greeting = await client.hello()
    except httpx.HTTPError as e:
        log.warning("downstream_failed", error=str(e))
        raise HTTPException(status_code=HTTP_502_BAD_GATEWAY, detail="Downstream call failed") from e

    ctx = current_context()
    log.info("relay complete", greeting=greeting)
    return {"greeting": greeting, "trace_id": ctx.trace_id, "span_id": ctx.span_id}
