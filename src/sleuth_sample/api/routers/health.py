"""
sleuth_sample.api.routers.health

Health endpoint.

Responsibilities:
- Provide liveness probe (`/healthz`).
"""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    # Liveness: process is up and serving HTTP.
    return {"status": "ok"}
