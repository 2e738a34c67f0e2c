"""
ocop_client.devserver.routes.health

Liveness endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/api/health")
async def api_health() -> dict[str, object]:
    # Same probe under the API prefix, matching the backend's `/api/health`.
    return {"success": True, "message": "OK"}
