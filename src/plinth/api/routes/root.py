from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response, status

from plinth import __version__
from plinth.api.dependencies import get_store
from plinth.api.schemas import HealthResponse, ReadinessResponse
from plinth.core.ports.store import CollectionStore

router = APIRouter()

_RELAY_LINKS = {
    "self": "/",
    "queue": "/queue",
    "status": "/status",
    "snapshot": "/snapshot",
    "health": "/health",
    "openapi": "/openapi.json",
    "docs": "/docs",
}


@router.get("/")
async def root() -> dict[str, Any]:
    """Discovery document listing the relay endpoints."""
    return {
        "name": "Plinth relay",
        "description": "Queue BuildPlans for a canvas and fetch snapshots of its current state.",
        "version": __version__,
        "links": _RELAY_LINKS,
    }


# The canvas process pings /healthz/live before polling; /healthz/ready also
# needs the queue store.
@router.get("/health", response_model=HealthResponse)
@router.get("/healthz/live", response_model=HealthResponse)
async def alive() -> HealthResponse:
    return HealthResponse()


@router.get("/healthz/ready", response_model=ReadinessResponse)
async def ready(
    response: Response,
    store: CollectionStore = Depends(get_store),
) -> ReadinessResponse:
    up = await store.ping()
    if not up:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(status="ok" if up else "degraded", database="up" if up else "down")
