from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from plinth.api.dependencies import get_settings, get_store, site_id_param
from plinth.api.schemas import ClearResponse, DeleteResponse, EnqueueResponse
from plinth.config import Settings
from plinth.core.errors import UnknownSiteError
from plinth.core.ports.store import CollectionStore
from plinth.core.queue import clear_queue, enqueue_plan

router = APIRouter(prefix="/queue", tags=["queue"])


@router.post(
    "",
    response_model=EnqueueResponse,
    status_code=status.HTTP_201_CREATED,
)
async def enqueue(
    body: Any = Body(...),
    store: CollectionStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> EnqueueResponse:
    """Validate a BuildPlan and queue it for its site."""
    site_id = body.get("siteId") if isinstance(body, dict) else None
    if isinstance(site_id, str) and site_id.strip() and not settings.knows_site(site_id):
        raise UnknownSiteError(site_id)

    await store.ensure_ready()
    item, plan = await enqueue_plan(store, body)
    return EnqueueResponse(
        item_id=item.id,
        status=item.status,
        site_id=plan.site_id,
        section_name=plan.section_name,
        order=plan.order,
    )


@router.post("/clear", response_model=ClearResponse)
async def clear(
    site_id: str = Depends(site_id_param),
    store: CollectionStore = Depends(get_store),
) -> Any:
    """Delete done and errored items. Pending and building items are kept."""
    await store.ensure_ready()
    result = await clear_queue(store, site_id)
    if result.errors:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "; ".join(result.errors), "cleared": result.cleared},
        )
    return ClearResponse(cleared=result.cleared)


@router.delete("/{item_id}", response_model=DeleteResponse)
async def delete(
    item_id: str,
    site_id: str = Depends(site_id_param),
    store: CollectionStore = Depends(get_store),
) -> DeleteResponse:
    await store.ensure_ready()
    await store.delete_item(site_id, item_id)
    return DeleteResponse()
