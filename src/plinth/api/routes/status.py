from __future__ import annotations

from fastapi import APIRouter, Depends

from plinth.api.dependencies import get_store, site_id_param
from plinth.api.schemas import QueueItemDetail, QueueItemRow, StatusUpdateRequest, StatusUpdateResponse
from plinth.core.ports.store import CollectionStore
from plinth.core.queue import list_queue

router = APIRouter(prefix="/status", tags=["status"])


@router.get("", response_model=list[QueueItemRow], response_model_exclude_none=True)
async def list_status(
    site_id: str = Depends(site_id_param),
    store: CollectionStore = Depends(get_store),
) -> list[QueueItemRow]:
    """All queue items of a site, lowest ``order`` first, without their plans."""
    await store.ensure_ready()
    items = await list_queue(store, site_id)
    return [
        QueueItemRow(id=i.id, name=i.name, status=i.status, order=i.order, error_message=i.error_message)
        for i in items
    ]


@router.get("/{item_id}", response_model=QueueItemDetail, response_model_exclude_none=True)
async def item_status(
    item_id: str,
    site_id: str = Depends(site_id_param),
    store: CollectionStore = Depends(get_store),
) -> QueueItemDetail:
    await store.ensure_ready()
    item = await store.get_item(site_id, item_id)
    return QueueItemDetail(
        id=item.id,
        name=item.name,
        status=item.status,
        order=item.order,
        error_message=item.error_message,
        plan=item.plan or "",
    )


@router.patch("/{item_id}", response_model=StatusUpdateResponse)
async def update_status(
    item_id: str,
    body: StatusUpdateRequest,
    site_id: str = Depends(site_id_param),
    store: CollectionStore = Depends(get_store),
) -> StatusUpdateResponse:
    await store.ensure_ready()
    await store.update_item(site_id, item_id, body.status, body.error_message)
    return StatusUpdateResponse(id=item_id, status=body.status)
