from __future__ import annotations

from fastapi import APIRouter, Depends

from plinth.api.dependencies import get_broker, site_id_param
from plinth.api.schemas import OkResponse, PendingResponse, SnapshotResponse, SnapshotSubmission
from plinth.core.errors import NotFoundError
from plinth.core.snapshot import SnapshotBroker
from plinth.models import SnapshotPayload

router = APIRouter(prefix="/snapshot", tags=["snapshot"])


@router.post("/request", response_model=OkResponse)
async def request_snapshot(
    site_id: str = Depends(site_id_param),
    broker: SnapshotBroker = Depends(get_broker),
) -> OkResponse:
    """Ask the canvas process for a fresh snapshot on its next poll."""
    broker.request(site_id)
    return OkResponse()


@router.get("/pending", response_model=PendingResponse)
async def pending(
    site_id: str = Depends(site_id_param),
    broker: SnapshotBroker = Depends(get_broker),
) -> PendingResponse:
    return PendingResponse(pending=broker.is_pending(site_id))


@router.post("", response_model=OkResponse)
async def submit_snapshot(
    body: SnapshotSubmission,
    site_id: str = Depends(site_id_param),
    broker: SnapshotBroker = Depends(get_broker),
) -> OkResponse:
    broker.submit(site_id, SnapshotPayload(summary=body.summary, page_info=body.page_info))
    return OkResponse()


@router.get("", response_model=SnapshotResponse)
async def get_snapshot(
    site_id: str = Depends(site_id_param),
    broker: SnapshotBroker = Depends(get_broker),
) -> SnapshotResponse:
    """The latest snapshot, or 404 when none was submitted or it went stale."""
    stored = broker.get(site_id)
    if stored is None:
        raise NotFoundError(f"No snapshot available for site {site_id}")
    return SnapshotResponse(
        summary=stored.payload.summary,
        page_info=stored.payload.page_info,
        captured_at=stored.captured_at,
    )
