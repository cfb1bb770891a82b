from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from plinth.models import PageInfo, QueueStatus, WireModel


class HealthResponse(BaseModel):
    status: str = "ok"


class ReadinessResponse(BaseModel):
    status: str = "ok"
    database: str = "up"


class QueueItemRow(WireModel):
    id: str
    name: str
    status: QueueStatus
    order: int
    error_message: str | None = None


class QueueItemDetail(QueueItemRow):
    plan: str


class EnqueueResponse(WireModel):
    item_id: str
    status: QueueStatus
    site_id: str
    section_name: str
    order: int


class DeleteResponse(BaseModel):
    deleted: bool = True


class ClearResponse(BaseModel):
    cleared: int


class StatusUpdateRequest(WireModel):
    status: QueueStatus
    error_message: str | None = None


class StatusUpdateResponse(BaseModel):
    id: str
    status: QueueStatus


class OkResponse(BaseModel):
    ok: bool = True


class PendingResponse(BaseModel):
    pending: bool


class SnapshotSubmission(WireModel):
    summary: str = Field(min_length=1)
    page_info: PageInfo | None = None


class SnapshotResponse(WireModel):
    summary: str
    page_info: PageInfo | None = None
    captured_at: datetime
