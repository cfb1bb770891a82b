import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from plinth.core.errors import ItemNotFoundError
from plinth.models import QueueItem, QueueStatus


@dataclass(frozen=True)
class InMemoryQueueRecord:
    item_id: str
    site_id: str
    name: str
    plan: str
    status: QueueStatus
    order: int
    error_message: str | None
    created: datetime

    def to_item(self, include_plan: bool = True) -> QueueItem:
        return QueueItem(
            id=self.item_id,
            name=self.name,
            status=self.status,
            order=self.order,
            plan=self.plan if include_plan else None,
            error_message=self.error_message,
        )


class InMemoryCollectionStore:
    def __init__(self) -> None:
        self.records: dict[str, InMemoryQueueRecord] = {}

    async def list_items(self, site_id: str) -> list[QueueItem]:
        return [r.to_item(include_plan=False) for r in self.records.values() if r.site_id == site_id]

    async def get_item(self, site_id: str, item_id: str) -> QueueItem:
        return self._get(site_id, item_id).to_item()

    async def create_item(self, site_id: str, name: str, plan: str, order: int) -> QueueItem:
        record = InMemoryQueueRecord(
            item_id=str(uuid.uuid4()),
            site_id=site_id,
            name=name,
            plan=plan,
            status=QueueStatus.PENDING,
            order=order,
            error_message=None,
            created=datetime.now(timezone.utc),
        )
        self.records[record.item_id] = record
        return record.to_item()

    async def update_item(
        self,
        site_id: str,
        item_id: str,
        status: QueueStatus,
        error_message: str | None = None,
    ) -> None:
        record = self._get(site_id, item_id)
        self.records[item_id] = replace(record, status=status, error_message=error_message)

    async def delete_item(self, site_id: str, item_id: str) -> None:
        self._get(site_id, item_id)
        del self.records[item_id]

    async def ensure_ready(self) -> None:
        pass

    async def ping(self) -> bool:
        return True

    async def dispose(self) -> None:
        pass

    def _get(self, site_id: str, item_id: str) -> InMemoryQueueRecord:
        record = self.records.get(item_id)
        if record is None or record.site_id != site_id:
            raise ItemNotFoundError(f"Queue item {item_id} not found for site {site_id}")
        return record
