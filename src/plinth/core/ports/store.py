from typing import Protocol

from plinth.models import QueueItem, QueueStatus


class QueueStore(Protocol):
    """The part of a collection store the build consumer relies on."""

    async def list_items(self, site_id: str) -> list[QueueItem]: ...

    async def get_item(self, site_id: str, item_id: str) -> QueueItem: ...

    async def update_item(
        self,
        site_id: str,
        item_id: str,
        status: QueueStatus,
        error_message: str | None = None,
    ) -> None: ...


class CollectionStore(QueueStore, Protocol):
    async def create_item(self, site_id: str, name: str, plan: str, order: int) -> QueueItem: ...

    async def delete_item(self, site_id: str, item_id: str) -> None: ...

    async def ensure_ready(self) -> None: ...

    async def ping(self) -> bool: ...

    async def dispose(self) -> None: ...
