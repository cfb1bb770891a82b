import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from plinth.core.errors import ItemNotFoundError, QueueError
from plinth.models import QueueItem, QueueStatus

logger = logging.getLogger(__name__)

_TABLE_DDL = (
    "CREATE TABLE IF NOT EXISTS queue_items ("
    " id VARCHAR(36) PRIMARY KEY,"
    " site_id TEXT NOT NULL,"
    " name TEXT NOT NULL,"
    " plan TEXT NOT NULL,"
    " status VARCHAR(16) NOT NULL,"
    " sort_order INTEGER NOT NULL,"
    " error_message TEXT,"
    " created TEXT NOT NULL"
    ")"
)
_INDEX_DDL = "CREATE INDEX IF NOT EXISTS ix_queue_items_site ON queue_items (site_id, sort_order)"


def _row_to_item(row: Any, include_plan: bool) -> QueueItem:
    return QueueItem(
        id=str(row.id),
        name=str(row.name),
        status=QueueStatus(row.status),
        order=int(row.sort_order),
        plan=str(row.plan) if include_plan else None,
        error_message=row.error_message or None,
    )


class SqlCollectionStore:
    """Queue items persisted in a single SQL table through an async engine.

    Database failures surface as ``QueueError``; missing rows as ``ItemNotFoundError``.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._table_ready = False

    async def ensure_ready(self) -> None:
        if self._table_ready:
            return
        try:
            async with self._engine.begin() as conn:
                await conn.execute(text(_TABLE_DDL))
                await conn.execute(text(_INDEX_DDL))
        except SQLAlchemyError as exc:
            raise QueueError(f"Failed to prepare queue table: {exc}") from exc
        self._table_ready = True

    async def list_items(self, site_id: str) -> list[QueueItem]:
        await self.ensure_ready()
        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(
                    text(
                        "SELECT id, name, status, sort_order, error_message FROM queue_items "
                        "WHERE site_id = :site_id ORDER BY sort_order, created"
                    ),
                    {"site_id": site_id},
                )
                return [_row_to_item(row, include_plan=False) for row in result.fetchall()]
        except SQLAlchemyError as exc:
            raise QueueError(f"Failed to list queue items: {exc}") from exc

    async def get_item(self, site_id: str, item_id: str) -> QueueItem:
        await self.ensure_ready()
        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(
                    text(
                        "SELECT id, name, plan, status, sort_order, error_message FROM queue_items "
                        "WHERE site_id = :site_id AND id = :id"
                    ),
                    {"site_id": site_id, "id": item_id},
                )
                row = result.fetchone()
        except SQLAlchemyError as exc:
            raise QueueError(f"Failed to read queue item {item_id}: {exc}") from exc
        if row is None:
            raise ItemNotFoundError(f"Queue item {item_id} not found for site {site_id}")
        return _row_to_item(row, include_plan=True)

    async def create_item(self, site_id: str, name: str, plan: str, order: int) -> QueueItem:
        await self.ensure_ready()
        item_id = str(uuid.uuid4())
        try:
            async with self._engine.begin() as conn:
                await conn.execute(
                    text(
                        "INSERT INTO queue_items (id, site_id, name, plan, status, sort_order, error_message, created) "
                        "VALUES (:id, :site_id, :name, :plan, :status, :sort_order, NULL, :created)"
                    ),
                    {
                        "id": item_id,
                        "site_id": site_id,
                        "name": name,
                        "plan": plan,
                        "status": QueueStatus.PENDING.value,
                        "sort_order": order,
                        "created": datetime.now(timezone.utc).isoformat(),
                    },
                )
        except SQLAlchemyError as exc:
            raise QueueError(f"Failed to create queue item: {exc}") from exc
        return QueueItem(id=item_id, name=name, status=QueueStatus.PENDING, order=order, plan=plan)

    async def update_item(
        self,
        site_id: str,
        item_id: str,
        status: QueueStatus,
        error_message: str | None = None,
    ) -> None:
        await self.ensure_ready()
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(
                    text(
                        "UPDATE queue_items SET status = :status, error_message = :error_message "
                        "WHERE site_id = :site_id AND id = :id"
                    ),
                    {"status": status.value, "error_message": error_message, "site_id": site_id, "id": item_id},
                )
        except SQLAlchemyError as exc:
            raise QueueError(f"Failed to update queue item {item_id}: {exc}") from exc
        if result.rowcount == 0:
            raise ItemNotFoundError(f"Queue item {item_id} not found for site {site_id}")
        logger.debug("Queue item %s -> %s", item_id, status.value)

    async def delete_item(self, site_id: str, item_id: str) -> None:
        await self.ensure_ready()
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(
                    text("DELETE FROM queue_items WHERE site_id = :site_id AND id = :id"),
                    {"site_id": site_id, "id": item_id},
                )
        except SQLAlchemyError as exc:
            raise QueueError(f"Failed to delete queue item {item_id}: {exc}") from exc
        if result.rowcount == 0:
            raise ItemNotFoundError(f"Queue item {item_id} not found for site {site_id}")

    async def ping(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    async def dispose(self) -> None:
        await self._engine.dispose()
