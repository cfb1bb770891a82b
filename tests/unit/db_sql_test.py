"""Tests for the SQL collection store against a temporary SQLite database."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from plinth.core.errors import ItemNotFoundError, QueueError
from plinth.db.sql import SqlCollectionStore
from plinth.models import QueueStatus


@pytest_asyncio.fixture
async def sql_store(tmp_path: Path) -> AsyncIterator[SqlCollectionStore]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'queue.db'}", future=True)
    instance = SqlCollectionStore(engine)
    await instance.ensure_ready()
    yield instance
    await instance.dispose()


class TestSqlCollectionStore:
    @pytest.mark.asyncio
    async def test_create_and_get(self, sql_store: SqlCollectionStore) -> None:
        created = await sql_store.create_item("site-1", "hero", '{"version": "1.0"}', 3)
        fetched = await sql_store.get_item("site-1", created.id)
        assert fetched.name == "hero"
        assert fetched.order == 3
        assert fetched.plan == '{"version": "1.0"}'
        assert fetched.status is QueueStatus.PENDING
        assert fetched.error_message is None

    @pytest.mark.asyncio
    async def test_list_is_ordered_and_scoped(self, sql_store: SqlCollectionStore) -> None:
        for name, order in (("c", 3), ("a", 1), ("b", 2)):
            await sql_store.create_item("site-1", name, "{}", order)
        await sql_store.create_item("site-2", "other", "{}", 1)

        items = await sql_store.list_items("site-1")

        assert [i.name for i in items] == ["a", "b", "c"]
        assert all(i.plan is None for i in items)

    @pytest.mark.asyncio
    async def test_update(self, sql_store: SqlCollectionStore) -> None:
        item = await sql_store.create_item("site-1", "hero", "{}", 1)
        await sql_store.update_item("site-1", item.id, QueueStatus.ERROR, "tree.type: bad")
        fetched = await sql_store.get_item("site-1", item.id)
        assert fetched.status is QueueStatus.ERROR
        assert fetched.error_message == "tree.type: bad"

    @pytest.mark.asyncio
    async def test_missing_items_raise(self, sql_store: SqlCollectionStore) -> None:
        with pytest.raises(ItemNotFoundError):
            await sql_store.get_item("site-1", "missing")
        with pytest.raises(ItemNotFoundError):
            await sql_store.update_item("site-1", "missing", QueueStatus.DONE)
        with pytest.raises(ItemNotFoundError):
            await sql_store.delete_item("site-1", "missing")

    @pytest.mark.asyncio
    async def test_delete(self, sql_store: SqlCollectionStore) -> None:
        item = await sql_store.create_item("site-1", "hero", "{}", 1)
        await sql_store.delete_item("site-1", item.id)
        assert await sql_store.list_items("site-1") == []

    @pytest.mark.asyncio
    async def test_ping(self, sql_store: SqlCollectionStore) -> None:
        assert await sql_store.ping() is True

    @pytest.mark.asyncio
    async def test_list_failure_is_a_queue_error(self, tmp_path: Path) -> None:
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'queue.db'}", future=True)
        instance = SqlCollectionStore(engine)
        instance._table_ready = True
        with pytest.raises(QueueError):
            await instance.list_items("site-1")
        assert await instance.ping() is False
        await instance.dispose()

    @pytest.mark.asyncio
    async def test_unreachable_database_raises_queue_errors(self, tmp_path: Path) -> None:
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'queue.db'}", future=True)
        instance = SqlCollectionStore(engine)
        with pytest.raises(QueueError):
            await instance.ensure_ready()
        calls: list[Callable[[], Awaitable[object]]] = [
            lambda: instance.list_items("site-1"),
            lambda: instance.get_item("site-1", "item-1"),
            lambda: instance.create_item("site-1", "hero", "{}", 1),
            lambda: instance.update_item("site-1", "item-1", QueueStatus.DONE),
            lambda: instance.delete_item("site-1", "item-1"),
        ]
        for call in calls:
            with pytest.raises(QueueError) as exc_info:
                await call()
            assert not isinstance(exc_info.value, ItemNotFoundError)
        await instance.dispose()
