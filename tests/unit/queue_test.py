"""Tests for enqueueing, listing and clearing queued plans."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock

import pytest

from plinth.core.errors import ItemNotFoundError, ValidationError
from plinth.core.queue import clear_queue, enqueue_plan, list_queue
from plinth.db.memory import InMemoryCollectionStore
from plinth.models import QueueStatus


class TestEnqueuePlan:
    @pytest.mark.asyncio
    async def test_creates_pending_item(self, store: InMemoryCollectionStore, hero_plan: dict[str, Any]) -> None:
        item, plan = await enqueue_plan(store, hero_plan)

        assert item.status is QueueStatus.PENDING
        assert item.name == "hero"
        assert item.order == 1
        assert plan.site_id == "site-1"
        stored = await store.get_item("site-1", item.id)
        assert stored.plan is not None
        assert json.loads(stored.plan) == hero_plan

    @pytest.mark.asyncio
    async def test_missing_order_is_placed_last(self, store: InMemoryCollectionStore, plan_factory: Any) -> None:
        await enqueue_plan(store, plan_factory(order=5))
        await enqueue_plan(store, plan_factory(order=6))
        raw = plan_factory()
        del raw["order"]

        item, plan = await enqueue_plan(store, raw)

        assert item.order == 3
        assert plan.order == 3
        assert "order" not in raw

    @pytest.mark.asyncio
    async def test_missing_order_defaults_to_one_when_listing_fails(self, plan_factory: Any) -> None:
        store = AsyncMock()
        store.list_items.side_effect = ConnectionError("offline")
        store.create_item.return_value = object()
        raw = plan_factory(order=None)

        _, plan = await enqueue_plan(store, raw)

        assert plan.order == 1
        store.create_item.assert_awaited_once()
        assert store.create_item.await_args.args[3] == 1

    @pytest.mark.asyncio
    async def test_invalid_plan_is_not_stored(self, store: InMemoryCollectionStore, plan_factory: Any) -> None:
        with pytest.raises(ValidationError):
            await enqueue_plan(store, plan_factory(tree={"type": "DivBlock", "className": "x"}))
        assert store.records == {}

    @pytest.mark.asyncio
    async def test_non_object_is_rejected(self, store: InMemoryCollectionStore) -> None:
        with pytest.raises(ValidationError):
            await enqueue_plan(store, "plan")


class TestListQueue:
    @pytest.mark.asyncio
    async def test_sorted_by_order_without_plans(self, store: InMemoryCollectionStore) -> None:
        for name, order in (("c", 3), ("a", 1), ("b", 2)):
            await store.create_item("site-1", name, "{}", order)
        await store.create_item("site-2", "other", "{}", 1)

        items = await list_queue(store, "site-1")

        assert [i.name for i in items] == ["a", "b", "c"]
        assert all(i.plan is None for i in items)


class TestClearQueue:
    @pytest.mark.asyncio
    async def test_removes_only_done_and_error(self, store: InMemoryCollectionStore) -> None:
        ids = {}
        for name, status in (
            ("pending", QueueStatus.PENDING),
            ("building", QueueStatus.BUILDING),
            ("done", QueueStatus.DONE),
            ("error", QueueStatus.ERROR),
        ):
            item = await store.create_item("site-1", name, "{}", len(ids) + 1)
            await store.update_item("site-1", item.id, status)
            ids[name] = item.id

        result = await clear_queue(store, "site-1")

        assert result.cleared == 2
        assert result.errors == []
        assert {i.name for i in await store.list_items("site-1")} == {"pending", "building"}

    @pytest.mark.asyncio
    async def test_collects_delete_failures(self, store: InMemoryCollectionStore) -> None:
        first = await store.create_item("site-1", "a", "{}", 1)
        second = await store.create_item("site-1", "b", "{}", 2)
        for item in (first, second):
            await store.update_item("site-1", item.id, QueueStatus.DONE)

        original = store.delete_item

        async def _flaky_delete(site_id: str, item_id: str) -> None:
            if item_id == second.id:
                raise ItemNotFoundError("vanished")
            await original(site_id, item_id)

        store.delete_item = _flaky_delete  # type: ignore[method-assign]

        result = await clear_queue(store, "site-1")

        assert result.cleared == 1
        assert len(result.errors) == 1
        assert result.errors[0].startswith(second.id)

    @pytest.mark.asyncio
    async def test_nothing_to_clear(self, store: InMemoryCollectionStore) -> None:
        await store.create_item("site-1", "a", "{}", 1)
        result = await clear_queue(store, "site-1")
        assert result.cleared == 0
