"""Producer, relay and canvas-side consumer wired together over HTTP (ASGI)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest
import pytest_asyncio

from plinth.api.app import create_app
from plinth.api.dependencies import get_broker, get_settings, get_store
from plinth.canvas.memory import InMemoryCanvas
from plinth.config import Settings
from plinth.core.consumer import BuildQueueConsumer
from plinth.core.errors import ItemNotFoundError
from plinth.core.ports.store import CollectionStore
from plinth.core.snapshot import SnapshotBroker, SnapshotResponder
from plinth.db.memory import InMemoryCollectionStore
from plinth.models import BuildResult, QueueStatus
from plinth.relay.client import RelayClient

WELCOME_PLAN: dict[str, Any] = {
    "version": "1.0",
    "siteId": "s1",
    "sectionName": "hero",
    "order": 1,
    "styles": [{"name": "hero-section", "properties": {"padding-top": "80px"}}],
    "tree": {
        "type": "Section",
        "className": "hero-section",
        "children": [{"type": "Heading", "className": "hero-h1", "headingLevel": 1, "text": "Welcome"}],
    },
}


@pytest_asyncio.fixture
async def relay() -> AsyncIterator[RelayClient]:
    store = InMemoryCollectionStore()
    broker = SnapshotBroker()
    app = create_app()

    async def _override() -> AsyncIterator[CollectionStore]:
        yield store

    app.dependency_overrides[get_store] = _override
    app.dependency_overrides[get_broker] = lambda: broker
    app.dependency_overrides[get_settings] = lambda: Settings(sites=frozenset({"s1"}))

    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://relay")
    async with http, RelayClient(client=http) as client:
        yield client


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_queued_plan_is_built_on_the_canvas(self, relay: RelayClient) -> None:
        canvas = InMemoryCanvas()
        results: list[BuildResult] = []
        consumer = BuildQueueConsumer(
            "s1", relay, canvas, on_build_complete=lambda _item, result: results.append(result)
        )

        queued = await relay.submit_plan(WELCOME_PLAN)
        processed = await consumer.process_next()

        assert processed is not None
        assert processed.id == queued["itemId"]
        assert processed.status is QueueStatus.DONE
        assert results[0].success is True
        assert results[0].elements_created == 2
        assert results[0].styles_created == 1

        items = await relay.list_items("s1")
        assert [i.status for i in items] == [QueueStatus.DONE]
        heading = canvas.find_by_class("hero-section")[0].children[0]
        assert (heading.tag, heading.text) == ("h1", "Welcome")

    @pytest.mark.asyncio
    async def test_same_plan_twice_reuses_styles(self, relay: RelayClient) -> None:
        canvas = InMemoryCanvas()
        results: list[BuildResult] = []
        consumer = BuildQueueConsumer(
            "s1", relay, canvas, on_build_complete=lambda _item, result: results.append(result)
        )

        await relay.submit_plan(WELCOME_PLAN)
        await relay.submit_plan({**WELCOME_PLAN, "order": 2})
        await consumer.process_next()
        await consumer.process_next()

        assert [(r.styles_created, r.styles_skipped) for r in results] == [(1, 0), (0, 1)]
        assert all(r.success for r in results)
        assert len(canvas.find_by_class("hero-section")) == 2

    @pytest.mark.asyncio
    async def test_snapshot_round_trip(self, relay: RelayClient) -> None:
        canvas = InMemoryCanvas()
        consumer = BuildQueueConsumer(
            "s1", relay, canvas, snapshot_responder=SnapshotResponder("s1", relay, canvas)
        )

        await relay.submit_plan(WELCOME_PLAN)
        await consumer.tick()
        await relay.request_snapshot("s1")
        await consumer.tick()

        payload = await relay.fetch_snapshot("s1")
        assert payload is not None
        assert "DOM<section> .hero-section" in payload.summary
        assert 'DOM<h1> "Welcome"' in payload.summary
        assert payload.summary.endswith("hero-section")

    @pytest.mark.asyncio
    async def test_unknown_site_is_refused(self, relay: RelayClient) -> None:
        with pytest.raises(ItemNotFoundError):
            await relay.submit_plan({**WELCOME_PLAN, "siteId": "elsewhere"})
        with pytest.raises(ItemNotFoundError):
            await relay.list_items("elsewhere")
