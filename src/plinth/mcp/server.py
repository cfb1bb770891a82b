"""FastMCP server exposing the build queue and canvas snapshots."""

from __future__ import annotations

from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from plinth.config import Settings, load_settings
from plinth.core.errors import QueueError, ValidationError
from plinth.core.ports.store import CollectionStore
from plinth.core.queue import clear_queue as _clear_queue
from plinth.core.queue import enqueue_plan, list_queue
from plinth.core.snapshot import SnapshotBroker, wait_for_snapshot


def create_mcp_server(
    store: CollectionStore,
    broker: SnapshotBroker,
    settings: Settings | None = None,
) -> FastMCP:
    """Create a FastMCP server wired to the given queue store and snapshot broker."""

    settings = settings or load_settings()
    mcp = FastMCP("plinth", instructions="Queue BuildPlans for a canvas to build and inspect what it currently shows.")

    def _check_site(site_id: str) -> None:
        if not settings.knows_site(site_id):
            raise ToolError(f"Unknown site: {site_id}")

    @mcp.tool()
    async def queue_buildplan(plan: dict[str, Any]) -> dict[str, Any]:
        """Validate a BuildPlan and add it to its site's build queue.

        The canvas process polls the queue and builds the section. The plan must
        include version, siteId, sectionName and tree; order is assigned after
        the existing items when omitted.
        """
        site_id = plan.get("siteId")
        if isinstance(site_id, str) and site_id.strip():
            _check_site(site_id)
        try:
            await store.ensure_ready()
            item, built = await enqueue_plan(store, plan)
        except ValidationError as exc:
            raise ToolError(f"Validation error: {exc}") from exc
        except QueueError as exc:
            raise ToolError(f"Failed to write to queue: {exc}") from exc
        return {
            "itemId": item.id,
            "status": item.status.value,
            "siteId": built.site_id,
            "sectionName": built.section_name,
            "order": built.order,
        }

    @mcp.tool()
    async def get_queue_status(site_id: str) -> list[dict[str, Any]]:
        """List a site's queue items in build order.

        Statuses: pending (waiting), building (in progress), done (complete), error (failed).
        """
        _check_site(site_id)
        try:
            await store.ensure_ready()
            items = await list_queue(store, site_id)
        except QueueError as exc:
            raise ToolError(f"Failed to fetch queue: {exc}") from exc
        return [i.model_dump(mode="json", by_alias=True, exclude={"plan"}, exclude_none=True) for i in items]

    @mcp.tool()
    async def clear_queue(site_id: str) -> str:
        """Remove done and errored items from a site's build queue."""
        _check_site(site_id)
        try:
            await store.ensure_ready()
            result = await _clear_queue(store, site_id)
        except QueueError as exc:
            raise ToolError(f"Failed to fetch queue: {exc}") from exc
        if result.cleared == 0 and not result.errors:
            return "Queue already clean, no completed items to remove."
        if result.errors:
            return f"Cleared {result.cleared} items. {len(result.errors)} failed to delete."
        return f"Cleared {result.cleared} items."

    @mcp.tool()
    async def get_page_snapshot(site_id: str, timeout_s: float = 30.0) -> str:
        """Ask the canvas for a summary of its element tree and styles.

        Waits up to ``timeout_s`` seconds for the canvas process to answer on its
        next poll.
        """
        _check_site(site_id)
        stored = await wait_for_snapshot(broker, site_id, timeout_s=timeout_s)
        if stored is None:
            raise ToolError(
                f"No snapshot received for site {site_id} within {timeout_s:g}s. Is the canvas process running?"
            )
        header = ""
        if stored.payload.page_info is not None:
            header = f"Page: {stored.payload.page_info.name} ({stored.payload.page_info.id})\n\n"
        return header + stored.payload.summary

    @mcp.tool()
    async def health_check() -> dict[str, Any]:
        """Report whether the queue store is reachable."""
        up = await store.ping()
        return {"status": "ok" if up else "degraded", "database": "up" if up else "down"}

    return mcp
