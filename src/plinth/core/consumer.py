import asyncio
import contextlib
import json
import logging
from collections.abc import Callable

from plinth.core.errors import ExecutionError, ParseError, QueueError
from plinth.core.executor import execute_build_plan
from plinth.core.ports.canvas import Canvas
from plinth.core.ports.store import QueueStore
from plinth.core.snapshot import SnapshotResponder
from plinth.models import BuildResult, QueueItem, QueueStatus

logger = logging.getLogger(__name__)

POLL_INTERVAL_S = 5.0


class BuildQueueConsumer:
    """Poll a site's build queue and build one pending item per tick.

    Items move ``pending -> building -> done | error``. Only the pending item
    with the lowest ``order`` is taken on each tick, and the next tick does not
    start before the current one finishes, so at most one build touches the
    canvas at a time.
    """

    def __init__(
        self,
        site_id: str,
        store: QueueStore,
        canvas: Canvas,
        snapshot_responder: SnapshotResponder | None = None,
        poll_interval_s: float = POLL_INTERVAL_S,
        on_status_change: Callable[[list[QueueItem]], None] | None = None,
        on_build_start: Callable[[QueueItem], None] | None = None,
        on_build_complete: Callable[[QueueItem, BuildResult], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        on_progress: Callable[[str], None] | None = None,
    ) -> None:
        self.site_id = site_id
        self._store = store
        self._canvas = canvas
        self._snapshot_responder = snapshot_responder
        self._poll_interval_s = poll_interval_s
        self._on_status_change = on_status_change
        self._on_build_start = on_build_start
        self._on_build_complete = on_build_complete
        self._on_error = on_error
        self._on_progress = on_progress
        self._running = False
        self._wakeup = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._wakeup.clear()
        self._task = asyncio.create_task(self._loop())
        logger.info("Build queue consumer started for site %s", self.site_id)

    async def stop(self) -> None:
        """Stop polling. A tick already in progress runs to completion first."""
        self._running = False
        self._wakeup.set()
        if self._task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Build queue consumer stopped for site %s", self.site_id)

    async def _loop(self) -> None:
        while self._running:
            await self.tick()
            if not self._running:
                break
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._wakeup.wait(), timeout=self._poll_interval_s)

    async def tick(self) -> QueueItem | None:
        """Answer a pending snapshot request, then process the next queue item."""
        if self._snapshot_responder is not None:
            await self._snapshot_responder.respond_if_pending()
        try:
            return await self.process_next()
        except Exception as exc:
            logger.exception("Unexpected error in build queue tick")
            self._report_error(exc)
            return None

    async def process_next(self) -> QueueItem | None:
        """Build the pending item with the lowest ``order``.

        Returns the item in its terminal state, or None when nothing was
        pending or the queue could not be read.
        """
        try:
            items = await self._store.list_items(self.site_id)
        except Exception as exc:
            self._report_error(QueueError(f"Failed to fetch queue items: {exc}"))
            return None

        self._notify_status_change(items)

        pending = sorted((i for i in items if i.status is QueueStatus.PENDING), key=lambda i: i.order)
        if not pending:
            return None

        item = pending[0]
        final: QueueItem
        try:
            await self._store.update_item(self.site_id, item.id, QueueStatus.BUILDING)
            building = item.model_copy(update={"status": QueueStatus.BUILDING, "error_message": None})
            logger.info('Building queue item "%s" (%s)', item.name, item.id)
            if self._on_build_start:
                self._on_build_start(building)
            await self._refresh()

            full_item = await self._store.get_item(self.site_id, item.id)
            try:
                plan = json.loads(full_item.plan or "")
            except json.JSONDecodeError:
                raise ParseError(f'Failed to parse BuildPlan JSON for "{item.name}": invalid JSON') from None

            result = await execute_build_plan(plan, self._canvas, self._on_progress)
            if not result.success:
                raise ExecutionError(result.error or "Build failed with no error message")

            await self._store.update_item(self.site_id, item.id, QueueStatus.DONE)
            final = building.model_copy(update={"status": QueueStatus.DONE})
            logger.info('Queue item "%s" done', item.name)
            if self._on_build_complete:
                self._on_build_complete(final, result)
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            logger.error('Queue item "%s" failed: %s', item.name, message)
            try:
                await self._store.update_item(self.site_id, item.id, QueueStatus.ERROR, message)
            except Exception as status_exc:
                logger.warning('Could not record error status for "%s": %s', item.name, status_exc)
            final = item.model_copy(update={"status": QueueStatus.ERROR, "error_message": message})
            self._report_error(exc)

        await self._refresh()
        return final

    async def _refresh(self) -> None:
        try:
            items = await self._store.list_items(self.site_id)
        except Exception as exc:
            logger.debug("Queue refresh failed: %s", exc)
            return
        self._notify_status_change(items)

    def _notify_status_change(self, items: list[QueueItem]) -> None:
        if self._on_status_change:
            self._on_status_change(items)

    def _report_error(self, error: Exception) -> None:
        if self._on_error:
            self._on_error(error)
