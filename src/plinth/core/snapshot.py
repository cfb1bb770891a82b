"""On-demand canvas snapshots, requested and answered over polling.

Flow:

1. A requester calls ``SnapshotBroker.request(site_id)``, marking the site
   pending.
2. On every consumer tick the canvas-holding process runs
   ``SnapshotResponder.respond_if_pending``; when the site is pending it
   captures the canvas and submits the payload, which clears the flag.
3. The requester polls ``SnapshotBroker.get(site_id)`` (see
   ``wait_for_snapshot``) until the payload arrives.

Pending requests expire after ``REQUEST_TTL_S``; submitted snapshots go stale
after ``SNAPSHOT_TTL_S``.
"""

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TypeVar

from plinth.core.ports.canvas import Canvas, CanvasElement
from plinth.core.ports.snapshot import SnapshotChannel
from plinth.models import PageInfo, SnapshotPayload

logger = logging.getLogger(__name__)

REQUEST_TTL_S = 90.0
SNAPSHOT_TTL_S = 300.0

MAX_DEPTH = 5
MAX_CHILDREN = 10
_MAX_TEXT = 80
_WHITESPACE_RE = re.compile(r"\s+")

T = TypeVar("T")


@dataclass(frozen=True)
class StoredSnapshot:
    timestamp: float
    payload: SnapshotPayload
    captured_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SnapshotBroker:
    """Per-site pending flags and cached snapshots, kept in process memory."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._pending: dict[str, float] = {}
        self._snapshots: dict[str, StoredSnapshot] = {}

    def request(self, site_id: str) -> None:
        self._pending[site_id] = self._clock()
        # Drop the previous snapshot so the requester waits for a fresh one.
        self._snapshots.pop(site_id, None)

    def is_pending(self, site_id: str) -> bool:
        requested_at = self._pending.get(site_id)
        if requested_at is None:
            return False
        if self._clock() - requested_at >= REQUEST_TTL_S:
            del self._pending[site_id]
            return False
        return True

    def submit(self, site_id: str, payload: SnapshotPayload) -> StoredSnapshot:
        stored = StoredSnapshot(timestamp=self._clock(), payload=payload)
        self._snapshots[site_id] = stored
        self._pending.pop(site_id, None)
        return stored

    def get(self, site_id: str) -> StoredSnapshot | None:
        stored = self._snapshots.get(site_id)
        if stored is None:
            return None
        if self._clock() - stored.timestamp > SNAPSHOT_TTL_S:
            del self._snapshots[site_id]
            return None
        return stored


class BrokerSnapshotChannel:
    """``SnapshotChannel`` for a responder living in the same process as the broker."""

    def __init__(self, broker: SnapshotBroker) -> None:
        self._broker = broker

    async def is_snapshot_pending(self, site_id: str) -> bool:
        return self._broker.is_pending(site_id)

    async def submit_snapshot(self, site_id: str, payload: SnapshotPayload) -> None:
        self._broker.submit(site_id, payload)


def _describe_text(text: str | None) -> str:
    if not text:
        return ""
    collapsed = _WHITESPACE_RE.sub(" ", text.strip())
    if not collapsed:
        return ""
    suffix = "..." if len(collapsed) > _MAX_TEXT else ""
    return f' "{collapsed[:_MAX_TEXT]}{suffix}"'


async def _read(el: CanvasElement, what: str, read: Callable[[], Awaitable[T]], fallback: T) -> T:
    try:
        return await read()
    except Exception as exc:
        logger.debug("Could not read %s of %s element: %s", what, el.type, exc)
        return fallback


async def _traverse(el: CanvasElement, depth: int, style_names: dict[str, str], lines: list[str]) -> None:
    indent = "  " * depth

    label = el.type or "?"
    tag = await _read(el, "tag", el.get_tag, None)
    if tag:
        label += f"<{tag}>"

    classes = ""
    applied = await _read(el, "styles", el.get_styles, [])
    if applied:
        names = [style_names.get(s.id) or await _read(el, "style name", s.get_name, "?") for s in applied]
        classes = " ." + ".".join(names)

    text = await _read(el, "text", el.get_text, None)
    lines.append(f"{indent}{label}{classes}{_describe_text(text)}")

    if depth >= MAX_DEPTH:
        return

    # An unreadable child list only drops this element's subtree.
    children = await _read(el, "children", el.get_children, [])
    for child in children[:MAX_CHILDREN]:
        await _traverse(child, depth + 1, style_names, lines)
    if len(children) > MAX_CHILDREN:
        lines.append(f"{indent}  ... ({len(children) - MAX_CHILDREN} more)")


async def capture_snapshot(canvas: Canvas) -> SnapshotPayload:
    """Summarize the canvas tree and the names of all defined styles."""
    page_info: PageInfo | None = None
    try:
        page_info = await canvas.get_current_page()
    except Exception as exc:
        logger.warning("Could not read current page: %s", exc)

    style_names: dict[str, str] = {}
    try:
        for style in await canvas.get_all_styles():
            style_names[style.id] = await style.get_name()
    except Exception as exc:
        logger.warning("Could not list styles: %s", exc)

    lines: list[str] = []
    try:
        root = await canvas.get_root_element()
        if root is not None:
            await _traverse(root, 0, style_names, lines)
        else:
            lines.append("(no root element, is a page open?)")
    except Exception as exc:
        lines.append(f"(error traversing canvas: {exc})")

    if style_names:
        lines.append("")
        lines.append("Site styles:")
        lines.append(", ".join(sorted(style_names.values())))

    return SnapshotPayload(summary="\n".join(lines), page_info=page_info)


class SnapshotResponder:
    """Answers pending snapshot requests for one site from the poll tick."""

    def __init__(self, site_id: str, channel: SnapshotChannel, canvas: Canvas) -> None:
        self.site_id = site_id
        self._channel = channel
        self._canvas = canvas

    async def respond_if_pending(self) -> bool:
        """Capture and submit a snapshot when one is pending.

        Returns True when a snapshot was submitted. Failures are logged and
        never propagate into the poll loop.
        """
        try:
            if not await self._channel.is_snapshot_pending(self.site_id):
                return False
            payload = await capture_snapshot(self._canvas)
            await self._channel.submit_snapshot(self.site_id, payload)
        except Exception as exc:
            logger.warning("Snapshot for site %s failed: %s", self.site_id, exc)
            return False
        logger.info("Submitted canvas snapshot for site %s", self.site_id)
        return True


async def wait_for_snapshot(
    broker: SnapshotBroker,
    site_id: str,
    timeout_s: float = 30.0,
    interval_s: float = 1.0,
) -> StoredSnapshot | None:
    """Request a snapshot and poll the broker until it arrives or ``timeout_s`` passes."""
    broker.request(site_id)
    deadline = time.monotonic() + timeout_s
    while True:
        stored = broker.get(site_id)
        if stored is not None:
            return stored
        if time.monotonic() >= deadline:
            return None
        await asyncio.sleep(interval_s)
