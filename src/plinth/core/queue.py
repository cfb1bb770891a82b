import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from plinth.core.errors import ValidationError
from plinth.core.ports.store import CollectionStore
from plinth.core.validator import validate
from plinth.models import TERMINAL_STATUSES, BuildPlan, QueueItem

logger = logging.getLogger(__name__)


@dataclass
class ClearResult:
    cleared: int = 0
    errors: list[str] = field(default_factory=list)


async def _next_order(store: CollectionStore, site_id: str) -> int:
    try:
        existing = await store.list_items(site_id)
    except Exception as exc:
        logger.warning("Could not count queue items for site %s, defaulting order to 1: %s", site_id, exc)
        return 1
    return len(existing) + 1


async def enqueue_plan(store: CollectionStore, raw_plan: Any) -> tuple[QueueItem, BuildPlan]:
    """Validate a raw BuildPlan and add it to its site's queue as a pending item.

    A plan without ``order`` is placed after every item already queued for
    the site.
    """
    if not isinstance(raw_plan, Mapping):
        raise ValidationError("BuildPlan: must be an object", path="BuildPlan")

    document = dict(raw_plan)
    if document.get("order") is None and isinstance(document.get("siteId"), str) and document["siteId"].strip():
        document["order"] = await _next_order(store, document["siteId"])

    plan = validate(document)
    item = await store.create_item(plan.site_id, plan.section_name, json.dumps(document), plan.order)
    logger.info('Queued section "%s" for site %s at order %d', plan.section_name, plan.site_id, plan.order)
    return item, plan


async def list_queue(store: CollectionStore, site_id: str) -> list[QueueItem]:
    items = await store.list_items(site_id)
    return sorted(items, key=lambda i: i.order)


async def clear_queue(store: CollectionStore, site_id: str) -> ClearResult:
    """Delete every done or errored item of a site. Pending and building items stay."""
    items = await store.list_items(site_id)
    clearable = [i for i in items if i.status in TERMINAL_STATUSES]
    outcomes = await asyncio.gather(
        *(store.delete_item(site_id, i.id) for i in clearable),
        return_exceptions=True,
    )

    result = ClearResult()
    for item, outcome in zip(clearable, outcomes):
        if isinstance(outcome, BaseException):
            logger.error('Failed to delete queue item "%s": %s', item.name, outcome)
            result.errors.append(f"{item.id}: {outcome}")
        else:
            result.cleared += 1
    return result
