from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Query

from plinth.config import Settings, load_settings
from plinth.core.errors import UnknownSiteError
from plinth.core.ports.store import CollectionStore
from plinth.core.snapshot import SnapshotBroker
from plinth.db.engine import get_engine
from plinth.db.sql import SqlCollectionStore

_store: SqlCollectionStore | None = None
_broker = SnapshotBroker()


async def get_store() -> AsyncIterator[CollectionStore]:
    """Yield a ``CollectionStore`` instance, creating it lazily on first call."""
    global _store  # noqa: PLW0603
    if _store is None:
        _store = SqlCollectionStore(get_engine(load_settings().database_url))
    yield _store


def get_broker() -> SnapshotBroker:
    return _broker


def get_settings() -> Settings:
    return load_settings()


def site_id_param(
    site_id: str = Query(..., alias="siteId", min_length=1),
    settings: Settings = Depends(get_settings),
) -> str:
    if not settings.knows_site(site_id):
        raise UnknownSiteError(site_id)
    return site_id


async def shutdown_store() -> None:
    global _store  # noqa: PLW0603
    if _store is not None:
        await _store.dispose()
        _store = None
