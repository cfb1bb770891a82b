from typing import Protocol

from plinth.models import SnapshotPayload


class SnapshotChannel(Protocol):
    async def is_snapshot_pending(self, site_id: str) -> bool: ...

    async def submit_snapshot(self, site_id: str, payload: SnapshotPayload) -> None: ...
