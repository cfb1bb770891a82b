"""Async HTTP client for the relay API.

``RelayClient`` satisfies the ``QueueStore`` and ``SnapshotChannel`` ports, so
a build consumer can run in a different process than the relay.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

import httpx

from plinth.config import DEFAULT_RELAY_URL
from plinth.core.errors import ItemNotFoundError, QueueError, ValidationError
from plinth.models import QueueItem, QueueStatus, SnapshotPayload

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or body)
    return str(body)


class RelayClient:
    def __init__(
        self,
        base_url: str = DEFAULT_RELAY_URL,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=httpx.Timeout(timeout_s))

    async def __aenter__(self) -> RelayClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            raise QueueError(f"Relay request {method} {path} failed: {exc}") from exc
        if response.status_code == 404:
            raise ItemNotFoundError(_error_message(response))
        if response.status_code == 400:
            raise ValidationError(_error_message(response))
        if response.is_error:
            raise QueueError(f"Relay returned {response.status_code}: {_error_message(response)}")
        return response

    # --- QueueStore ---

    async def list_items(self, site_id: str) -> list[QueueItem]:
        response = await self._request("GET", "/status", params={"siteId": site_id})
        return [QueueItem.model_validate(row) for row in response.json()]

    async def get_item(self, site_id: str, item_id: str) -> QueueItem:
        response = await self._request("GET", f"/status/{item_id}", params={"siteId": site_id})
        return QueueItem.model_validate(response.json())

    async def update_item(
        self,
        site_id: str,
        item_id: str,
        status: QueueStatus,
        error_message: str | None = None,
    ) -> None:
        body: dict[str, Any] = {"status": status.value}
        if error_message is not None:
            body["errorMessage"] = error_message
        await self._request("PATCH", f"/status/{item_id}", params={"siteId": site_id}, json=body)

    # --- SnapshotChannel ---

    async def is_snapshot_pending(self, site_id: str) -> bool:
        response = await self._request("GET", "/snapshot/pending", params={"siteId": site_id})
        return bool(response.json().get("pending"))

    async def submit_snapshot(self, site_id: str, payload: SnapshotPayload) -> None:
        await self._request(
            "POST",
            "/snapshot",
            params={"siteId": site_id},
            json=payload.model_dump(mode="json", by_alias=True),
        )

    # --- Producer side ---

    async def submit_plan(self, plan: dict[str, Any]) -> dict[str, Any]:
        response = await self._request("POST", "/queue", json=plan)
        result: dict[str, Any] = response.json()
        return result

    async def clear_queue(self, site_id: str) -> int:
        response = await self._request("POST", "/queue/clear", params={"siteId": site_id})
        return int(response.json().get("cleared", 0))

    async def request_snapshot(self, site_id: str) -> None:
        await self._request("POST", "/snapshot/request", params={"siteId": site_id})

    async def fetch_snapshot(self, site_id: str) -> SnapshotPayload | None:
        try:
            response = await self._request("GET", "/snapshot", params={"siteId": site_id})
        except ItemNotFoundError:
            return None
        return SnapshotPayload.model_validate(response.json())

    async def ping(self) -> bool:
        try:
            await self._request("GET", "/healthz/live")
        except QueueError:
            return False
        return True
