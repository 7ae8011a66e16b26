"""REST library store.

Talks to a PostgREST-style API (``/rest/v1/<table>``) such as the one a
managed Postgres backend exposes, authenticating with an API key.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from frameshop.library.base import LibraryError, LibraryStore
from frameshop.library.models import NewVideo, ScannedProductRecord, VideoRecord

logger = logging.getLogger(__name__)


class RestLibraryStore(LibraryStore):
    """Library records over a PostgREST-compatible HTTP API."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Prefer": "return=representation"}
            if self._api_key:
                headers["apikey"] = self._api_key
                headers["Authorization"] = f"Bearer {self._api_key}"
            self._client = httpx.AsyncClient(
                base_url=f"{self._base_url}/rest/v1", timeout=self._timeout, headers=headers
            )
        return self._client

    async def list_videos(self) -> list[VideoRecord]:
        rows = await self._request(
            "GET", "/videos", params={"select": "*", "order": "created_at.desc"}
        )
        return [VideoRecord.model_validate(row) for row in rows]

    async def get_video(self, video_id: str) -> VideoRecord | None:
        rows = await self._request(
            "GET", "/videos", params={"select": "*", "id": f"eq.{video_id}"}
        )
        return VideoRecord.model_validate(rows[0]) if rows else None

    async def insert_video(self, video: NewVideo) -> VideoRecord:
        rows = await self._request(
            "POST", "/videos", json=video.model_dump(exclude_none=True)
        )
        if not rows:
            raise LibraryError("Insert returned no row", backend="rest")
        return VideoRecord.model_validate(rows[0])

    async def delete_video(self, video_id: str) -> None:
        await self._request("DELETE", "/videos", params={"id": f"eq.{video_id}"})

    async def insert_scanned_products(
        self, records: list[ScannedProductRecord]
    ) -> list[ScannedProductRecord]:
        if not records:
            return []
        payload = [r.model_dump(exclude_none=True, mode="json") for r in records]
        rows = await self._request("POST", "/scanned_products", json=payload)
        return [ScannedProductRecord.model_validate(row) for row in rows]

    async def list_scanned_products(self, video_id: str) -> list[ScannedProductRecord]:
        rows = await self._request(
            "GET",
            "/scanned_products",
            params={"select": "*", "video_id": f"eq.{video_id}", "order": "created_at.desc"},
        )
        return [ScannedProductRecord.model_validate(row) for row in rows]

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> list[dict[str, Any]]:
        client = self._ensure_client()
        try:
            resp = await client.request(method, path, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise LibraryError(f"{method} {path} failed: {e}", backend="rest") from e
        if not resp.content:
            return []
        body = resp.json()
        return body if isinstance(body, list) else [body]
