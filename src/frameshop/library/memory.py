"""In-process library store."""

from __future__ import annotations

import logging
import uuid

from frameshop.library.base import LibraryStore
from frameshop.library.models import NewVideo, ScannedProductRecord, VideoRecord, utcnow

logger = logging.getLogger(__name__)


class InMemoryLibraryStore(LibraryStore):
    """Keeps records in dictionaries for the lifetime of the process."""

    def __init__(self, videos: list[VideoRecord] | None = None) -> None:
        self._videos: dict[str, VideoRecord] = {v.id: v for v in videos or []}
        self._products: dict[str, list[ScannedProductRecord]] = {}

    async def list_videos(self) -> list[VideoRecord]:
        return sorted(self._videos.values(), key=lambda v: v.created_at, reverse=True)

    async def get_video(self, video_id: str) -> VideoRecord | None:
        return self._videos.get(video_id)

    async def insert_video(self, video: NewVideo) -> VideoRecord:
        record = VideoRecord(id=str(uuid.uuid4()), **video.model_dump())
        self._videos[record.id] = record
        logger.debug("Inserted video %s (%s)", record.id, record.title)
        return record

    async def delete_video(self, video_id: str) -> None:
        self._videos.pop(video_id, None)
        self._products.pop(video_id, None)

    async def insert_scanned_products(
        self, records: list[ScannedProductRecord]
    ) -> list[ScannedProductRecord]:
        stored = []
        for record in records:
            saved = record.model_copy(
                update={"id": record.id or str(uuid.uuid4()), "created_at": utcnow()}
            )
            self._products.setdefault(record.video_id, []).append(saved)
            stored.append(saved)
        return stored

    async def list_scanned_products(self, video_id: str) -> list[ScannedProductRecord]:
        return list(self._products.get(video_id, []))
