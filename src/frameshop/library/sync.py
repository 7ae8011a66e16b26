"""In-memory view of the video library.

Keeps the session's list of videos consistent with the remote store:
every successful mutation is reflected locally before the call returns,
so the session always reads its own writes without refetching.
"""

from __future__ import annotations

import logging

from frameshop.domain.models import ScanSession, ScanStatus, VideoSource
from frameshop.library.base import LibraryError, LibraryStore, VideoNotFoundError
from frameshop.library.models import NewVideo, ScannedProductRecord, SourceType, VideoRecord
from frameshop.playback.sources import require_video_id

logger = logging.getLogger(__name__)


class VideoLibrary:
    """Session-local cache over a ``LibraryStore``."""

    def __init__(self, store: LibraryStore) -> None:
        self._store = store
        self._videos: list[VideoRecord] = []
        self._loaded = False

    @property
    def videos(self) -> tuple[VideoRecord, ...]:
        return tuple(self._videos)

    async def refresh(self) -> tuple[VideoRecord, ...]:
        """Replace the local list with the store's."""
        self._videos = await self._store.list_videos()
        self._loaded = True
        logger.debug("Library refreshed: %d videos", len(self._videos))
        return self.videos

    async def ensure_loaded(self) -> tuple[VideoRecord, ...]:
        if not self._loaded:
            await self.refresh()
        return self.videos

    async def get(self, video_id: str) -> VideoRecord:
        """Look a video up locally, then in the store.

        Raises:
            VideoNotFoundError: If the video does not exist.
        """
        for video in self._videos:
            if video.id == video_id:
                return video
        record = await self._store.get_video(video_id)
        if record is None:
            raise VideoNotFoundError(video_id)
        return record

    async def source_for(self, video_id: str) -> VideoSource:
        return (await self.get(video_id)).to_source()

    async def add_video(
        self,
        title: str,
        video_url: str,
        source_type: SourceType = "youtube",
        description: str | None = None,
    ) -> VideoRecord:
        """Insert a video and show it at the top of the list.

        Raises:
            LibraryError: If the title or URL is missing.
            UnrecognizedSourceError: If an embedded URL is not recognized.
        """
        title = title.strip()
        video_url = video_url.strip()
        if not title or not video_url:
            raise LibraryError("Missing fields: please provide both a title and a URL")
        if source_type == "youtube":
            require_video_id(video_url)

        record = await self._store.insert_video(
            NewVideo(
                title=title,
                video_url=video_url,
                source_type=source_type,
                description=description,
            )
        )
        self._videos.insert(0, record)
        logger.info("Added video %s (%s)", record.id, record.title)
        return record

    async def delete_video(self, video_id: str) -> None:
        await self._store.delete_video(video_id)
        self._videos = [v for v in self._videos if v.id != video_id]
        logger.info("Deleted video %s", video_id)

    async def save_scan(self, session: ScanSession) -> list[ScannedProductRecord]:
        """Persist the products of a succeeded scan."""
        if session.status != ScanStatus.SUCCEEDED or session.video_id is None:
            raise LibraryError(f"Scan {session.session_id} has no results to save")
        records = [
            ScannedProductRecord(
                video_id=session.video_id,
                product_name=p.name,
                category=p.category,
                search_url=p.purchase_url,
                confidence=round(p.confidence, 2),
                frame_timestamp=session.position_seconds,
            )
            for p in session.products
        ]
        saved = await self._store.insert_scanned_products(records)
        logger.info("Saved %d products from scan %s", len(saved), session.session_id)
        return saved

    async def scanned_products(self, video_id: str) -> list[ScannedProductRecord]:
        return await self._store.list_scanned_products(video_id)

    async def aclose(self) -> None:
        await self._store.aclose()
