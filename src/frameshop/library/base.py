"""Abstract base class for library storage backends.

The library collaborator holds video records and saved scan results.
The viewer only relies on ``list`` returning records that map onto a
``VideoSource`` and on mutations being visible to the same session
right away; transport is up to the implementation.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from frameshop.library.models import NewVideo, ScannedProductRecord, VideoRecord

logger = logging.getLogger(__name__)


class LibraryStore(ABC):
    """Abstract interface for video and scanned-product records."""

    @abstractmethod
    async def list_videos(self) -> list[VideoRecord]:
        """All videos, newest first."""
        ...

    @abstractmethod
    async def get_video(self, video_id: str) -> VideoRecord | None:
        ...

    @abstractmethod
    async def insert_video(self, video: NewVideo) -> VideoRecord:
        ...

    @abstractmethod
    async def delete_video(self, video_id: str) -> None:
        """Delete a video and its scanned products."""
        ...

    @abstractmethod
    async def insert_scanned_products(
        self, records: list[ScannedProductRecord]
    ) -> list[ScannedProductRecord]:
        ...

    @abstractmethod
    async def list_scanned_products(self, video_id: str) -> list[ScannedProductRecord]:
        ...

    async def aclose(self) -> None:
        """Release transport resources."""


class LibraryError(Exception):
    """Raised when a library operation fails."""

    def __init__(self, message: str, backend: str = "") -> None:
        super().__init__(message)
        self.backend = backend


class VideoNotFoundError(LibraryError):
    """Raised when a video id is not in the library."""

    def __init__(self, video_id: str) -> None:
        super().__init__(f"Video not found: {video_id}")
        self.video_id = video_id
