"""Tests for the session-local video library."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from frameshop.domain.models import (
    BackendKind,
    OverlayPosition,
    Product,
    ScanSession,
    ScanStatus,
)
from frameshop.library.base import LibraryError, VideoNotFoundError
from frameshop.library.memory import InMemoryLibraryStore
from frameshop.library.models import VideoRecord
from frameshop.library.sync import VideoLibrary
from frameshop.playback.base import UnrecognizedSourceError


def succeeded_session(video_id: str = "v1") -> ScanSession:
    products = [
        Product(
            name="Navy Blue Blazer", category="Fashion", confidence=0.91234,
            purchase_url="https://www.amazon.com/s?k=Navy%20Blue%20Blazer",
            session_id="s1", ordinal=0, position=OverlayPosition(x=12, y=14),
        ),
    ]
    scanning = ScanSession(
        session_id="s1", video_id=video_id, status=ScanStatus.SCANNING, position_seconds=42.5,
    )
    return scanning.succeed(products, "Discovered 1 shoppable item.")


class TestVideoLibrary:
    @pytest.mark.asyncio
    async def test_added_video_appears_first_without_refetch(self) -> None:
        older = VideoRecord(
            id="old", title="Older", video_url="https://youtu.be/aaaaaaaaaaa",
            created_at=datetime.now(timezone.utc) - timedelta(days=1),
        )
        library = VideoLibrary(InMemoryLibraryStore([older]))
        await library.ensure_loaded()

        record = await library.add_video("  Street style  ", "https://youtu.be/dQw4w9WgXcQ")

        assert library.videos[0] == record
        assert record.title == "Street style"
        assert [v.id for v in library.videos] == [record.id, "old"]

    @pytest.mark.asyncio
    async def test_delete_removes_locally(self, library: VideoLibrary) -> None:
        record = await library.add_video("Clip", "https://youtu.be/dQw4w9WgXcQ")
        await library.delete_video(record.id)
        assert library.videos == ()
        with pytest.raises(VideoNotFoundError):
            await library.get(record.id)

    @pytest.mark.asyncio
    async def test_missing_fields_rejected(self, library: VideoLibrary) -> None:
        with pytest.raises(LibraryError, match="Missing fields"):
            await library.add_video("", "https://youtu.be/dQw4w9WgXcQ")
        with pytest.raises(LibraryError, match="Missing fields"):
            await library.add_video("Title", "   ")
        assert library.videos == ()

    @pytest.mark.asyncio
    async def test_unrecognized_watch_url_rejected(self, library: VideoLibrary) -> None:
        with pytest.raises(UnrecognizedSourceError):
            await library.add_video("Title", "https://example.com/watch")

    @pytest.mark.asyncio
    async def test_upload_urls_are_not_checked(self, library: VideoLibrary) -> None:
        record = await library.add_video("Upload", "/srv/videos/clip.mp4", source_type="upload")
        source = await library.source_for(record.id)
        assert source.backend_kind == BackendKind.NATIVE
        assert source.locator == "/srv/videos/clip.mp4"

    @pytest.mark.asyncio
    async def test_source_for_embedded(self, library: VideoLibrary) -> None:
        record = await library.add_video("Clip", "https://youtu.be/dQw4w9WgXcQ")
        source = await library.source_for(record.id)
        assert source.backend_kind == BackendKind.EMBEDDED
        assert source.title == "Clip"


class TestSaveScan:
    @pytest.mark.asyncio
    async def test_save_succeeded_scan(self, library: VideoLibrary) -> None:
        saved = await library.save_scan(succeeded_session("v1"))
        assert len(saved) == 1
        record = saved[0]
        assert record.product_name == "Navy Blue Blazer"
        assert record.confidence == 0.91
        assert record.frame_timestamp == 42.5
        assert record.id is not None
        assert await library.scanned_products("v1") == saved

    @pytest.mark.asyncio
    async def test_cannot_save_unfinished_scan(self, library: VideoLibrary) -> None:
        with pytest.raises(LibraryError, match="no results"):
            await library.save_scan(ScanSession(session_id="s", video_id="v1"))
