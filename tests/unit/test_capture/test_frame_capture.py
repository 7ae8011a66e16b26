"""Tests for single-frame capture."""

from __future__ import annotations

import pytest

from conftest import StubPlayback
from frameshop.capture.base import NO_DIMENSIONS, NOT_LOADED, RENDER_ERROR, CaptureError, FrameCapture
from frameshop.domain.models import FramePayload, PayloadKind, VideoSource


class TestFrameCapture:
    @pytest.mark.asyncio
    async def test_capture_pauses_and_records_position(
        self, stub_playback: StubPlayback, native_source: VideoSource,
    ) -> None:
        await stub_playback.load(native_source)
        await stub_playback.play()
        await stub_playback.seek_to(12.5)

        frame = await FrameCapture().capture(stub_playback)

        assert stub_playback.pause_calls == 1
        assert not stub_playback.current_state().playing
        assert frame.video_id == native_source.id
        assert frame.position_seconds == 12.5
        assert frame.kind == PayloadKind.INLINE
        assert not frame.is_url

    @pytest.mark.asyncio
    async def test_url_payload(self, embedded_source: VideoSource) -> None:
        playback = StubPlayback(
            payload=FramePayload(kind=PayloadKind.URL, data="https://img.example/thumb.jpg")
        )
        await playback.load(embedded_source)
        frame = await FrameCapture().capture(playback)
        assert frame.is_url
        assert frame.payload == "https://img.example/thumb.jpg"

    @pytest.mark.asyncio
    async def test_no_dimensions_propagates_after_pause(self, native_source: VideoSource) -> None:
        playback = StubPlayback(error=CaptureError("no size", reason=NO_DIMENSIONS))
        await playback.load(native_source)
        with pytest.raises(CaptureError) as exc_info:
            await FrameCapture().capture(playback)
        assert exc_info.value.reason == NO_DIMENSIONS
        assert playback.pause_calls == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_render_error(self, native_source: VideoSource) -> None:
        playback = StubPlayback(error=OSError("canvas tainted"))
        await playback.load(native_source)
        with pytest.raises(CaptureError) as exc_info:
            await FrameCapture().capture(playback)
        assert exc_info.value.reason == RENDER_ERROR

    @pytest.mark.asyncio
    async def test_nothing_loaded(self, stub_playback: StubPlayback) -> None:
        with pytest.raises(CaptureError) as exc_info:
            await FrameCapture().capture(stub_playback)
        assert exc_info.value.reason == NOT_LOADED
        assert stub_playback.pause_calls == 0
