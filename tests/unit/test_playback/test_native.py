"""Tests for the native (OpenCV) playback backend."""

from __future__ import annotations

import asyncio
import threading
from unittest.mock import MagicMock, patch

import cv2
import numpy as np
import pytest

from frameshop.capture.base import NO_DIMENSIONS, RENDER_ERROR, CaptureError
from frameshop.domain.models import PayloadKind, VideoSource
from frameshop.playback.base import PlaybackError
from frameshop.playback.native import MediaElement, NativePlayback


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_capture(
    fps: float = 25.0, frames: float = 250.0, width: int = 64, height: int = 48,
    opened: bool = True, frame: np.ndarray | None = None,
) -> MagicMock:
    props = {
        cv2.CAP_PROP_FPS: fps,
        cv2.CAP_PROP_FRAME_COUNT: frames,
        cv2.CAP_PROP_FRAME_WIDTH: width,
        cv2.CAP_PROP_FRAME_HEIGHT: height,
    }
    cap = MagicMock()
    cap.isOpened.return_value = opened
    cap.get.side_effect = lambda prop: props.get(prop, 0.0)
    if frame is None:
        frame = np.full((height, width, 3), 127, dtype=np.uint8)
    cap.read.return_value = (True, frame)
    return cap


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def playback(clock: FakeClock) -> NativePlayback:
    return NativePlayback(element_factory=lambda locator: MediaElement(locator, clock=clock))


class TestMediaElement:
    @pytest.mark.asyncio
    async def test_clock_advances_while_playing(self, clock: FakeClock) -> None:
        element = MediaElement("clip.mp4", clock=clock)
        with patch("frameshop.playback.native.cv2.VideoCapture", return_value=make_capture()):
            await element.open()
        assert element.duration == 10.0

        element.play()
        clock.advance(3.0)
        assert element.current_time == pytest.approx(3.0)
        element.pause()
        clock.advance(5.0)
        assert element.current_time == pytest.approx(3.0)

    @pytest.mark.asyncio
    async def test_time_is_capped_at_duration(self, clock: FakeClock) -> None:
        element = MediaElement("clip.mp4", clock=clock)
        with patch("frameshop.playback.native.cv2.VideoCapture", return_value=make_capture()):
            await element.open()
        element.play()
        clock.advance(60.0)
        assert element.current_time == 10.0
        assert element.ended

        element.pause()
        element.play()
        assert element.current_time == 0.0

    @pytest.mark.asyncio
    async def test_seek_clamps_and_dispatches(self, clock: FakeClock) -> None:
        element = MediaElement("clip.mp4", clock=clock)
        events: list[str] = []
        element.add_event_listener("seeked", lambda event, el: events.append(event))
        with patch("frameshop.playback.native.cv2.VideoCapture", return_value=make_capture()):
            await element.open()
        element.current_time = 99.0
        assert element.current_time == 10.0
        element.current_time = -1.0
        assert element.current_time == 0.0
        assert events == ["seeked", "seeked"]

    @pytest.mark.asyncio
    async def test_open_failure(self) -> None:
        element = MediaElement("missing.mp4")
        with patch(
            "frameshop.playback.native.cv2.VideoCapture",
            return_value=make_capture(opened=False),
        ):
            with pytest.raises(PlaybackError, match="Failed to open"):
                await element.open()

    @pytest.mark.asyncio
    async def test_close_waits_for_pending_read(self, clock: FakeClock) -> None:
        cap = make_capture()
        decoded_frame = cap.read.return_value
        decoding = threading.Event()
        finish = threading.Event()

        def slow_read():
            decoding.set()
            finish.wait(timeout=5)
            return decoded_frame

        cap.read.side_effect = slow_read
        element = MediaElement("clip.mp4", clock=clock)
        with patch("frameshop.playback.native.cv2.VideoCapture", return_value=cap):
            await element.open()

        read = asyncio.create_task(element.read_frame())
        assert await asyncio.to_thread(decoding.wait, 5)
        close = asyncio.create_task(element.close())
        await asyncio.sleep(0.05)
        cap.release.assert_not_called()

        finish.set()
        decoded = await read
        await close
        assert decoded is not None
        cap.release.assert_called_once()
        assert await element.read_frame() is None


class TestNativePlayback:
    @pytest.mark.asyncio
    async def test_load_marks_backend_ready(
        self, playback: NativePlayback, native_source: VideoSource,
    ) -> None:
        with patch("frameshop.playback.native.cv2.VideoCapture", return_value=make_capture()):
            await playback.load(native_source)
        state = playback.current_state()
        assert state.backend_ready
        assert state.duration_seconds == 10.0
        assert state.position_seconds == 0.0
        assert playback.source == native_source

    @pytest.mark.asyncio
    async def test_load_failure_leaves_nothing_loaded(
        self, playback: NativePlayback, native_source: VideoSource,
    ) -> None:
        with patch(
            "frameshop.playback.native.cv2.VideoCapture",
            return_value=make_capture(opened=False),
        ):
            with pytest.raises(PlaybackError):
                await playback.load(native_source)
        assert playback.source is None
        assert not playback.current_state().backend_ready

    @pytest.mark.asyncio
    async def test_state_follows_element_events(
        self, playback: NativePlayback, native_source: VideoSource, clock: FakeClock,
    ) -> None:
        with patch("frameshop.playback.native.cv2.VideoCapture", return_value=make_capture()):
            await playback.load(native_source)
        await playback.play()
        assert playback.current_state().playing
        clock.advance(2.0)
        await playback.seek_by(5.0)
        assert playback.current_state().position_seconds == pytest.approx(7.0)
        await playback.toggle_mute()
        assert playback.current_state().muted
        await playback.pause()
        assert not playback.current_state().playing

    @pytest.mark.asyncio
    async def test_controls_without_element_are_noops(self, playback: NativePlayback) -> None:
        await playback.play()
        await playback.seek_to(10)
        await playback.toggle_mute()
        assert playback.current_state().playing is False


class TestNativeSnapshot:
    @pytest.mark.asyncio
    async def test_snapshot_is_inline_jpeg(
        self, playback: NativePlayback, native_source: VideoSource,
    ) -> None:
        cap = make_capture()
        with patch("frameshop.playback.native.cv2.VideoCapture", return_value=cap):
            await playback.load(native_source)
            await playback.seek_to(4.0)
            payload = await playback.snapshot()
        assert payload.kind == PayloadKind.INLINE
        assert payload.data.startswith("data:image/jpeg;base64,")
        cap.set.assert_called_with(cv2.CAP_PROP_POS_MSEC, 4000.0)

    @pytest.mark.asyncio
    async def test_zero_dimensions(
        self, playback: NativePlayback, native_source: VideoSource,
    ) -> None:
        with patch(
            "frameshop.playback.native.cv2.VideoCapture",
            return_value=make_capture(width=0, height=0),
        ):
            await playback.load(native_source)
            with pytest.raises(CaptureError) as exc_info:
                await playback.snapshot()
        assert exc_info.value.reason == NO_DIMENSIONS

    @pytest.mark.asyncio
    async def test_undecodable_frame(
        self, playback: NativePlayback, native_source: VideoSource,
    ) -> None:
        cap = make_capture()
        cap.read.return_value = (False, None)
        with patch("frameshop.playback.native.cv2.VideoCapture", return_value=cap):
            await playback.load(native_source)
            with pytest.raises(CaptureError) as exc_info:
                await playback.snapshot()
        assert exc_info.value.reason == NO_DIMENSIONS

    @pytest.mark.asyncio
    async def test_decoder_exception_is_render_error(
        self, playback: NativePlayback, native_source: VideoSource,
    ) -> None:
        cap = make_capture()
        cap.read.side_effect = RuntimeError("decoder crashed")
        with patch("frameshop.playback.native.cv2.VideoCapture", return_value=cap):
            await playback.load(native_source)
            with pytest.raises(CaptureError) as exc_info:
                await playback.snapshot()
        assert exc_info.value.reason == RENDER_ERROR
