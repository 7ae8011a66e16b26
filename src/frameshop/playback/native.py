"""Native playback backend using OpenCV.

Plays locally decoded media (a file path or a directly fetchable URL).
The ``MediaElement`` behaves like a browser media element: synchronous
transport controls, a monotonic playback clock, and events dispatched on
every meaningful transition. ``NativePlayback`` keeps its state in sync
purely by listening to those events.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections import defaultdict
from typing import Callable

import cv2
import numpy as np

from frameshop.capture.base import NO_DIMENSIONS, RENDER_ERROR, CaptureError
from frameshop.domain.models import FramePayload, PayloadKind, PlaybackState, VideoSource
from frameshop.playback.base import PlaybackError, PlaybackPort
from frameshop.utils.imaging import DEFAULT_JPEG_QUALITY, frame_dimensions, numpy_to_data_url

logger = logging.getLogger(__name__)

ELEMENT_EVENTS = ("loadedmetadata", "play", "pause", "seeked", "timeupdate", "volumechange")

EventListener = Callable[[str, "MediaElement"], None]


class MediaElement:
    """A decoded video with media-element semantics.

    OpenCV calls block, so they run in the default thread pool executor
    to keep the event loop responsive. Controls issued before ``open()``
    completes are accepted and simply act on an empty timeline.
    """

    def __init__(self, locator: str, clock: Callable[[], float] = time.monotonic) -> None:
        self._locator = locator
        self._clock = clock
        self._cap: cv2.VideoCapture | None = None
        # Guards the capture between decode and release threads.
        self._cap_lock = threading.Lock()
        self._listeners: dict[str, list[EventListener]] = defaultdict(list)
        self._duration = 0.0
        self._width = 0
        self._height = 0
        self._paused = True
        self._muted = False
        self._anchor_position = 0.0
        self._anchor_time = 0.0

    @property
    def locator(self) -> str:
        return self._locator

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def video_width(self) -> int:
        return self._width

    @property
    def video_height(self) -> int:
        return self._height

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def ended(self) -> bool:
        return not self._paused and self._duration > 0 and self.current_time >= self._duration

    @property
    def current_time(self) -> float:
        if self._paused:
            return self._anchor_position
        elapsed = self._clock() - self._anchor_time
        return min(self._duration, self._anchor_position + elapsed)

    @current_time.setter
    def current_time(self, seconds: float) -> None:
        self._anchor_position = max(0.0, min(self._duration, seconds))
        self._anchor_time = self._clock()
        self._dispatch("seeked")
        self._dispatch("timeupdate")

    @property
    def muted(self) -> bool:
        return self._muted

    @muted.setter
    def muted(self, value: bool) -> None:
        if value != self._muted:
            self._muted = value
            self._dispatch("volumechange")

    def add_event_listener(self, event: str, listener: EventListener) -> None:
        self._listeners[event].append(listener)

    def play(self) -> None:
        if not self._paused:
            return
        if self._duration > 0 and self._anchor_position >= self._duration:
            self._anchor_position = 0.0
        self._anchor_time = self._clock()
        self._paused = False
        self._dispatch("play")

    def pause(self) -> None:
        if self._paused:
            return
        self._anchor_position = self.current_time
        self._paused = True
        self._dispatch("pause")
        self._dispatch("timeupdate")

    async def open(self) -> None:
        """Open the media and read its metadata.

        Raises:
            PlaybackError: If OpenCV cannot open the locator.
        """
        loop = asyncio.get_running_loop()
        cap, fps, frame_count, width, height = await loop.run_in_executor(
            None, self._open_sync
        )
        self._cap = cap
        self._width = width
        self._height = height
        self._duration = frame_count / fps if fps > 0 and frame_count > 0 else 0.0
        logger.info(
            "Opened %s (%dx%d, %.1fs)", self._locator, width, height, self._duration
        )
        self._dispatch("loadedmetadata")

    def _open_sync(self) -> tuple[cv2.VideoCapture, float, float, int, int]:
        """Synchronous open (runs in thread pool)."""
        cap = cv2.VideoCapture(self._locator)
        if not cap.isOpened():
            cap.release()
            raise PlaybackError(f"Failed to open media {self._locator}", backend="native")
        return (
            cap,
            float(cap.get(cv2.CAP_PROP_FPS) or 0.0),
            float(cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0.0),
            int(cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0),
            int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0),
        )

    async def read_frame(self) -> np.ndarray | None:
        """Decode the frame at the current position, None if unavailable."""
        if self._cap is None:
            return None
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read_sync, self.current_time)

    def _read_sync(self, position: float) -> np.ndarray | None:
        """Synchronous seek-and-decode (runs in thread pool)."""
        with self._cap_lock:
            cap = self._cap
            if cap is None:
                return None
            cap.set(cv2.CAP_PROP_POS_MSEC, position * 1000.0)
            ret, frame = cap.read()
        if not ret or frame is None:
            return None
        return frame

    def _release_sync(self, cap: cv2.VideoCapture) -> None:
        """Release once any in-progress read has returned."""
        with self._cap_lock:
            cap.release()

    async def close(self) -> None:
        cap, self._cap = self._cap, None
        if cap is not None:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._release_sync, cap)
            logger.info("Released media %s", self._locator)
        self._paused = True
        self._listeners.clear()

    def _dispatch(self, event: str) -> None:
        for listener in list(self._listeners[event]):
            listener(event, self)


class NativePlayback(PlaybackPort):
    """Playback port over a locally decoded ``MediaElement``."""

    def __init__(
        self,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
        element_factory: Callable[[str], MediaElement] = MediaElement,
    ) -> None:
        super().__init__()
        self._jpeg_quality = jpeg_quality
        self._element_factory = element_factory
        self._element: MediaElement | None = None

    async def load(self, source: VideoSource) -> None:
        await self.close()
        element = self._element_factory(source.locator)
        for event in ELEMENT_EVENTS:
            element.add_event_listener(event, self._on_element_event)
        self._element = element
        self._source = source
        try:
            await element.open()
        except PlaybackError:
            self._element = None
            self._source = None
            raise
        logger.info("Native playback ready for %s", source.id)

    def _on_element_event(self, event: str, element: MediaElement) -> None:
        if element is not self._element:
            return
        update: dict[str, object] = {"position_seconds": element.current_time}
        if event == "loadedmetadata":
            update["duration_seconds"] = element.duration
            update["backend_ready"] = True
        elif event in ("play", "pause"):
            update["playing"] = not element.paused
        elif event == "volumechange":
            update["muted"] = element.muted
        self._state = self._state.model_copy(update=update)

    def current_state(self) -> PlaybackState:
        element = self._element
        if element is None or not self._state.backend_ready:
            return self._state
        return self._state.model_copy(
            update={
                "position_seconds": element.current_time,
                "playing": not element.paused and not element.ended,
            }
        )

    async def play(self) -> None:
        if self._element is not None:
            self._element.play()

    async def pause(self) -> None:
        if self._element is not None:
            self._element.pause()

    async def seek_to(self, seconds: float) -> None:
        if self._element is not None:
            self._element.current_time = seconds

    async def seek_by(self, delta_seconds: float) -> None:
        if self._element is not None:
            self._element.current_time = self._element.current_time + delta_seconds

    async def toggle_mute(self) -> None:
        if self._element is not None:
            self._element.muted = not self._element.muted

    async def snapshot(self) -> FramePayload:
        """Rasterize the current frame at native resolution."""
        element = self._element
        if element is None or element.video_width == 0 or element.video_height == 0:
            raise CaptureError("Video not loaded or has no dimensions", reason=NO_DIMENSIONS)
        try:
            frame = await element.read_frame()
        except Exception as e:
            raise CaptureError(f"Frame decode error: {e}", reason=RENDER_ERROR) from e
        width, height = frame_dimensions(frame)
        if width == 0 or height == 0:
            raise CaptureError("Decoded frame has no dimensions", reason=NO_DIMENSIONS)
        try:
            data = numpy_to_data_url(frame, self._jpeg_quality)
        except Exception as e:
            raise CaptureError(f"Frame encode error: {e}", reason=RENDER_ERROR) from e
        return FramePayload(kind=PayloadKind.INLINE, data=data)

    async def close(self) -> None:
        element, self._element = self._element, None
        if element is not None:
            await element.close()
        self._source = None
        self._state = PlaybackState()
