"""Frame capture for scan attempts.

Produces one still image from whichever playback backend is active.
The backend is always paused first so the captured frame is the one the
user is looking at.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from frameshop.domain.models import CapturedFrame

if TYPE_CHECKING:
    from frameshop.playback.base import PlaybackPort

logger = logging.getLogger(__name__)

NO_DIMENSIONS = "no-dimensions"
RENDER_ERROR = "render-error"
NOT_LOADED = "not-loaded"


class FrameCapture:
    """Captures a single frame from a playback adapter.

    Example usage::

        frame = await FrameCapture().capture(playback)
        request = ClassificationRequest.from_frame(frame)
    """

    async def capture(self, playback: PlaybackPort) -> CapturedFrame:
        """Pause the backend and take a still of the current frame.

        Raises:
            CaptureError: If no frame could be produced. The ``reason``
                attribute is one of ``no-dimensions``, ``render-error``
                or ``not-loaded``.
        """
        source = playback.source
        if source is None:
            raise CaptureError("No video is loaded", reason=NOT_LOADED)

        await playback.pause()
        position = playback.current_state().position_seconds

        try:
            payload = await playback.snapshot()
        except CaptureError:
            raise
        except Exception as e:
            raise CaptureError(f"Frame rendering failed: {e}", reason=RENDER_ERROR) from e

        logger.debug(
            "Captured %s frame of %s at %.2fs", payload.kind.value, source.id, position
        )
        return CapturedFrame(
            video_id=source.id,
            payload=payload.data,
            kind=payload.kind,
            position_seconds=position,
        )


class CaptureError(Exception):
    """Raised when frame capture fails."""

    def __init__(self, message: str, reason: str = RENDER_ERROR) -> None:
        super().__init__(message)
        self.reason = reason
