"""Frame Capture module for frameshop.

Turns the paused frame of the active playback backend into a payload
the classification service accepts: an encoded raster for native
playback, a thumbnail locator for embedded playback.

Public API:
    FrameCapture -- Pause-then-snapshot capture
    CaptureError -- Raised when no frame can be produced
"""

from frameshop.capture.base import CaptureError, FrameCapture

__all__ = ["CaptureError", "FrameCapture"]
