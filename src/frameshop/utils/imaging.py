"""Image encoding utilities for frameshop.

Shared encoding helpers used by the native playback backend when a
decoded frame has to travel to the classification service.
"""

from __future__ import annotations

import base64
import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 80


def numpy_to_base64_jpeg(image: np.ndarray, quality: int = DEFAULT_JPEG_QUALITY) -> str:
    """Convert a numpy image array (BGR, OpenCV format) to base64 JPEG."""
    success, buffer = cv2.imencode(".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not success:
        raise ValueError("Failed to encode image to JPEG")
    return base64.b64encode(buffer.tobytes()).decode("utf-8")


def numpy_to_data_url(image: np.ndarray, quality: int = DEFAULT_JPEG_QUALITY) -> str:
    """Encode a frame as a ``data:image/jpeg;base64,...`` URL."""
    return f"data:image/jpeg;base64,{numpy_to_base64_jpeg(image, quality)}"


def frame_dimensions(image: np.ndarray | None) -> tuple[int, int]:
    """Return (width, height) of a frame, (0, 0) for a missing frame."""
    if image is None or image.size == 0:
        return 0, 0
    h, w = image.shape[:2]
    return w, h
