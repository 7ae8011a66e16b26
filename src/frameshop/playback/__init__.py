"""Playback Adapter module for frameshop.

Unifies the native (locally decoded) and embedded (third-party hosted)
video backends behind one playback contract. ``create_playback`` picks
the implementation for a source's backend kind so no caller has to.

Public API:
    PlaybackPort -- Abstract base class
    PlaybackError / UnrecognizedSourceError -- Playback failures
    NativePlayback -- OpenCV media element backend
    EmbeddedPlayback -- Poll-based hosted player backend
    create_playback -- Backend factory
    extract_video_id -- Watch-URL identifier extraction
"""

from frameshop.playback.base import PlaybackError, PlaybackPort, UnrecognizedSourceError
from frameshop.playback.factory import create_playback
from frameshop.playback.sources import extract_video_id, require_video_id, thumbnail_url

__all__ = [
    "EmbeddedPlayback",
    "NativePlayback",
    "PlaybackError",
    "PlaybackPort",
    "UnrecognizedSourceError",
    "create_playback",
    "extract_video_id",
    "require_video_id",
    "thumbnail_url",
]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "NativePlayback":
        from frameshop.playback.native import NativePlayback
        return NativePlayback
    if name == "EmbeddedPlayback":
        from frameshop.playback.embedded import EmbeddedPlayback
        return EmbeddedPlayback
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
