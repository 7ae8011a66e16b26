"""Third-party watch-URL parsing.

Embedded videos are stored by their watch URL, which users paste in
many shapes. Every shape resolves to the same 11-character identifier.
"""

from __future__ import annotations

import re

from frameshop.playback.base import UnrecognizedSourceError

_ID = r"([a-zA-Z0-9_-]{11})"

VIDEO_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"youtube\.com/watch\?v=" + _ID),
    re.compile(r"youtube\.com/watch\?(?:[^#]*&)?v=" + _ID),
    re.compile(r"youtu\.be/" + _ID),
    re.compile(r"youtube\.com/embed/" + _ID),
    re.compile(r"youtube\.com/v/" + _ID),
    re.compile(r"youtube\.com/shorts/" + _ID),
    re.compile(r"youtube\.com/live/" + _ID),
)

DEFAULT_THUMBNAIL_TEMPLATE = "https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


def extract_video_id(url: str) -> str | None:
    """Return the 11-character video identifier, or None if unrecognized."""
    for pattern in VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def require_video_id(url: str) -> str:
    """Like extract_video_id, but raise UnrecognizedSourceError on failure."""
    video_id = extract_video_id(url)
    if video_id is None:
        raise UnrecognizedSourceError(url, backend="embedded")
    return video_id


def thumbnail_url(video_id: str, template: str = DEFAULT_THUMBNAIL_TEMPLATE) -> str:
    """Highest-quality static thumbnail for an embedded video."""
    return template.format(video_id=video_id)
