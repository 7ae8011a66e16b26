"""Abstract base class for playback backends.

Both playback backends (the locally decoded media element and the
third-party embedded player) conform to this interface, so the viewer
and the scan orchestrator never branch on which one is active.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from frameshop.domain.models import FramePayload, PlaybackState, VideoSource

logger = logging.getLogger(__name__)


class PlaybackPort(ABC):
    """Abstract interface for controlling one video on one backend.

    Implementations own the backend resources for the loaded source and
    must release them in ``close()``. The state snapshot is replaced,
    never mutated, on every backend event, poll or transport command.

    Example usage::

        async with EmbeddedPlayback(loader=loader) as playback:
            await playback.load(source)
            await playback.play()
            print(playback.current_state().position_seconds)
    """

    def __init__(self) -> None:
        self._source: VideoSource | None = None
        self._state = PlaybackState()

    @property
    def source(self) -> VideoSource | None:
        """The currently loaded source, if any."""
        return self._source

    @abstractmethod
    async def load(self, source: VideoSource) -> None:
        """Load a source, releasing whatever was loaded before.

        Raises:
            UnrecognizedSourceError: If the locator cannot be played.
            PlaybackError: If the backend cannot be initialized.
        """
        ...

    @abstractmethod
    async def play(self) -> None:
        ...

    @abstractmethod
    async def pause(self) -> None:
        """Pause playback. Idempotent if already paused."""
        ...

    @abstractmethod
    async def seek_to(self, seconds: float) -> None:
        """Seek to an absolute position, clamped to the media duration."""
        ...

    @abstractmethod
    async def seek_by(self, delta_seconds: float) -> None:
        """Seek relative to the current position, never before zero."""
        ...

    @abstractmethod
    async def toggle_mute(self) -> None:
        ...

    @abstractmethod
    async def snapshot(self) -> FramePayload:
        """Produce a still image of the current frame.

        Raises:
            CaptureError: If no still can be produced.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the backend. Safe to call multiple times."""
        ...

    def current_state(self) -> PlaybackState:
        """Read-only snapshot of the playback state."""
        return self._state

    async def toggle_play(self) -> None:
        """Play if paused, pause if playing."""
        if self.current_state().playing:
            await self.pause()
        else:
            await self.play()

    async def __aenter__(self) -> PlaybackPort:
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        """Async context manager exit -- releases the backend."""
        await self.close()


class PlaybackError(Exception):
    """Raised when a playback backend cannot be initialized or driven."""

    def __init__(self, message: str, backend: str = "") -> None:
        super().__init__(message)
        self.backend = backend


class UnrecognizedSourceError(PlaybackError):
    """Raised when a video locator matches none of the known forms.

    Fatal for that video only: playback cannot proceed.
    """

    def __init__(self, locator: str, backend: str = "") -> None:
        super().__init__(f"Unrecognized video source: {locator!r}", backend=backend)
        self.locator = locator
