"""One video view: open, control, scan, close.

The viewer session owns the playback adapter for the video on screen
and keeps the scan orchestrator bound to it. Opening another video
tears the previous adapter down first, so no poll task or player
outlives the view that created it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from pydantic import BaseModel, ConfigDict

from frameshop.domain.models import BackendKind, PlaybackState, ScanSession, VideoSource
from frameshop.library.models import ScannedProductRecord
from frameshop.library.sync import VideoLibrary
from frameshop.playback.base import PlaybackError, PlaybackPort
from frameshop.scan.orchestrator import ScanOrchestrator, ScanView

logger = logging.getLogger(__name__)

PlaybackFactory = Callable[[BackendKind], PlaybackPort]


class ViewerSnapshot(BaseModel):
    """Everything the UI needs to render the player page."""

    model_config = ConfigDict(frozen=True)

    source: VideoSource | None
    playback: PlaybackState
    scan: ScanView


class ViewerSession:
    """Coordinates library lookup, playback and scanning for one view."""

    def __init__(
        self,
        library: VideoLibrary,
        orchestrator: ScanOrchestrator,
        playback_factory: PlaybackFactory,
        seek_step: float = 10.0,
    ) -> None:
        self._library = library
        self._orchestrator = orchestrator
        self._playback_factory = playback_factory
        self._seek_step = seek_step
        self._playback: PlaybackPort | None = None
        self._source: VideoSource | None = None
        # Serializes open/close so a slow load cannot orphan another adapter.
        self._lock = asyncio.Lock()

    @property
    def source(self) -> VideoSource | None:
        return self._source

    @property
    def library(self) -> VideoLibrary:
        return self._library

    @property
    def playback(self) -> PlaybackPort | None:
        return self._playback

    @property
    def seek_step(self) -> float:
        return self._seek_step

    async def open(self, video_id: str) -> VideoSource:
        """Show a library video, replacing whatever was open.

        Raises:
            VideoNotFoundError: If the id is not in the library.
            UnrecognizedSourceError: If the video's locator cannot be
                played; nothing is left open.
            PlaybackError: If the backend fails to initialize.
        """
        source = await self._library.source_for(video_id)
        async with self._lock:
            await self._close()

            playback = self._playback_factory(source.backend_kind)
            try:
                await playback.load(source)
            except PlaybackError:
                await playback.close()
                logger.warning("Cannot play video %s (%s)", source.id, source.locator)
                raise

            self._playback = playback
            self._source = source
            self._orchestrator.bind(playback, source)
        logger.info("Opened video %s (%s, %s)", source.id, source.title, source.backend_kind.value)
        return source

    async def close(self) -> None:
        """Tear down the current view."""
        async with self._lock:
            await self._close()

    async def _close(self) -> None:
        # Caller holds self._lock.
        playback, self._playback = self._playback, None
        self._source = None
        self._orchestrator.bind(None, None)
        if playback is not None:
            await playback.close()

    def snapshot(self) -> ViewerSnapshot:
        return ViewerSnapshot(
            source=self._source,
            playback=self._playback.current_state() if self._playback else PlaybackState(),
            scan=self._orchestrator.view(),
        )

    async def play(self) -> None:
        if self._playback is not None:
            await self._playback.play()

    async def pause(self) -> None:
        if self._playback is not None:
            await self._playback.pause()

    async def toggle_play(self) -> None:
        if self._playback is not None:
            await self._playback.toggle_play()

    async def seek_by(self, delta_seconds: float) -> None:
        if self._playback is not None:
            await self._playback.seek_by(delta_seconds)

    async def seek_to(self, seconds: float) -> None:
        if self._playback is not None:
            await self._playback.seek_to(seconds)

    async def skip_forward(self) -> None:
        await self.seek_by(self._seek_step)

    async def skip_back(self) -> None:
        await self.seek_by(-self._seek_step)

    async def toggle_mute(self) -> None:
        if self._playback is not None:
            await self._playback.toggle_mute()

    async def scan(self) -> ScanSession:
        return await self._orchestrator.scan()

    def dismiss_results(self) -> bool:
        return self._orchestrator.dismiss_results()

    async def save_results(self) -> list[ScannedProductRecord]:
        return await self._library.save_scan(self._orchestrator.session)

    async def aclose(self) -> None:
        await self.close()
        await self._orchestrator.aclose()
        await self._library.aclose()
