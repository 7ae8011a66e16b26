"""Embedded playback backend.

Drives a third-party hosted player. Initialization is two-phased: the
shared control script is loaded (once per process), then a player bound
to the video identifier is created and awaited until ready. The hosted
player does not push time updates, so the adapter polls it on a fixed
interval for as long as the player instance is alive.
"""

from __future__ import annotations

import asyncio
import logging

from frameshop.capture.base import NOT_LOADED, CaptureError
from frameshop.domain.models import FramePayload, PayloadKind, PlaybackState, VideoSource
from frameshop.playback.base import PlaybackPort
from frameshop.playback.player_api import (
    DEFAULT_PLAYER_VARS,
    ControlScriptLoader,
    EmbeddedPlayer,
    PlayerState,
)
from frameshop.playback.sources import DEFAULT_THUMBNAIL_TEMPLATE, require_video_id, thumbnail_url

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.25


class EmbeddedPlayback(PlaybackPort):
    """Playback port over a hosted player with a poll-based API.

    Control calls made before the player's ready signal are ignored.
    At most one poll task exists per adapter; it is cancelled and the
    player destroyed on ``close()`` or when another source is loaded.
    """

    def __init__(
        self,
        loader: ControlScriptLoader,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        thumbnail_template: str = DEFAULT_THUMBNAIL_TEMPLATE,
        player_vars: dict[str, int] | None = None,
    ) -> None:
        super().__init__()
        self._loader = loader
        self._poll_interval = poll_interval
        self._thumbnail_template = thumbnail_template
        self._player_vars = player_vars or DEFAULT_PLAYER_VARS
        self._player: EmbeddedPlayer | None = None
        self._video_id: str | None = None
        self._poll_task: asyncio.Task[None] | None = None
        self._generation = 0

    @property
    def video_id(self) -> str | None:
        return self._video_id

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def load(self, source: VideoSource) -> None:
        await self.close()
        video_id = require_video_id(source.locator)
        generation = self._generation
        self._source = source
        self._video_id = video_id

        api = await self._loader.ensure_loaded()
        player = await api.create_player(video_id, self._player_vars)
        if generation != self._generation:
            # close() or another load() ran while the player was being created.
            await player.destroy()
            return
        self._player = player
        try:
            await player.wait_ready()
        except BaseException:
            if self._player is player:
                self._player = None
                await player.destroy()
            raise
        if generation != self._generation:
            # Torn down while waiting; close() already destroyed the player.
            return

        duration = max(0.0, await player.get_duration())
        self._state = PlaybackState(duration_seconds=duration, backend_ready=True)
        self._start_polling(player)
        logger.info("Embedded player ready for %s (video %s, %.1fs)", source.id, video_id, duration)

    def _ready_player(self) -> EmbeddedPlayer | None:
        if self._player is None or not self._state.backend_ready:
            logger.debug("Ignoring control call: embedded player not ready")
            return None
        return self._player

    async def play(self) -> None:
        player = self._ready_player()
        if player is None:
            return
        await player.play_video()
        self._state = self._state.model_copy(update={"playing": True})

    async def pause(self) -> None:
        player = self._ready_player()
        if player is None:
            return
        await player.pause_video()
        self._state = self._state.model_copy(update={"playing": False})

    async def seek_to(self, seconds: float) -> None:
        player = self._ready_player()
        if player is None:
            return
        target = self._clamp(seconds)
        await player.seek_to(target, True)
        self._state = self._state.model_copy(update={"position_seconds": target})

    async def seek_by(self, delta_seconds: float) -> None:
        player = self._ready_player()
        if player is None:
            return
        current = await player.get_current_time()
        await self.seek_to(current + delta_seconds)

    async def toggle_mute(self) -> None:
        player = self._ready_player()
        if player is None:
            return
        if self._state.muted:
            await player.un_mute()
        else:
            await player.mute()
        self._state = self._state.model_copy(update={"muted": not self._state.muted})

    async def snapshot(self) -> FramePayload:
        """Pixel access is unavailable; hand over the thumbnail locator."""
        if self._video_id is None:
            raise CaptureError("No embedded video is loaded", reason=NOT_LOADED)
        return FramePayload(
            kind=PayloadKind.URL,
            data=thumbnail_url(self._video_id, self._thumbnail_template),
        )

    async def close(self) -> None:
        self._generation += 1
        await self._stop_polling()
        player, self._player = self._player, None
        if player is not None:
            await player.destroy()
            logger.info("Destroyed embedded player for %s", self._video_id)
        self._source = None
        self._video_id = None
        self._state = PlaybackState()

    def _clamp(self, seconds: float) -> float:
        return max(0.0, min(self._state.duration_seconds, seconds))

    def _start_polling(self, player: EmbeddedPlayer) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
        self._poll_task = asyncio.create_task(self._poll(player))

    async def _stop_polling(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _poll(self, player: EmbeddedPlayer) -> None:
        """Mirror the hosted player's time and state into our snapshot."""
        while True:
            await asyncio.sleep(self._poll_interval)
            if self._player is not player:
                return
            try:
                position = await player.get_current_time()
                player_state = await player.get_player_state()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.debug("Embedded player poll error: %s", e)
                continue
            if self._player is not player:
                return
            self._state = self._state.model_copy(
                update={
                    "position_seconds": self._clamp(position),
                    "playing": player_state == PlayerState.PLAYING,
                }
            )
