"""Third-party embedded player control API.

The embedded backend never touches pixels or decodes media. It drives a
hosted player through a capability-limited remote API that has to be
loaded first (the "control script") and that signals readiness
asynchronously.

``ControlScriptLoader`` ensures each control script is loaded at most
once per process, however many players are initialized concurrently.
``HttpPlayerApi`` is the concrete implementation that talks to a player
bridge over HTTP.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

import httpx

from frameshop.playback.base import PlaybackError

logger = logging.getLogger(__name__)

DEFAULT_PLAYER_VARS: dict[str, int] = {
    "autoplay": 0,
    "controls": 0,
    "rel": 0,
    "modestbranding": 1,
}


class PlayerState(enum.IntEnum):
    """Player state codes reported by the embedded player."""

    UNSTARTED = -1
    ENDED = 0
    PLAYING = 1
    PAUSED = 2
    BUFFERING = 3
    CUED = 5


class ScriptState(str, enum.Enum):
    """Lifecycle of the process-wide control script."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"


class EmbeddedPlayer(ABC):
    """Handle to one hosted player instance."""

    @abstractmethod
    async def wait_ready(self) -> None:
        """Resolve when the player signals it is ready for control calls."""
        ...

    @abstractmethod
    async def play_video(self) -> None:
        ...

    @abstractmethod
    async def pause_video(self) -> None:
        ...

    @abstractmethod
    async def seek_to(self, seconds: float, allow_seek_ahead: bool = True) -> None:
        ...

    @abstractmethod
    async def mute(self) -> None:
        ...

    @abstractmethod
    async def un_mute(self) -> None:
        ...

    @abstractmethod
    async def get_current_time(self) -> float:
        ...

    @abstractmethod
    async def get_duration(self) -> float:
        ...

    @abstractmethod
    async def get_player_state(self) -> int:
        ...

    @abstractmethod
    async def destroy(self) -> None:
        ...


class PlayerApi(ABC):
    """The loaded control script: a factory for player instances."""

    @abstractmethod
    async def create_player(
        self, video_id: str, player_vars: dict[str, int] | None = None
    ) -> EmbeddedPlayer:
        ...


class ControlScriptLoader:
    """Loads a control script once and shares the result.

    All callers await the same task. A failed load returns the loader to
    ``unloaded`` so a later call can try again.
    """

    def __init__(self, load: Callable[[], Awaitable[PlayerApi]], name: str = "") -> None:
        self._load = load
        self._name = name
        self._task: asyncio.Future[PlayerApi] | None = None
        self._api: PlayerApi | None = None

    @property
    def state(self) -> ScriptState:
        if self._api is not None:
            return ScriptState.READY
        if self._task is not None:
            return ScriptState.LOADING
        return ScriptState.UNLOADED

    async def ensure_loaded(self) -> PlayerApi:
        """Return the loaded API, loading it first if nobody has yet."""
        if self._api is not None:
            return self._api
        if self._task is None:
            logger.info("Loading player control script %s", self._name)
            self._task = asyncio.ensure_future(self._run_load())
        return await asyncio.shield(self._task)

    async def _run_load(self) -> PlayerApi:
        try:
            api = await self._load()
        except Exception as e:
            logger.warning("Player control script %s failed to load: %s", self._name, e)
            self._task = None
            raise
        self._api = api
        logger.info("Player control script %s ready", self._name)
        return api

    def reset(self) -> None:
        """Forget the loaded API (the next call loads it again)."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._api = None


_script_loaders: dict[str, ControlScriptLoader] = {}


def get_script_loader(
    script_url: str, load: Callable[[], Awaitable[PlayerApi]]
) -> ControlScriptLoader:
    """Return the process-wide loader for ``script_url``, creating it once.

    ``load`` is only used the first time a given script URL is seen.
    """
    loader = _script_loaders.get(script_url)
    if loader is None:
        loader = ControlScriptLoader(load, name=script_url)
        _script_loaders[script_url] = loader
    return loader


def reset_script_loaders() -> None:
    """Drop every process-wide loader (used on shutdown and in tests)."""
    for loader in _script_loaders.values():
        loader.reset()
    _script_loaders.clear()


# ---------------------------------------------------------------------------
# HTTP player bridge
# ---------------------------------------------------------------------------


class HttpEmbeddedPlayer(EmbeddedPlayer):
    """A player hosted by the bridge, addressed by its player id."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        player_id: str,
        ready_timeout: float = 15.0,
        ready_poll_interval: float = 0.1,
    ) -> None:
        self._client = client
        self._player_id = player_id
        self._ready_timeout = ready_timeout
        self._ready_poll_interval = ready_poll_interval

    @property
    def player_id(self) -> str:
        return self._player_id

    async def wait_ready(self) -> None:
        try:
            async with asyncio.timeout(self._ready_timeout):
                while not (await self._status()).get("ready", False):
                    await asyncio.sleep(self._ready_poll_interval)
        except TimeoutError as e:
            raise PlaybackError(
                f"Player {self._player_id} not ready after {self._ready_timeout}s",
                backend="embedded",
            ) from e

    async def play_video(self) -> None:
        await self._command("playVideo")

    async def pause_video(self) -> None:
        await self._command("pauseVideo")

    async def seek_to(self, seconds: float, allow_seek_ahead: bool = True) -> None:
        await self._command("seekTo", seconds, allow_seek_ahead)

    async def mute(self) -> None:
        await self._command("mute")

    async def un_mute(self) -> None:
        await self._command("unMute")

    async def get_current_time(self) -> float:
        return float((await self._status()).get("currentTime", 0.0))

    async def get_duration(self) -> float:
        return float((await self._status()).get("duration", 0.0))

    async def get_player_state(self) -> int:
        return int((await self._status()).get("playerState", PlayerState.UNSTARTED))

    async def destroy(self) -> None:
        try:
            resp = await self._client.delete(f"/players/{self._player_id}")
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Failed to destroy player %s: %s", self._player_id, e)

    async def _status(self) -> dict[str, Any]:
        try:
            resp = await self._client.get(f"/players/{self._player_id}")
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            raise PlaybackError(
                f"Status request for player {self._player_id} failed: {e}",
                backend="embedded",
            ) from e

    async def _command(self, name: str, *args: Any) -> None:
        try:
            resp = await self._client.post(
                f"/players/{self._player_id}/commands",
                json={"name": name, "args": list(args)},
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise PlaybackError(
                f"Command {name} to player {self._player_id} failed: {e}",
                backend="embedded",
            ) from e


class HttpPlayerApi(PlayerApi):
    """Player API exposed by an HTTP player bridge."""

    def __init__(self, client: httpx.AsyncClient, ready_timeout: float = 15.0) -> None:
        self._client = client
        self._ready_timeout = ready_timeout

    async def create_player(
        self, video_id: str, player_vars: dict[str, int] | None = None
    ) -> EmbeddedPlayer:
        try:
            resp = await self._client.post(
                "/players",
                json={"videoId": video_id, "playerVars": player_vars or DEFAULT_PLAYER_VARS},
            )
            resp.raise_for_status()
            player_id = str(resp.json()["playerId"])
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise PlaybackError(
                f"Failed to create player for {video_id}: {e}", backend="embedded"
            ) from e
        logger.debug("Created player %s for video %s", player_id, video_id)
        return HttpEmbeddedPlayer(self._client, player_id, ready_timeout=self._ready_timeout)

    async def aclose(self) -> None:
        await self._client.aclose()


def http_player_api_loader(
    base_url: str,
    script_path: str = "/iframe_api",
    timeout: float = 10.0,
    ready_timeout: float = 15.0,
) -> Callable[[], Awaitable[PlayerApi]]:
    """Build a load function that fetches the bridge's control script."""

    async def load() -> PlayerApi:
        client = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout)
        try:
            resp = await client.get(script_path)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            await client.aclose()
            raise PlaybackError(
                f"Failed to load player control script from {base_url}: {e}",
                backend="embedded",
            ) from e
        return HttpPlayerApi(client, ready_timeout=ready_timeout)

    return load
