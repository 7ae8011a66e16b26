"""Shared test fixtures for the frameshop test suite.

Provides common fixtures used across unit tests: video sources, a fake
embedded player and control script, a scriptable playback adapter and
a stub classification service.
"""

from __future__ import annotations

import asyncio
from typing import Any

import numpy as np
import pytest

from frameshop.capture.base import CaptureError
from frameshop.classifier.base import ClassificationRequest, ClassificationService
from frameshop.domain.models import (
    BackendKind,
    FramePayload,
    PayloadKind,
    PlaybackState,
    ProductCandidate,
    VideoSource,
)
from frameshop.library.memory import InMemoryLibraryStore
from frameshop.library.sync import VideoLibrary
from frameshop.playback.base import PlaybackPort
from frameshop.playback.player_api import (
    ControlScriptLoader,
    EmbeddedPlayer,
    PlayerApi,
    PlayerState,
    reset_script_loaders,
)

WATCH_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
VIDEO_ID = "dQw4w9WgXcQ"


@pytest.fixture(autouse=True)
def _clean_script_loaders():
    yield
    reset_script_loaders()


# ---------------------------------------------------------------------------
# Source Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def native_source() -> VideoSource:
    return VideoSource(
        id="vid-native", title="Store walkthrough",
        backend_kind=BackendKind.NATIVE, locator="/tmp/walkthrough.mp4",
    )


@pytest.fixture
def embedded_source() -> VideoSource:
    return VideoSource(
        id="vid-embedded", title="Street style",
        backend_kind=BackendKind.EMBEDDED, locator=WATCH_URL,
    )


@pytest.fixture
def sample_image() -> np.ndarray:
    """A minimal 64x48 gray frame."""
    return np.full((48, 64, 3), 127, dtype=np.uint8)


# ---------------------------------------------------------------------------
# Embedded Player Fakes
# ---------------------------------------------------------------------------


class FakePlayer(EmbeddedPlayer):
    """In-memory hosted player that records every call."""

    def __init__(self, video_id: str, duration: float = 120.0) -> None:
        self.video_id = video_id
        self.duration = duration
        self.current_time = 0.0
        self.state = PlayerState.CUED
        self.muted = False
        self.destroyed = False
        self.calls: list[tuple[Any, ...]] = []
        self.ready = asyncio.Event()
        self.ready.set()

    async def wait_ready(self) -> None:
        await self.ready.wait()

    async def play_video(self) -> None:
        self.calls.append(("play",))
        self.state = PlayerState.PLAYING

    async def pause_video(self) -> None:
        self.calls.append(("pause",))
        self.state = PlayerState.PAUSED

    async def seek_to(self, seconds: float, allow_seek_ahead: bool = True) -> None:
        self.calls.append(("seek", seconds, allow_seek_ahead))
        self.current_time = seconds

    async def mute(self) -> None:
        self.calls.append(("mute",))
        self.muted = True

    async def un_mute(self) -> None:
        self.calls.append(("unmute",))
        self.muted = False

    async def get_current_time(self) -> float:
        return self.current_time

    async def get_duration(self) -> float:
        return self.duration

    async def get_player_state(self) -> int:
        return int(self.state)

    async def destroy(self) -> None:
        self.destroyed = True


class FakePlayerApi(PlayerApi):
    def __init__(self) -> None:
        self.players: list[FakePlayer] = []
        self.hold_ready = False

    async def create_player(
        self, video_id: str, player_vars: dict[str, int] | None = None
    ) -> EmbeddedPlayer:
        player = FakePlayer(video_id)
        if self.hold_ready:
            player.ready.clear()
        self.players.append(player)
        return player


@pytest.fixture
def player_api() -> FakePlayerApi:
    return FakePlayerApi()


@pytest.fixture
def script_loads() -> list[int]:
    """Counts how many times the control script was fetched."""
    return []


@pytest.fixture
def script_loader(player_api: FakePlayerApi, script_loads: list[int]) -> ControlScriptLoader:
    async def load() -> PlayerApi:
        script_loads.append(1)
        await asyncio.sleep(0)
        return player_api

    return ControlScriptLoader(load, name="fake://iframe_api")


# ---------------------------------------------------------------------------
# Playback / Classifier Stubs
# ---------------------------------------------------------------------------


class StubPlayback(PlaybackPort):
    """Playback adapter whose snapshot outcome is set by the test."""

    def __init__(self, payload: FramePayload | None = None, error: Exception | None = None) -> None:
        super().__init__()
        self.payload = payload or FramePayload(
            kind=PayloadKind.INLINE, data="data:image/jpeg;base64,AAAA"
        )
        self.error = error
        self.pause_calls = 0
        self.closed = False

    async def load(self, source: VideoSource) -> None:
        if source.locator.startswith("bad:"):
            from frameshop.playback.base import PlaybackError

            raise PlaybackError(f"Cannot open {source.locator}", backend="stub")
        self._source = source
        self._state = PlaybackState(duration_seconds=300.0, backend_ready=True)

    async def play(self) -> None:
        self._state = self._state.model_copy(update={"playing": True})

    async def pause(self) -> None:
        self.pause_calls += 1
        self._state = self._state.model_copy(update={"playing": False})

    async def seek_to(self, seconds: float) -> None:
        position = max(0.0, min(self._state.duration_seconds, seconds))
        self._state = self._state.model_copy(update={"position_seconds": position})

    async def seek_by(self, delta_seconds: float) -> None:
        await self.seek_to(self._state.position_seconds + delta_seconds)

    async def toggle_mute(self) -> None:
        self._state = self._state.model_copy(update={"muted": not self._state.muted})

    async def snapshot(self) -> FramePayload:
        if self.error is not None:
            raise self.error
        return self.payload

    async def close(self) -> None:
        self.closed = True
        self._source = None
        self._state = PlaybackState()


class StubClassifier(ClassificationService):
    """Returns canned candidates; optionally blocks until released."""

    def __init__(
        self,
        products: list[ProductCandidate] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.products = products or []
        self.error = error
        self.requests: list[ClassificationRequest] = []
        self.gate: asyncio.Event | None = None
        self.closed = False

    async def classify(self, request: ClassificationRequest) -> list[ProductCandidate]:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.products)

    async def aclose(self) -> None:
        self.closed = True


def make_candidate(name: str, category: str = "Fashion", confidence: float = 0.9) -> ProductCandidate:
    return ProductCandidate(
        name=name, category=category, confidence=confidence,
        purchase_url=f"https://www.amazon.com/s?k={name.replace(' ', '%20')}",
    )


@pytest.fixture
def stub_playback() -> StubPlayback:
    return StubPlayback()


@pytest.fixture
def stub_classifier() -> StubClassifier:
    return StubClassifier(products=[make_candidate("Navy Blue Blazer"), make_candidate("Leather Tote")])


@pytest.fixture
def library() -> VideoLibrary:
    return VideoLibrary(InMemoryLibraryStore())
