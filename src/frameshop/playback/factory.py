"""Playback backend selection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from frameshop.domain.models import BackendKind
from frameshop.playback.base import PlaybackPort

if TYPE_CHECKING:
    from frameshop.config.settings import Settings

logger = logging.getLogger(__name__)


def create_playback(kind: BackendKind, settings: Settings | None = None) -> PlaybackPort:
    """Build the playback backend for ``kind``, configured from settings."""
    from frameshop.config.settings import Settings

    settings = settings or Settings()
    if kind == BackendKind.NATIVE:
        from frameshop.playback.native import NativePlayback

        return NativePlayback(jpeg_quality=settings.capture.jpeg_quality)

    if kind == BackendKind.EMBEDDED:
        from frameshop.playback.embedded import EmbeddedPlayback
        from frameshop.playback.player_api import get_script_loader, http_player_api_loader

        cfg = settings.playback
        script_url = cfg.player_bridge_url.rstrip("/") + cfg.control_script_path
        loader = get_script_loader(
            script_url,
            http_player_api_loader(
                cfg.player_bridge_url,
                script_path=cfg.control_script_path,
                timeout=cfg.bridge_timeout,
                ready_timeout=cfg.player_ready_timeout,
            ),
        )
        return EmbeddedPlayback(
            loader=loader,
            poll_interval=cfg.poll_interval,
            thumbnail_template=cfg.thumbnail_template,
        )

    raise ValueError(f"Unknown backend kind: {kind!r}")
