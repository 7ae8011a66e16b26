"""Assemble viewer components from settings."""

from __future__ import annotations

import logging
import random
from functools import partial

from frameshop.capture.base import FrameCapture
from frameshop.classifier.base import ClassificationService
from frameshop.config.settings import Settings
from frameshop.library.base import LibraryStore
from frameshop.library.memory import InMemoryLibraryStore
from frameshop.library.sync import VideoLibrary
from frameshop.overlay.layout import OverlayLayout
from frameshop.playback.factory import create_playback
from frameshop.scan.orchestrator import ScanOrchestrator
from frameshop.viewer.session import ViewerSession

logger = logging.getLogger(__name__)


def build_library(settings: Settings) -> VideoLibrary:
    store: LibraryStore
    if settings.library.backend == "rest":
        from frameshop.library.rest import RestLibraryStore

        store = RestLibraryStore(
            base_url=settings.library.base_url,
            api_key=settings.library_api_key.get_secret_value(),
            timeout=settings.library.timeout,
        )
    else:
        store = InMemoryLibraryStore()
    return VideoLibrary(store)


def build_classifier(settings: Settings) -> ClassificationService:
    cfg = settings.classifier
    if cfg.backend == "vision":
        from frameshop.classifier.vision import VisionClassifier

        return VisionClassifier(
            api_key=settings.vision_api_key(),
            model=cfg.model,
            base_url=settings.vision_base_url(),
            system_prompt=cfg.system_prompt_override,
            max_tokens=cfg.max_tokens,
            purchase_url_template=cfg.purchase_url_template,
        )

    from frameshop.classifier.http import HttpClassificationService

    return HttpClassificationService(
        url=cfg.service_url,
        api_key=settings.service_api_key.get_secret_value(),
        timeout=cfg.timeout,
        purchase_url_template=cfg.purchase_url_template,
    )


def build_viewer(
    settings: Settings,
    library: VideoLibrary | None = None,
    classifier: ClassificationService | None = None,
) -> ViewerSession:
    """Wire library, classifier, layout and playback factory together."""
    rng = random.Random(settings.layout.seed) if settings.layout.seed is not None else None
    orchestrator = ScanOrchestrator(
        service=classifier or build_classifier(settings),
        capture=FrameCapture(),
        layout=OverlayLayout(rng=rng),
    )
    logger.debug(
        "Viewer built (library=%s, classifier=%s)",
        settings.library.backend, settings.classifier.backend,
    )
    return ViewerSession(
        library=library or build_library(settings),
        orchestrator=orchestrator,
        playback_factory=partial(create_playback, settings=settings),
        seek_step=settings.playback.seek_step,
    )
