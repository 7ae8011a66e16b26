"""FastAPI HTTP server for the frameshop viewer.

Exposes the library, the player page (transport controls, scan,
overlay state) and the scan-products classification endpoint.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from frameshop.classifier.base import (
    ClassificationError,
    ClassificationRequest,
    ClassificationService,
    ServiceQuotaExhausted,
    ServiceRateLimited,
)
from frameshop.config.settings import Settings
from frameshop.library.base import LibraryError, VideoNotFoundError
from frameshop.library.models import ScannedProductRecord, SourceType, VideoRecord
from frameshop.playback.base import PlaybackError, UnrecognizedSourceError
from frameshop.playback.player_api import reset_script_loaders
from frameshop.viewer.builder import build_viewer
from frameshop.viewer.session import ViewerSession, ViewerSnapshot

logger = logging.getLogger(__name__)


class AddVideoRequest(BaseModel):
    title: str = Field(description="Display title")
    video_url: str = Field(description="Watch URL or media URL")
    source_type: SourceType = Field(default="youtube")
    description: str | None = None


class OpenVideoRequest(BaseModel):
    video_id: str


class SeekRequest(BaseModel):
    delta: float | None = Field(default=None, description="Relative seek in seconds")
    position: float | None = Field(default=None, ge=0, description="Absolute position in seconds")


class HealthStatus(BaseModel):
    status: str = "ok"
    video_open: bool = False
    scan_service: bool = False


def create_app(
    settings: Settings | None = None,
    viewer: ViewerSession | None = None,
    scan_service: ClassificationService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Configuration; defaults are used if omitted.
        viewer: Pre-built viewer session (tests inject one).
        scan_service: Classifier behind ``/functions/v1/scan-products``.
            Built from settings when a vision API key is configured.
    """
    settings = settings or Settings()
    if viewer is None:
        viewer = build_viewer(settings)
    if scan_service is None and settings.vision_api_key():
        from frameshop.classifier.vision import VisionClassifier

        scan_service = VisionClassifier(
            api_key=settings.vision_api_key(),
            model=settings.classifier.model,
            base_url=settings.vision_base_url(),
            system_prompt=settings.classifier.system_prompt_override,
            max_tokens=settings.classifier.max_tokens,
            purchase_url_template=settings.classifier.purchase_url_template,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("frameshop server started")
        yield
        await app.state.viewer.aclose()
        if app.state.scan_service is not None:
            await app.state.scan_service.aclose()
        reset_script_loaders()
        logger.info("frameshop server stopped")

    app = FastAPI(
        title="frameshop",
        description="Shoppable-frame video viewer",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.viewer = viewer
    app.state.scan_service = scan_service

    def _viewer() -> ViewerSession:
        return app.state.viewer

    @app.get("/health")
    async def health_check() -> HealthStatus:
        return HealthStatus(
            video_open=_viewer().source is not None,
            scan_service=app.state.scan_service is not None,
        )

    # -- library ------------------------------------------------------------

    @app.get("/videos")
    async def list_videos() -> list[VideoRecord]:
        library = _viewer().library
        return list(await library.ensure_loaded())

    @app.post("/videos", status_code=201)
    async def add_video(request: AddVideoRequest) -> VideoRecord:
        library = _viewer().library
        await library.ensure_loaded()
        try:
            return await library.add_video(
                request.title, request.video_url, request.source_type, request.description
            )
        except UnrecognizedSourceError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        except LibraryError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    @app.delete("/videos/{video_id}")
    async def delete_video(video_id: str) -> dict[str, str]:
        viewer = _viewer()
        if viewer.source is not None and viewer.source.id == video_id:
            await viewer.close()
        try:
            await viewer.library.delete_video(video_id)
        except LibraryError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e
        return {"status": "ok", "video_id": video_id}

    @app.get("/videos/{video_id}/products")
    async def list_saved_products(video_id: str) -> list[ScannedProductRecord]:
        return await _viewer().library.scanned_products(video_id)

    # -- player page ----------------------------------------------------------

    @app.post("/viewer/open")
    async def open_video(request: OpenVideoRequest) -> ViewerSnapshot:
        viewer = _viewer()
        try:
            await viewer.open(request.video_id)
        except VideoNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except UnrecognizedSourceError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        except PlaybackError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e
        return viewer.snapshot()

    @app.post("/viewer/close")
    async def close_video() -> ViewerSnapshot:
        await _viewer().close()
        return _viewer().snapshot()

    @app.get("/viewer/state")
    async def viewer_state() -> ViewerSnapshot:
        return _viewer().snapshot()

    @app.post("/viewer/play")
    async def play() -> ViewerSnapshot:
        await _viewer().play()
        return _viewer().snapshot()

    @app.post("/viewer/pause")
    async def pause() -> ViewerSnapshot:
        await _viewer().pause()
        return _viewer().snapshot()

    @app.post("/viewer/toggle-play")
    async def toggle_play() -> ViewerSnapshot:
        await _viewer().toggle_play()
        return _viewer().snapshot()

    @app.post("/viewer/mute")
    async def toggle_mute() -> ViewerSnapshot:
        await _viewer().toggle_mute()
        return _viewer().snapshot()

    @app.post("/viewer/seek")
    async def seek(request: SeekRequest) -> ViewerSnapshot:
        viewer = _viewer()
        if request.position is not None:
            await viewer.seek_to(request.position)
        elif request.delta is not None:
            await viewer.seek_by(request.delta)
        else:
            raise HTTPException(status_code=422, detail="Provide either delta or position")
        return viewer.snapshot()

    @app.post("/viewer/scan")
    async def scan() -> ViewerSnapshot:
        viewer = _viewer()
        if viewer.source is None:
            raise HTTPException(status_code=409, detail="No video is open")
        await viewer.scan()
        return viewer.snapshot()

    @app.post("/viewer/scan/dismiss")
    async def dismiss() -> ViewerSnapshot:
        _viewer().dismiss_results()
        return _viewer().snapshot()

    @app.post("/viewer/scan/save", status_code=201)
    async def save_scan() -> list[ScannedProductRecord]:
        try:
            return await _viewer().save_results()
        except LibraryError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e

    # -- classification service ----------------------------------------------

    @app.post("/functions/v1/scan-products")
    async def scan_products(body: dict[str, Any]) -> JSONResponse:
        if not body.get("imageData"):
            logger.error("No image data provided")
            return JSONResponse({"error": "No image data provided"}, status_code=400)

        service: ClassificationService | None = app.state.scan_service
        if service is None:
            logger.error("No vision classifier is configured")
            return JSONResponse({"error": "AI service not configured"}, status_code=500)

        try:
            request = ClassificationRequest.model_validate(body)
            products = await service.classify(request)
        except ServiceRateLimited:
            return JSONResponse(
                {"error": "Rate limit exceeded. Please try again in a moment."}, status_code=429
            )
        except ServiceQuotaExhausted:
            return JSONResponse(
                {"error": "AI usage limit reached. Please upgrade your plan."}, status_code=402
            )
        except ClassificationError as e:
            logger.error("Error in scan-products: %s", e)
            return JSONResponse({"error": str(e)}, status_code=500)
        except ValueError as e:
            return JSONResponse({"error": str(e)}, status_code=400)

        return JSONResponse(
            {
                "products": [
                    {
                        "name": p.name,
                        "category": p.category,
                        "confidence": p.confidence,
                        "searchUrl": p.purchase_url,
                    }
                    for p in products
                ]
            }
        )

    return app


def main() -> None:
    """Entry point for running the server standalone."""
    from frameshop.config.settings import load_settings
    from frameshop.utils.logging import setup_logging

    settings = load_settings()
    setup_logging(settings.logging)
    app = create_app(settings)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)


if __name__ == "__main__":
    main()
