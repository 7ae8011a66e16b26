"""The scan orchestrator: pause, capture, classify, lay out.

Owns the scanning state machine for one video view::

    idle -> scanning -> succeeded | failed -> (next scan) scanning ...

Only one scan may be in flight per view. A response is applied only if
the scan that issued it is still the view's in-flight scan; rebinding
the view (another video, or the same one reopened) makes it stale and
its outcome is discarded.
"""

from __future__ import annotations

import asyncio
import logging
import uuid

from pydantic import BaseModel, ConfigDict

from frameshop.capture.base import CaptureError, FrameCapture
from frameshop.classifier.base import (
    ClassificationError,
    ClassificationRequest,
    ClassificationService,
    ServiceQuotaExhausted,
    ServiceRateLimited,
)
from frameshop.domain.models import (
    FailureReason,
    ScanSession,
    ScanStatus,
    VideoSource,
)
from frameshop.overlay.layout import OverlayLayout
from frameshop.playback.base import PlaybackPort

logger = logging.getLogger(__name__)


FAILURE_MESSAGES: dict[FailureReason, str] = {
    FailureReason.CAPTURE_UNAVAILABLE: "Could not capture frame. Please try again.",
    FailureReason.RATE_LIMITED: "Rate limit exceeded. Please try again in a moment.",
    FailureReason.QUOTA_EXHAUSTED: "AI usage limit reached. Please upgrade your plan.",
    FailureReason.SERVICE_UNAVAILABLE: "Scan failed. Please try again later.",
}

NO_PRODUCTS_MESSAGE = "No products found. Try scanning a different frame with visible products."


def found_message(count: int) -> str:
    return f"Discovered {count} shoppable item{'s' if count != 1 else ''}."


def failure_reason_for(error: ClassificationError) -> FailureReason:
    if isinstance(error, ServiceRateLimited):
        return FailureReason.RATE_LIMITED
    if isinstance(error, ServiceQuotaExhausted):
        return FailureReason.QUOTA_EXHAUSTED
    return FailureReason.SERVICE_UNAVAILABLE


class ScanView(BaseModel):
    """What the UI renders for the scan feature."""

    model_config = ConfigDict(frozen=True)

    session: ScanSession
    overlay_visible: bool
    can_scan: bool


class ScanOrchestrator:
    """Drives scan attempts for the video currently shown in a view.

    Example usage::

        orchestrator = ScanOrchestrator(service=HttpClassificationService(url))
        orchestrator.bind(playback, source)
        session = await orchestrator.scan()
    """

    def __init__(
        self,
        service: ClassificationService,
        capture: FrameCapture | None = None,
        layout: OverlayLayout | None = None,
    ) -> None:
        self._service = service
        self._capture = capture or FrameCapture()
        self._layout = layout or OverlayLayout()
        self._playback: PlaybackPort | None = None
        self._video_id: str | None = None
        self._session = _idle_session(None)
        self._overlay_visible = False
        self._in_flight: str | None = None

    @property
    def session(self) -> ScanSession:
        return self._session

    @property
    def status(self) -> ScanStatus:
        return self._session.status

    @property
    def overlay_visible(self) -> bool:
        return self._overlay_visible

    @property
    def can_scan(self) -> bool:
        """Whether the scan trigger is enabled."""
        return self._playback is not None and self._in_flight is None

    def view(self) -> ScanView:
        return ScanView(
            session=self._session,
            overlay_visible=self._overlay_visible,
            can_scan=self.can_scan,
        )

    def bind(self, playback: PlaybackPort | None, source: VideoSource | None) -> None:
        """Attach to the video now displayed (or detach with ``None``).

        Any scan still in flight for the previous video becomes stale and
        its result will be discarded.
        """
        self._playback = playback
        self._video_id = source.id if source is not None else None
        self._session = _idle_session(self._video_id)
        self._overlay_visible = False
        self._in_flight = None

    async def scan(self) -> ScanSession:
        """Run one scan attempt and return the resulting session.

        Ignored (returns the current session) while another scan is in
        flight for this view.
        """
        if self._playback is None or self._video_id is None:
            raise RuntimeError("No video is open")
        if self._in_flight is not None:
            logger.debug("Scan already in flight for %s; ignoring", self._video_id)
            return self._session

        token = uuid.uuid4().hex[:12]
        self._in_flight = token
        playback, video_id = self._playback, self._video_id
        try:
            return await self._run(token, playback, video_id)
        finally:
            if self._in_flight == token:
                self._in_flight = None

    async def _run(self, token: str, playback: PlaybackPort, video_id: str) -> ScanSession:
        try:
            frame = await self._capture.capture(playback)
        except CaptureError as e:
            logger.warning("Could not capture frame for %s (%s): %s", video_id, e.reason, e)
            failed = ScanSession(
                session_id=token,
                video_id=video_id,
                status=ScanStatus.FAILED,
                failure=FailureReason.CAPTURE_UNAVAILABLE,
                message=FAILURE_MESSAGES[FailureReason.CAPTURE_UNAVAILABLE],
            )
            return self._settle(failed)

        if not self._is_current(token):
            logger.info("Scan %s superseded during capture; dropping it", token)
            return self._session

        session = ScanSession(
            session_id=token,
            video_id=video_id,
            status=ScanStatus.SCANNING,
            position_seconds=frame.position_seconds,
        )
        # Clear the previous results before the request goes out.
        self._session = session
        self._overlay_visible = False
        logger.info("Scan %s started for %s at %.2fs", token, video_id, frame.position_seconds)

        request = ClassificationRequest.from_frame(frame)
        try:
            candidates = await self._service.classify(request)
        except ClassificationError as e:
            reason = failure_reason_for(e)
            logger.error("Scan %s failed (%s): %s", token, reason.value, e)
            result = session.fail(reason, FAILURE_MESSAGES[reason])
        except asyncio.CancelledError:
            self._settle(session.fail(
                FailureReason.SERVICE_UNAVAILABLE,
                FAILURE_MESSAGES[FailureReason.SERVICE_UNAVAILABLE],
            ))
            raise
        except Exception as e:
            logger.exception("Scan %s failed unexpectedly: %s", token, e)
            result = session.fail(
                FailureReason.SERVICE_UNAVAILABLE,
                FAILURE_MESSAGES[FailureReason.SERVICE_UNAVAILABLE],
            )
        else:
            products = self._layout.place(candidates, session_id=token)
            message = found_message(len(products)) if products else NO_PRODUCTS_MESSAGE
            result = session.succeed(products, message)

        return self._settle(result)

    def _settle(self, result: ScanSession) -> ScanSession:
        """Apply a terminal session unless its scan has been superseded."""
        if not self._is_current(result.session_id):
            logger.info(
                "Discarding stale scan result %s for %s", result.session_id, result.video_id
            )
            return result
        self._session = result
        self._overlay_visible = result.status == ScanStatus.SUCCEEDED and bool(result.products)
        logger.info(
            "Scan %s %s: %s", result.session_id, result.status.value, result.message
        )
        return result

    def _is_current(self, token: str) -> bool:
        # bind() clears the token, so a rebind makes every older scan stale.
        return self._in_flight == token

    def dismiss_results(self) -> bool:
        """Hide the overlays; the session and its products are kept.

        Returns False (no-op) unless the current session succeeded.
        """
        if self._session.status != ScanStatus.SUCCEEDED:
            return False
        self._overlay_visible = False
        return True

    async def aclose(self) -> None:
        await self._service.aclose()


def _idle_session(video_id: str | None) -> ScanSession:
    return ScanSession(session_id=uuid.uuid4().hex[:12], video_id=video_id)
