"""Core domain models for the frameshop system.

These models represent the data flowing through the viewer: the video
being played, playback state snapshots, captured frames, scan sessions
and the products discovered in them.
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class BackendKind(str, enum.Enum):
    """Which playback backend a video source needs."""

    NATIVE = "native"  # Locally decoded media, direct pixel access
    EMBEDDED = "embedded"  # Third-party hosted player, remote control only


class PayloadKind(str, enum.Enum):
    """How a captured still is carried to the classification service."""

    INLINE = "inline"  # Encoded image bytes as a data URL
    URL = "url"  # A fetchable image locator


class ScanStatus(str, enum.Enum):
    """Status of a single scan attempt."""

    IDLE = "idle"
    SCANNING = "scanning"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureReason(str, enum.Enum):
    """Why a scan attempt ended in the failed state."""

    CAPTURE_UNAVAILABLE = "capture_unavailable"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXHAUSTED = "quota_exhausted"
    SERVICE_UNAVAILABLE = "service_unavailable"


# ---------------------------------------------------------------------------
# Playback Models
# ---------------------------------------------------------------------------


class VideoSource(BaseModel):
    """A video opened for playback.

    Immutable once loaded; owned by the viewer session that opened it.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Library identifier of the video")
    title: str = Field(default="", description="Display title")
    backend_kind: BackendKind = Field(description="Backend required to play this source")
    locator: str = Field(description="Local path/blob URL or third-party watch URL")


class PlaybackState(BaseModel):
    """Snapshot of the active backend's playback state.

    Position and duration are only meaningful once ``backend_ready`` is
    true; adapters keep ``0 <= position_seconds <= duration_seconds``
    from then on.
    """

    model_config = ConfigDict(frozen=True)

    playing: bool = False
    muted: bool = False
    position_seconds: float = Field(default=0.0, ge=0.0)
    duration_seconds: float = Field(default=0.0, ge=0.0)
    backend_ready: bool = False


# ---------------------------------------------------------------------------
# Capture Models
# ---------------------------------------------------------------------------


class FramePayload(BaseModel):
    """A still image produced by a playback backend."""

    model_config = ConfigDict(frozen=True)

    kind: PayloadKind
    data: str = Field(description="data: URL for inline payloads, http(s) URL otherwise")


class CapturedFrame(BaseModel):
    """A single frame taken for one scan attempt.

    Created once per scan and discarded after the classification call
    resolves.
    """

    model_config = ConfigDict(frozen=True)

    video_id: str = Field(description="Identity of the VideoSource the frame came from")
    payload: str = Field(description="Encoded image (data URL) or image locator")
    kind: PayloadKind
    position_seconds: float = Field(default=0.0, ge=0.0)
    captured_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_url(self) -> bool:
        return self.kind == PayloadKind.URL


# ---------------------------------------------------------------------------
# Scan Models
# ---------------------------------------------------------------------------


class OverlayPosition(BaseModel):
    """Overlay anchor in percentage-of-viewport coordinates."""

    model_config = ConfigDict(frozen=True)

    x: float = Field(ge=0.0, le=100.0)
    y: float = Field(ge=0.0, le=100.0)


class ProductCandidate(BaseModel):
    """A validated product entry from the classification service."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    category: str
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    purchase_url: str


class Product(ProductCandidate):
    """A product placed on the overlay for one scan session."""

    session_id: str
    ordinal: int = Field(ge=0, description="Position within the session's result list")
    position: OverlayPosition

    @property
    def product_id(self) -> str:
        """Synthetic, session-scoped identity."""
        return f"{self.session_id}-{self.ordinal}"


class ScanSession(BaseModel):
    """One scan attempt against a single captured frame.

    A session transitions exactly once from ``scanning`` to a terminal
    status; ``succeed`` and ``fail`` return the terminal copy rather than
    mutating in place. A new scan supersedes the session entirely.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
    video_id: str | None = None
    status: ScanStatus = ScanStatus.IDLE
    requested_at: datetime = Field(default_factory=datetime.now)
    position_seconds: float | None = Field(default=None, ge=0.0)
    products: tuple[Product, ...] = ()
    failure: FailureReason | None = None
    message: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ScanStatus.SUCCEEDED, ScanStatus.FAILED)

    def succeed(self, products: tuple[Product, ...] | list[Product], message: str) -> ScanSession:
        """Return the succeeded copy of this scanning session."""
        self._require_scanning()
        return self.model_copy(
            update={
                "status": ScanStatus.SUCCEEDED,
                "products": tuple(products),
                "message": message,
            }
        )

    def fail(self, reason: FailureReason, message: str) -> ScanSession:
        """Return the failed copy of this scanning session."""
        self._require_scanning()
        return self.model_copy(
            update={"status": ScanStatus.FAILED, "failure": reason, "message": message}
        )

    def _require_scanning(self) -> None:
        if self.status != ScanStatus.SCANNING:
            raise RuntimeError(
                f"Scan session {self.session_id} is {self.status.value}, not scanning"
            )
