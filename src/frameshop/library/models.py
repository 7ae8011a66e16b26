"""Records exchanged with the library collaborator."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from frameshop.domain.models import BackendKind, VideoSource

SourceType = Literal["upload", "youtube"]

_BACKEND_FOR_SOURCE_TYPE: dict[str, BackendKind] = {
    "upload": BackendKind.NATIVE,
    "youtube": BackendKind.EMBEDDED,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NewVideo(BaseModel):
    """A video record about to be inserted."""

    title: str = Field(min_length=1)
    video_url: str = Field(min_length=1)
    source_type: SourceType = "youtube"
    description: str | None = None
    thumbnail_url: str | None = None


class VideoRecord(NewVideo):
    """A stored video row."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    created_at: datetime = Field(default_factory=utcnow)

    def to_source(self) -> VideoSource:
        return VideoSource(
            id=self.id,
            title=self.title,
            backend_kind=_BACKEND_FOR_SOURCE_TYPE[self.source_type],
            locator=self.video_url,
        )


class ScannedProductRecord(BaseModel):
    """A persisted product from a scan."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    video_id: str
    product_name: str
    category: str | None = None
    search_url: str | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    frame_timestamp: float | None = None
    created_at: datetime | None = None
