"""Abstract base class for classification services.

A classification service maps one captured frame to a list of candidate
products. Implementations translate their transport's failures into the
``ClassificationError`` hierarchy so the scan orchestrator can tell
rate limiting and quota exhaustion apart from a generic outage.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field

from frameshop.domain.models import CapturedFrame, ProductCandidate

logger = logging.getLogger(__name__)


class ClassificationRequest(BaseModel):
    """Wire request: ``{"imageData", "videoId", "isUrl"}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    image_data: str = Field(alias="imageData", min_length=1)
    video_id: str = Field(default="", alias="videoId")
    is_url: bool = Field(default=False, alias="isUrl")

    @classmethod
    def from_frame(cls, frame: CapturedFrame) -> ClassificationRequest:
        return cls(image_data=frame.payload, video_id=frame.video_id, is_url=frame.is_url)


class ClassificationService(ABC):
    """Abstract interface for the product classification service."""

    @abstractmethod
    async def classify(self, request: ClassificationRequest) -> list[ProductCandidate]:
        """Classify one frame.

        Returns:
            Validated candidates; an empty list when the service answered
            with nothing usable.

        Raises:
            ClassificationError: On transport or service failure.
        """
        ...

    async def aclose(self) -> None:
        """Release transport resources."""


class ClassificationError(Exception):
    """Raised when the classification service call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ServiceRateLimited(ClassificationError):
    """The service is throttling requests (HTTP 429)."""


class ServiceQuotaExhausted(ClassificationError):
    """Usage quota or billing is exhausted (HTTP 402)."""


class ServiceUnavailable(ClassificationError):
    """Any other failure to obtain a result."""


def error_for_status(status_code: int, message: str) -> ClassificationError:
    """Map an HTTP-style status to the matching error type."""
    if status_code == 429:
        return ServiceRateLimited(message, status_code=status_code)
    if status_code == 402:
        return ServiceQuotaExhausted(message, status_code=status_code)
    return ServiceUnavailable(message, status_code=status_code)
