"""Domain models for frameshop.

This package contains all core data structures, enumerations, and value
objects used throughout the system. All models use Pydantic v2 for
validation and serialization.
"""

from frameshop.domain.models import (
    BackendKind,
    CapturedFrame,
    FailureReason,
    FramePayload,
    OverlayPosition,
    PayloadKind,
    PlaybackState,
    Product,
    ProductCandidate,
    ScanSession,
    ScanStatus,
    VideoSource,
)

__all__ = [
    "BackendKind",
    "CapturedFrame",
    "FailureReason",
    "FramePayload",
    "OverlayPosition",
    "PayloadKind",
    "PlaybackState",
    "Product",
    "ProductCandidate",
    "ScanSession",
    "ScanStatus",
    "VideoSource",
]
