"""Classification Service module for frameshop.

Provides a transport-agnostic interface for sending a captured frame to
a vision classification service and receiving validated product
candidates, plus the defensive parser every implementation shares.

Public API:
    ClassificationService -- Abstract base class
    ClassificationRequest -- Wire request model
    ClassificationError -- Base failure, with ServiceRateLimited,
        ServiceQuotaExhausted and ServiceUnavailable
    HttpClassificationService -- Remote scan-products endpoint client
    VisionClassifier -- OpenAI-compatible vision model implementation
    parse_products -- Defensive result parsing
"""

from frameshop.classifier.base import (
    ClassificationError,
    ClassificationRequest,
    ClassificationService,
    ServiceQuotaExhausted,
    ServiceRateLimited,
    ServiceUnavailable,
    error_for_status,
)
from frameshop.classifier.parsing import parse_products, purchase_url_for, strip_code_fence

__all__ = [
    "ClassificationError",
    "ClassificationRequest",
    "ClassificationService",
    "HttpClassificationService",
    "ServiceQuotaExhausted",
    "ServiceRateLimited",
    "ServiceUnavailable",
    "VisionClassifier",
    "error_for_status",
    "parse_products",
    "purchase_url_for",
    "strip_code_fence",
]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "HttpClassificationService":
        from frameshop.classifier.http import HttpClassificationService
        return HttpClassificationService
    if name == "VisionClassifier":
        from frameshop.classifier.vision import VisionClassifier
        return VisionClassifier
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
