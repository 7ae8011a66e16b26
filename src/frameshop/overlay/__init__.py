"""Overlay Layout Engine for frameshop.

Public API:
    OverlayLayout -- Bucketed-jitter placement of scan results
"""

from frameshop.overlay.layout import OverlayLayout

__all__ = ["OverlayLayout"]
