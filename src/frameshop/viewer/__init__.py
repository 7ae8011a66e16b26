"""Viewer module for frameshop.

Public API:
    ViewerSession -- One open video with its playback and scan state
    ViewerSnapshot -- Render snapshot of the player page
    build_viewer -- Assemble a viewer from settings
"""

from frameshop.viewer.builder import build_classifier, build_library, build_viewer
from frameshop.viewer.session import ViewerSession, ViewerSnapshot

__all__ = [
    "ViewerSession",
    "ViewerSnapshot",
    "build_classifier",
    "build_library",
    "build_viewer",
]
