"""frameshop -- Shoppable-frame video viewer.

This package plays videos from a personal library through one of two
playback backends (a locally decoded media element or a third-party
embedded player), freezes a frame on request, sends it to a vision
classification service and lays the discovered products out as
overlays on the video canvas.
"""

__version__ = "0.1.0"
