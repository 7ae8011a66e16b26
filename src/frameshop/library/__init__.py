"""Library Sync module for frameshop.

The video library itself lives in an external store; this package
defines the store interface, two implementations, and the session-local
cache that keeps the displayed list consistent with mutations.

Public API:
    LibraryStore -- Abstract base class
    InMemoryLibraryStore -- Process-local store
    RestLibraryStore -- PostgREST-style HTTP store
    VideoLibrary -- Read-your-writes cache
"""

from frameshop.library.base import LibraryError, LibraryStore, VideoNotFoundError
from frameshop.library.memory import InMemoryLibraryStore
from frameshop.library.models import NewVideo, ScannedProductRecord, VideoRecord
from frameshop.library.sync import VideoLibrary

__all__ = [
    "InMemoryLibraryStore",
    "LibraryError",
    "LibraryStore",
    "NewVideo",
    "RestLibraryStore",
    "ScannedProductRecord",
    "VideoLibrary",
    "VideoNotFoundError",
    "VideoRecord",
]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "RestLibraryStore":
        from frameshop.library.rest import RestLibraryStore
        return RestLibraryStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
