"""Bar orientation model and hold admission engine."""

from .bar import Bar, Rotation
from .hold import (
    Decision,
    DropReason,
    HoldLoader,
    LoadResult,
    OrientationPath,
    OrientationSearchError,
    VOLUME_CAP_RATIO,
)

__all__ = [
    "Bar",
    "Rotation",
    "Decision",
    "DropReason",
    "HoldLoader",
    "LoadResult",
    "OrientationPath",
    "OrientationSearchError",
    "VOLUME_CAP_RATIO",
]
