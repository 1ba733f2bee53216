"""
hold_loader: bar admission and orientation search for a vehicle hold.

Public API:
    from hold_loader import Bar, Rotation, HoldLoader, LoadResult, Decision, DropReason
    from hold_loader.config import HoldSettings, BarSpec, RunConfig, load_config
    from hold_loader.runner import LoadingSession, generate_bars
"""

from hold_loader.core import (
    Bar,
    Decision,
    DropReason,
    HoldLoader,
    LoadResult,
    OrientationPath,
    OrientationSearchError,
    Rotation,
)

__version__ = "0.1.0"

__all__ = [
    "Bar",
    "Decision",
    "DropReason",
    "HoldLoader",
    "LoadResult",
    "OrientationPath",
    "OrientationSearchError",
    "Rotation",
]
