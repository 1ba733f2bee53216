"""
Hold loader: admission control for bars entering a vehicle hold.

Every bar that reaches the end of the conveyor is either LOADED (possibly
after reorienting it) or DROPPED.  The decision runs three checks in order:

  1. Window feasibility: can any pair of the bar's extents ever be
     presented as (width, height) through the window?  If not, the bar is
     dropped without searching.
  2. Volume cap: a bar larger than half of the *current* remaining
     volume is dropped.
  3. Orientation search: breadth-first search over the orientation
     states reachable with the three elementary rotations, stopping at the
     first state whose width and height pass the window.  The rotation
     sequence found is of minimum length.

A search failure after a positive feasibility check means the two
algorithms disagree.  It is reported as ``DropReason.SEARCH_FAILED``,
counted in ``fault_count`` and logged at ERROR level; ``strict=True``
raises ``OrientationSearchError`` instead of returning.

Usage:
    loader = HoldLoader(1000, 10, 10)
    result = loader.process(5, 5, 5)
    result.decision             # Decision.LOADED
    loader.remaining_volume     # 875.0
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any

from hold_loader.core.bar import Bar, Rotation


# Fraction of the remaining volume a single bar may take.
VOLUME_CAP_RATIO = 0.5

# Order in which successors are generated during the search.
ROTATION_ORDER: tuple[Rotation, ...] = (
    Rotation.TOP_TO_FRONT,
    Rotation.TOP_TO_SIDE,
    Rotation.FRONT_TO_SIDE,
)


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class OrientationSearchError(Exception):
    """Feasibility check passed but no orientation reached the window."""

    def __init__(self, message: str, result: LoadResult) -> None:
        super().__init__(message)
        self.result = result


# ─────────────────────────────────────────────────────────────────────────────
# Results
# ─────────────────────────────────────────────────────────────────────────────

class Decision(str, Enum):
    LOADED = "loaded"
    DROPPED = "dropped"


class DropReason(str, Enum):
    NO_FIT = "no_fit"
    VOLUME_CAP = "volume_cap"
    SEARCH_FAILED = "search_failed"


@dataclass(frozen=True)
class OrientationPath:
    """
    Outcome of a successful orientation search.

    Attributes:
        rotations:        Rotations applied, in order (empty if the bar
                          already fit).
        width, length,
        height:           Final orientation.
        states_explored:  Number of states dequeued, goal included.
    """
    rotations: tuple[Rotation, ...]
    width: float
    length: float
    height: float
    states_explored: int

    def describe(self) -> str:
        """``START -> OP1(top->front) -> ...`` trace for diagnostics."""
        return " -> ".join(["START"] + [r.label for r in self.rotations])


@dataclass(frozen=True)
class LoadResult:
    """
    Outcome of processing one bar.

    Frozen so callers can keep it in logs and reports without copying.
    ``width``/``length``/``height`` are the extents as received.
    """
    decision: Decision
    width: float
    length: float
    height: float
    volume: float
    remaining_after: float
    volume_limit: float
    reason: DropReason | None = None
    path: OrientationPath | None = None

    @property
    def loaded(self) -> bool:
        return self.decision is Decision.LOADED

    @property
    def final_width(self) -> float | None:
        return self.path.width if self.path is not None else None

    @property
    def final_height(self) -> float | None:
        return self.path.height if self.path is not None else None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "decision": self.decision.value,
            "dims": [self.width, self.length, self.height],
            "volume": self.volume,
            "remaining_after": self.remaining_after,
            "volume_limit": self.volume_limit,
        }
        if self.path is not None:
            d["rotations"] = [r.value for r in self.path.rotations]
            d["final_dims"] = [self.path.width, self.path.length, self.path.height]
        if self.reason is not None:
            d["reason"] = self.reason.value
        return d


# ─────────────────────────────────────────────────────────────────────────────
# HoldLoader
# ─────────────────────────────────────────────────────────────────────────────

class HoldLoader:
    """
    Tracks the hold's remaining volume and decides, bar by bar, whether to
    load or drop.

    Inputs are assumed positive and finite; ``hold_loader.config`` validates
    them at the boundary.  Calls to ``process`` must be serialised: the
    counters are read and then written across the three checks.

    Args:
        hold_volume:    Total hold capacity.
        window_width:   Maximum bar width accepted by the window.
        window_height:  Maximum bar height accepted by the window.
        logger:         Optional logger for the decision trace.  ``None``
                        keeps the engine silent.
        strict:         Raise ``OrientationSearchError`` on internal faults.

    Public interface
    ~~~~~~~~~~~~~~~~
    process(w, l, h)         -> LoadResult
    can_ever_fit(d1, d2, d3) -> bool
    exceeds_volume_cap(vol)  -> bool
    find_orientation(bar)    -> OrientationPath | None
    summary()                -> dict
    """

    def __init__(
        self,
        hold_volume: float,
        window_width: float,
        window_height: float,
        logger: logging.Logger | None = None,
        strict: bool = False,
    ) -> None:
        self._hold_volume = hold_volume
        self._remaining_volume = hold_volume
        self._window_width = window_width
        self._window_height = window_height
        self._total_loaded_volume = 0.0
        self._total_dropped_volume = 0.0
        self._loaded_count = 0
        self._dropped_count = 0
        self._fault_count = 0
        self._logger = logger
        self._strict = strict

        self._log(logging.INFO, "Hold created: volume=%.2f, window=%.2f x %.2f",
                  hold_volume, window_width, window_height)

    # -- Read-only state -----------------------------------------------------

    @property
    def hold_volume(self) -> float:
        return self._hold_volume

    @property
    def window_width(self) -> float:
        return self._window_width

    @property
    def window_height(self) -> float:
        return self._window_height

    @property
    def remaining_volume(self) -> float:
        return self._remaining_volume

    @property
    def total_loaded_volume(self) -> float:
        return self._total_loaded_volume

    @property
    def total_dropped_volume(self) -> float:
        return self._total_dropped_volume

    @property
    def loaded_count(self) -> int:
        return self._loaded_count

    @property
    def dropped_count(self) -> int:
        return self._dropped_count

    @property
    def fault_count(self) -> int:
        """Bars dropped because the search disagreed with the feasibility check."""
        return self._fault_count

    @property
    def processed_count(self) -> int:
        return self._loaded_count + self._dropped_count

    # -- Checks --------------------------------------------------------------

    def can_ever_fit(self, d1: float, d2: float, d3: float) -> bool:
        """
        True if some ordered pair of the extents passes the window as
        (width, height).  The remaining extent becomes the length, which
        the window does not constrain.

        The six pairs are exactly the (w, h) faces the rotation search can
        reach, so the two checks must stay in step.
        """
        win_w = self._window_width
        win_h = self._window_height
        pairs = (
            (d1, d2), (d1, d3),
            (d2, d1), (d2, d3),
            (d3, d1), (d3, d2),
        )
        return any(w <= win_w and h <= win_h for w, h in pairs)

    def volume_limit(self) -> float:
        """Largest volume a bar may have right now."""
        return VOLUME_CAP_RATIO * self._remaining_volume

    def exceeds_volume_cap(self, volume: float) -> bool:
        return volume > self.volume_limit()

    def find_orientation(self, bar: Bar) -> OrientationPath | None:
        """
        Breadth-first search for an orientation that passes the window.

        States are ``(w, l, h)`` triples; successors come from rotations
        1, 2, 3 in that order and are enqueued only if unseen.  The three
        rotations generate at most six distinct triples, so the search
        always terminates.  ``bar`` itself is not modified.

        Returns:
            OrientationPath for the first goal state dequeued (minimum
            number of rotations), or None if the queue drains.
        """
        queue: deque[tuple[Bar, tuple[Rotation, ...]]] = deque()
        visited: set[tuple[float, float, float]] = {bar.state}
        queue.append((bar.copy(), ()))
        explored = 0

        while queue:
            current, rotations = queue.popleft()
            explored += 1

            if current.fits_window(self._window_width, self._window_height):
                return OrientationPath(
                    rotations=rotations,
                    width=current.w,
                    length=current.l,
                    height=current.h,
                    states_explored=explored,
                )

            for rotation in ROTATION_ORDER:
                successor = current.rotated(rotation)
                if successor.state not in visited:
                    visited.add(successor.state)
                    queue.append((successor, rotations + (rotation,)))

        return None

    # -- Processing ----------------------------------------------------------

    def process(self, w: float, l: float, h: float) -> LoadResult:
        """
        Decide the fate of one bar and update the counters.

        Returns:
            LoadResult describing the decision.

        Raises:
            OrientationSearchError: Only with ``strict=True``, when the
                search fails for a bar that passed the feasibility check.
                The bar has already been counted as dropped.
        """
        bar = Bar(w, l, h)
        volume = bar.volume
        limit = self.volume_limit()

        self._log(logging.DEBUG, "-" * 40)
        self._log(logging.INFO, "Bar (w=%.2f, l=%.2f, h=%.2f), volume %.2f, hold remaining %.2f",
                  w, l, h, volume, self._remaining_volume)

        if not self.can_ever_fit(w, l, h):
            self._log(logging.INFO, "DROPPED: does not pass the window in any orientation")
            return self._drop(bar, limit, DropReason.NO_FIT)

        if self.exceeds_volume_cap(volume):
            self._log(logging.INFO, "DROPPED: volume %.2f > 50%% of remaining (%.2f)",
                      volume, limit)
            return self._drop(bar, limit, DropReason.VOLUME_CAP)

        path = self.find_orientation(bar)
        if path is None:
            self._fault_count += 1
            self._log(logging.ERROR,
                      "Logic fault: bar (%s, %s, %s) passed the window check but no "
                      "orientation was found", w, l, h)
            result = self._drop(bar, limit, DropReason.SEARCH_FAILED)
            if self._strict:
                raise OrientationSearchError(
                    f"No orientation found for feasible bar ({w}, {l}, {h})", result,
                )
            return result

        self._remaining_volume -= volume
        self._total_loaded_volume += volume
        self._loaded_count += 1

        self._log(logging.DEBUG, "Path found: %s", path.describe())
        self._log(logging.INFO, "LOADED (final orientation w=%.2f, h=%.2f)",
                  path.width, path.height)

        return LoadResult(
            decision=Decision.LOADED,
            width=w,
            length=l,
            height=h,
            volume=volume,
            remaining_after=self._remaining_volume,
            volume_limit=limit,
            path=path,
        )

    def summary(self) -> dict[str, Any]:
        """Final-report numbers for the hold."""
        fill_pct = (
            self._total_loaded_volume / self._hold_volume * 100
            if self._hold_volume else 0.0
        )
        return {
            "hold_volume": self._hold_volume,
            "window": [self._window_width, self._window_height],
            "total_loaded_volume": self._total_loaded_volume,
            "total_dropped_volume": self._total_dropped_volume,
            "remaining_volume": self._remaining_volume,
            "processed": self.processed_count,
            "loaded": self._loaded_count,
            "dropped": self._dropped_count,
            "faults": self._fault_count,
            "fill_pct": round(fill_pct, 4),
        }

    # -- Internal ------------------------------------------------------------

    def _drop(self, bar: Bar, limit: float, reason: DropReason) -> LoadResult:
        self._total_dropped_volume += bar.volume
        self._dropped_count += 1
        w, l, h = bar.initial_state
        return LoadResult(
            decision=Decision.DROPPED,
            width=w,
            length=l,
            height=h,
            volume=bar.volume,
            remaining_after=self._remaining_volume,
            volume_limit=limit,
            reason=reason,
        )

    def _log(self, level: int, msg: str, *args: Any) -> None:
        if self._logger is not None:
            self._logger.log(level, msg, *args)

    def __repr__(self) -> str:
        return (
            f"HoldLoader(hold={self._hold_volume:.2f}, "
            f"window={self._window_width:.2f}x{self._window_height:.2f}, "
            f"remaining={self._remaining_volume:.2f}, "
            f"loaded={self._loaded_count}, dropped={self._dropped_count})"
        )
