"""
Bar: a rectangular bar with a mutable orientation.

Axis convention (fixed relative to the conveyor, not to the bar):

    w  width   across the hold window (horizontal)
    l  length  along the conveyor (never constrained by the window)
    h  height  across the hold window (vertical)

Three elementary rotations permute the current extents pairwise::

    Rotation.TOP_TO_FRONT   (1)   swap(l, h)   w fixed
    Rotation.TOP_TO_SIDE    (2)   swap(w, h)   l fixed
    Rotation.FRONT_TO_SIDE  (3)   swap(w, l)   h fixed

Each rotation is an involution and never changes the volume.

Example:
    >>> bar = Bar(2, 3, 4)
    >>> bar.top_to_front().state
    (2, 4, 3)
    >>> bar.volume
    24
"""

from __future__ import annotations

from enum import Enum


class Rotation(Enum):
    """Elementary bar rotation, numbered as on the loading floor."""

    TOP_TO_FRONT = 1
    TOP_TO_SIDE = 2
    FRONT_TO_SIDE = 3

    @property
    def label(self) -> str:
        """Short human label, e.g. ``OP1(top->front)``."""
        return _LABELS[self]


_LABELS = {
    Rotation.TOP_TO_FRONT: "OP1(top->front)",
    Rotation.TOP_TO_SIDE: "OP2(top->side)",
    Rotation.FRONT_TO_SIDE: "OP3(front->side)",
}


class Bar:
    """
    A single bar on the conveyor.

    The original extents are kept for reporting; ``w``, ``l`` and ``h``
    hold the current orientation and change as rotations are applied.
    Extents are assumed positive and finite (checked at the input
    boundary, not here).

    Attributes:
        w, l, h:   Current orientation.
        volume:    w * l * h, computed once at construction.
    """

    __slots__ = ("w", "l", "h", "_initial", "volume")

    def __init__(self, width: float, length: float, height: float) -> None:
        self.w = width
        self.l = length
        self.h = height
        self._initial: tuple[float, float, float] = (width, length, height)
        self.volume: float = width * length * height

    # ── State ─────────────────────────────────────────────────────────────

    @property
    def state(self) -> tuple[float, float, float]:
        """Current ``(w, l, h)`` triple, used as the visited-set key."""
        return (self.w, self.l, self.h)

    @property
    def initial_state(self) -> tuple[float, float, float]:
        """Extents the bar arrived with."""
        return self._initial

    def fits_window(self, width: float, height: float) -> bool:
        """True when the current front face passes a ``width x height`` window."""
        return self.w <= width and self.h <= height

    # ── Rotations ─────────────────────────────────────────────────────────

    def top_to_front(self) -> Bar:
        self.l, self.h = self.h, self.l
        return self

    def top_to_side(self) -> Bar:
        self.w, self.h = self.h, self.w
        return self

    def front_to_side(self) -> Bar:
        self.w, self.l = self.l, self.w
        return self

    def rotate(self, rotation: Rotation) -> Bar:
        """Apply ``rotation`` in place and return the bar."""
        if rotation is Rotation.TOP_TO_FRONT:
            return self.top_to_front()
        if rotation is Rotation.TOP_TO_SIDE:
            return self.top_to_side()
        return self.front_to_side()

    def rotated(self, rotation: Rotation) -> Bar:
        """Copy of this bar with ``rotation`` applied; ``self`` is untouched."""
        return self.copy().rotate(rotation)

    def copy(self) -> Bar:
        clone = Bar.__new__(Bar)
        clone.w, clone.l, clone.h = self.w, self.l, self.h
        clone._initial = self._initial
        clone.volume = self.volume
        return clone

    def __repr__(self) -> str:
        return f"Bar(w={self.w}, l={self.l}, h={self.h}, volume={self.volume})"
