"""Random bar streams for ad-hoc loading runs."""

import numpy as np

from hold_loader.config import BarSpec, HoldSettings

# Ranges used for randomly drawn holds
HOLD_VOLUME_RANGE = (5000.0, 10000.0)
WINDOW_SIDE_RANGE = (10.0, 30.0)


def generate_bars(
    count: int = 15,
    seed: int | None = None,
    min_dim: float = 1.0,
    max_dim: float = 30.0,
    rng: np.random.Generator | None = None,
) -> list[BarSpec]:
    """
    Generate random bars with uniformly drawn extents.

    Args:
        count: Number of bars to generate
        seed: Random seed for reproducibility (default: None)
        min_dim: Smallest extent (inclusive)
        max_dim: Largest extent (exclusive unless equal to min_dim)
        rng: Generator to draw from; overrides ``seed`` when given

    Returns:
        List of BarSpec in arrival order
    """
    if rng is None:
        rng = np.random.default_rng(seed)
    dims = rng.uniform(min_dim, max_dim, size=(count, 3))

    return [
        BarSpec(width=float(w), length=float(l), height=float(h))
        for w, l, h in dims
    ]


def random_hold_settings(
    seed: int | None = None,
    rng: np.random.Generator | None = None,
) -> HoldSettings:
    """
    Draw a random hold volume and window.

    Pass the same ``rng`` to ``generate_bars`` afterwards so the bar
    stream continues the hold's draws instead of repeating them.

    Args:
        seed: Random seed for reproducibility (default: None)
        rng: Generator to draw from; overrides ``seed`` when given

    Returns:
        HoldSettings with volume in [5000, 10000) and window sides in [10, 30)
    """
    if rng is None:
        rng = np.random.default_rng(seed)
    volume = rng.uniform(*HOLD_VOLUME_RANGE)
    width, height = rng.uniform(*WINDOW_SIDE_RANGE, size=2)

    return HoldSettings(
        hold_volume=float(volume),
        window_width=float(width),
        window_height=float(height),
    )
