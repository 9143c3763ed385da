"""Geometry helpers shared by the spawner, loop and collision engine.

All coordinates are screen units (x right, y down).  Velocities are
expressed in units per tick, so ``velocity_from_angle(..., speed=5)``
moves an entity 5 units every frame.
"""

from __future__ import annotations

import math
import random


def random_in_range(min_value: float, max_value: float) -> float:
    """Return a uniform float in ``[ceil(min_value), floor(max_value)]``.

    The bounds are rounded inward but the draw itself is continuous.
    """
    lo = math.ceil(min_value)
    hi = math.floor(max_value)
    if hi < lo:
        raise ValueError(f"empty range [{min_value}, {max_value}]")
    return random.uniform(lo, hi)


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(bx - ax, by - ay)


def velocity_from_angle(
    start: tuple[float, float],
    end: tuple[float, float],
    speed: float,
) -> tuple[float, float]:
    """Velocity of magnitude *speed* pointing from *start* toward *end*.

    Coincident points give atan2(0, 0) == 0, i.e. ``(speed, 0.0)``.
    """
    if speed <= 0:
        raise ValueError(f"speed must be positive, got {speed}")
    angle = math.atan2(end[1] - start[1], end[0] - start[0])
    return (math.cos(angle) * speed, math.sin(angle) * speed)
