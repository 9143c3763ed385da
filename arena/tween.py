"""Tween — explicit, time-bounded property animation.

A Tween holds (start, end, duration, easing) and is advanced once per
tick by the owner of the animated property.  Nothing runs in the
background: if the owner stops ticking, the animation freezes.

The enemy radius shrink is the only consumer today.  Default timing
matches the classic canvas-tween feel: 0.5 s with a quadratic ease-out.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

DEFAULT_DURATION = 0.5  # seconds
DEFAULT_EASING = "power1.out"


def _linear(t: float) -> float:
    return t


def _power1_out(t: float) -> float:
    return 1.0 - (1.0 - t) ** 2


def _power2_out(t: float) -> float:
    return 1.0 - (1.0 - t) ** 3


def _power1_in_out(t: float) -> float:
    if t < 0.5:
        return 2.0 * t * t
    return 1.0 - ((-2.0 * t + 2.0) ** 2) / 2.0


EASINGS: dict[str, Callable[[float], float]] = {
    "linear": _linear,
    "power1.out": _power1_out,
    "power2.out": _power2_out,
    "power1.inOut": _power1_in_out,
}


@dataclass
class Tween:
    """Interpolates a float from *start* to *end* over *duration* seconds."""

    start: float
    end: float
    duration: float = DEFAULT_DURATION
    easing: str = DEFAULT_EASING
    elapsed: float = 0.0

    def __post_init__(self) -> None:
        if self.duration <= 0:
            raise ValueError(f"tween duration must be positive, got {self.duration}")
        if self.easing not in EASINGS:
            raise ValueError(f"unknown easing: {self.easing}")

    @property
    def done(self) -> bool:
        return self.elapsed >= self.duration

    @property
    def progress(self) -> float:
        return min(1.0, self.elapsed / self.duration)

    @property
    def value(self) -> float:
        if self.done:
            return self.end
        eased = EASINGS[self.easing](self.progress)
        return self.start + (self.end - self.start) * eased

    def advance(self, dt: float) -> float:
        """Move the animation forward by *dt* seconds and return the new value."""
        if dt > 0:
            self.elapsed = min(self.duration, self.elapsed + dt)
        return self.value
