"""Rendering collaborators for the simulation loop.

The loop only knows three primitives: ``clear`` (fade the surface),
``draw_circle`` (filled circle with alpha) and ``present`` (end of
frame).  Anything that implements them can sit behind the loop:

  NullRenderer   — discards everything (benchmarks, pure logic tests)
  FrameRecorder  — captures each frame as a list of circles and, when
                   given an EventBus, publishes it as a ``frame`` event
                   for WebSocket clients that paint their own canvas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from comms.event_bus import EventBus

# Trail effect: each clear paints black at this alpha instead of wiping
FADE_ALPHA = 0.1


class Renderer(Protocol):
    def clear(self, width: float, height: float) -> None: ...

    def draw_circle(
        self, x: float, y: float, radius: float, color: str, alpha: float = 1.0
    ) -> None: ...

    def present(self, tick: int) -> None: ...


class NullRenderer:
    """Renderer that draws nothing."""

    def clear(self, width: float, height: float) -> None:
        pass

    def draw_circle(
        self, x: float, y: float, radius: float, color: str, alpha: float = 1.0
    ) -> None:
        pass

    def present(self, tick: int) -> None:
        pass


@dataclass
class Circle:
    x: float
    y: float
    radius: float
    color: str
    alpha: float = 1.0

    def to_dict(self) -> dict:
        return {
            "x": round(self.x, 2),
            "y": round(self.y, 2),
            "r": round(self.radius, 2),
            "color": self.color,
            "alpha": round(self.alpha, 3),
        }


@dataclass
class Frame:
    tick: int
    width: float
    height: float
    fade_alpha: float = FADE_ALPHA
    circles: list[Circle] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "tick": self.tick,
            "width": self.width,
            "height": self.height,
            "fade_alpha": self.fade_alpha,
            "circles": [c.to_dict() for c in self.circles],
        }


class FrameRecorder:
    """Records draw calls per frame; optionally publishes them on an EventBus."""

    def __init__(self, event_bus: EventBus | None = None) -> None:
        self._event_bus = event_bus
        self._current: Frame | None = None
        self.last_frame: Frame | None = None
        self.frame_count = 0

    def clear(self, width: float, height: float) -> None:
        self._current = Frame(tick=-1, width=width, height=height)

    def draw_circle(
        self, x: float, y: float, radius: float, color: str, alpha: float = 1.0
    ) -> None:
        if self._current is None:
            return
        self._current.circles.append(
            Circle(x, y, radius, color, max(0.0, min(1.0, alpha)))
        )

    def present(self, tick: int) -> None:
        if self._current is None:
            return
        self._current.tick = tick
        self.last_frame = self._current
        self._current = None
        self.frame_count += 1
        if self._event_bus is not None:
            self._event_bus.publish("frame", self.last_frame.to_dict())
