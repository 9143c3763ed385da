"""Entity model — Player, Projectile, Enemy, Particle and the Viewport.

Architecture
------------
Every entity is a small mutable dataclass with the same two verbs:

  tick(dt)        advance one frame (dt in seconds, used only by tweens;
                  velocities are per-tick so motion ignores dt)
  draw(renderer)  emit one filled circle

The verbs are captured by the ``Steppable`` protocol rather than a base
class: the loop treats the four kinds uniformly, but each keeps only the
fields it needs.  Entities never remove themselves from the arena.  They
clear their ``alive`` flag and the loop compacts the lists once the tick
is over, so a list is never mutated while it is being iterated.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from .tween import Tween

if TYPE_CHECKING:
    from .render import Renderer

PLAYER_RADIUS = 10.0
PLAYER_COLOR = "white"

PROJECTILE_RADIUS = 5.0
PROJECTILE_SPEED = 5.0
PROJECTILE_COLOR = "white"

ENEMY_SPEED = 1.0

# Particle decay per tick
FRICTION = 0.985
ALPHA_STEP = 0.01

_ids = itertools.count(1)


def _next_id() -> int:
    return next(_ids)


class Steppable(Protocol):
    alive: bool

    def tick(self, dt: float) -> None: ...

    def draw(self, renderer: Renderer) -> None: ...


@dataclass
class Viewport:
    """Visible area in screen units; origin top-left."""

    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"viewport must be positive, got {self.width}x{self.height}")

    @property
    def center(self) -> tuple[float, float]:
        return (self.width / 2, self.height / 2)

    def is_outside(self, x: float, y: float, radius: float) -> bool:
        """True when a circle lies entirely beyond any edge."""
        return (
            x + radius < 0
            or x - radius > self.width
            or y + radius < 0
            or y - radius > self.height
        )


@dataclass
class Player:
    x: float
    y: float
    radius: float = PLAYER_RADIUS
    color: str = PLAYER_COLOR
    alive: bool = True

    def tick(self, dt: float) -> None:
        pass

    def draw(self, renderer: Renderer) -> None:
        renderer.draw_circle(self.x, self.y, self.radius, self.color)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "radius": self.radius, "color": self.color}


@dataclass
class Projectile:
    x: float
    y: float
    velocity: tuple[float, float]
    radius: float = PROJECTILE_RADIUS
    color: str = PROJECTILE_COLOR
    alive: bool = True
    entity_id: int = field(default_factory=_next_id)

    def tick(self, dt: float) -> None:
        self.x += self.velocity[0]
        self.y += self.velocity[1]

    def draw(self, renderer: Renderer) -> None:
        renderer.draw_circle(self.x, self.y, self.radius, self.color)

    def to_dict(self) -> dict:
        return {
            "id": self.entity_id,
            "x": self.x,
            "y": self.y,
            "vx": self.velocity[0],
            "vy": self.velocity[1],
            "radius": self.radius,
        }


@dataclass
class Enemy:
    """A converging enemy.  ``radius`` animates while a shrink tween runs."""

    x: float
    y: float
    velocity: tuple[float, float]
    radius: float
    color: str
    alive: bool = True
    tween: Tween | None = None
    entity_id: int = field(default_factory=_next_id)

    @property
    def target_radius(self) -> float:
        """Radius the enemy is settling toward (current radius if idle)."""
        if self.tween is not None:
            return self.tween.end
        return self.radius

    def shrink_to(self, radius: float) -> None:
        """Start a tween from the current radius to *radius*.

        A second call while a tween is running restarts from the
        in-between value.  Dead enemies are left untouched.
        """
        if not self.alive:
            return
        self.tween = Tween(start=self.radius, end=radius)

    def tick(self, dt: float) -> None:
        if self.tween is not None:
            self.radius = self.tween.advance(dt)
            if self.tween.done:
                self.tween = None
        self.x += self.velocity[0]
        self.y += self.velocity[1]

    def draw(self, renderer: Renderer) -> None:
        renderer.draw_circle(self.x, self.y, self.radius, self.color)

    def to_dict(self) -> dict:
        return {
            "id": self.entity_id,
            "x": self.x,
            "y": self.y,
            "radius": round(self.radius, 3),
            "target_radius": round(self.target_radius, 3),
            "color": self.color,
        }


@dataclass
class Particle:
    x: float
    y: float
    velocity: tuple[float, float]
    radius: float
    color: str
    alpha: float = 1.0
    alive: bool = True

    @property
    def faded(self) -> bool:
        return self.alpha <= 0

    def tick(self, dt: float) -> None:
        vx = self.velocity[0] * FRICTION
        vy = self.velocity[1] * FRICTION
        self.velocity = (vx, vy)
        self.x += vx
        self.y += vy
        self.alpha -= ALPHA_STEP

    def draw(self, renderer: Renderer) -> None:
        renderer.draw_circle(self.x, self.y, self.radius, self.color, max(0.0, self.alpha))
