"""EnemySpawner — one enemy per interval, from just beyond a random edge.

Each spawn picks a radius in [10, 30], places the enemy outside the
viewport by exactly its radius, and aims it at the viewport center at
``ENEMY_SPEED`` units per tick.  Half the spawns come from the left or
right edge, half from the top or bottom edge.

The spawner runs on the clock's interval timer.  ``stop()`` clears the
timer and also flips an internal flag, so a callback that was already
due when the round ended still creates nothing.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from loguru import logger

from .entities import ENEMY_SPEED, Enemy, Viewport
from .geometry import random_in_range, velocity_from_angle

if TYPE_CHECKING:
    from comms.event_bus import EventBus
    from .clock import ManualClock
    from .state import ArenaState

SPAWN_INTERVAL_MS = 1000.0
ENEMY_MIN_RADIUS = 10.0
ENEMY_MAX_RADIUS = 30.0


def random_edge_position(radius: float, viewport: Viewport) -> tuple[float, float]:
    """Return a point just outside one of the four viewport edges."""
    if random.random() < 0.5:
        x = -radius if random.random() < 0.5 else viewport.width + radius
        y = random_in_range(0, viewport.height)
    else:
        x = random_in_range(0, viewport.width)
        # bottom edge is height + radius, not width + radius
        y = -radius if random.random() < 0.5 else viewport.height + radius
    return (x, y)


def random_enemy_color() -> str:
    return f"hsl({random.random() * 360:.1f}, 50%, 50%)"


class EnemySpawner:
    """Periodic enemy factory bound to one round's ArenaState."""

    def __init__(
        self,
        state: ArenaState,
        clock: ManualClock,
        event_bus: EventBus | None = None,
        interval_ms: float = SPAWN_INTERVAL_MS,
    ) -> None:
        self._state = state
        self._clock = clock
        self._event_bus = event_bus
        self._interval_ms = interval_ms
        self._handle: int | None = None
        self._active = False
        self.spawned = 0

    @property
    def active(self) -> bool:
        return self._active

    @property
    def handle(self) -> int | None:
        return self._handle

    def start(self) -> None:
        if self._active:
            return
        self._active = True
        self._handle = self._clock.set_interval(self._on_interval, self._interval_ms)

    def stop(self) -> None:
        self._active = False
        self._clock.clear_interval(self._handle)
        self._handle = None

    def _on_interval(self) -> None:
        if not self._active:
            return
        self.spawn_enemy()

    def spawn_enemy(self) -> Enemy:
        """Create one enemy now and append it to the live list."""
        viewport = self._state.viewport
        radius = random_in_range(ENEMY_MIN_RADIUS, ENEMY_MAX_RADIUS)
        x, y = random_edge_position(radius, viewport)
        velocity = velocity_from_angle((x, y), viewport.center, ENEMY_SPEED)
        enemy = Enemy(x, y, velocity, radius, random_enemy_color())
        self._state.enemies.append(enemy)
        self.spawned += 1
        logger.debug(f"Enemy {enemy.entity_id} spawned at ({x:.0f}, {y:.0f}) r={radius:.1f}")
        if self._event_bus is not None:
            self._event_bus.publish("enemy_spawned", enemy.to_dict())
        return enemy
