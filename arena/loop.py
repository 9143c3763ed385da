"""SimulationLoop — one tick per frame while a round is running.

Tick order (fixed):

  1. clear/fade the surface
  2. player            draw only, never moves
  3. particles         faded -> removed, else decay + move + draw
  4. projectiles       move; fully off-screen -> removed; else draw
  5. enemies           advance radius tween, move, draw
  6. terminal check    enemy touching player -> round over, stop here
  7. collisions        projectile hits resolved into intents, applied
  8. compact           dead entities leave their lists

Removal during steps 3-7 only clears ``alive`` flags; step 8 is the one
place lists shrink, so every removal is visible from the next tick on.

The loop re-requests its frame at the start of each tick, the same way a
display-refresh callback does.  ``stop()`` cancels that pending request,
so once the round has ended no further tick runs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from .collision import CollisionEngine
from .render import NullRenderer

if TYPE_CHECKING:
    from .clock import ManualClock
    from .entities import Enemy
    from .render import Renderer
    from .state import ArenaState


class SimulationLoop:
    """Frame-driven integrator for one ArenaState."""

    def __init__(
        self,
        state: ArenaState,
        clock: ManualClock,
        renderer: Renderer | None = None,
        collisions: CollisionEngine | None = None,
        on_player_contact: Callable[[Enemy], None] | None = None,
    ) -> None:
        self._state = state
        self._clock = clock
        self._renderer = renderer or NullRenderer()
        self._collisions = collisions or CollisionEngine()
        self._on_player_contact = on_player_contact
        self._handle: int | None = None
        self._running = False
        self._last_timestamp: float | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def handle(self) -> int | None:
        return self._handle

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._last_timestamp = None
        self._handle = self._clock.request_frame(self._on_frame)

    def stop(self) -> None:
        self._running = False
        self._clock.cancel_frame(self._handle)
        self._handle = None

    def _on_frame(self, timestamp: float) -> None:
        if not self._running:
            return
        self._handle = self._clock.request_frame(self._on_frame)
        if self._last_timestamp is None:
            dt = self._clock.frame_interval_ms / 1000.0
        else:
            dt = (timestamp - self._last_timestamp) / 1000.0
        self._last_timestamp = timestamp
        self.tick(dt)

    def tick(self, dt: float) -> bool:
        """Run one simulation step.  Returns False if the player was touched."""
        state = self._state
        renderer = self._renderer
        viewport = state.viewport

        renderer.clear(viewport.width, viewport.height)

        if state.player is not None:
            state.player.tick(dt)
            state.player.draw(renderer)

        for particle in state.particles:
            if not particle.alive:
                continue
            if particle.faded:
                particle.alive = False
                continue
            particle.tick(dt)
            particle.draw(renderer)

        for projectile in state.projectiles:
            if not projectile.alive:
                continue
            projectile.tick(dt)
            if viewport.is_outside(projectile.x, projectile.y, projectile.radius):
                projectile.alive = False
                continue
            projectile.draw(renderer)

        for enemy in state.enemies:
            if not enemy.alive:
                continue
            enemy.tick(dt)
            enemy.draw(renderer)

        contact = self._collisions.player_contact(state)
        if contact is not None:
            self._finish_tick()
            if self._on_player_contact is not None:
                self._on_player_contact(contact)
            return False

        impacts = self._collisions.resolve_hits(state)
        if impacts:
            self._collisions.apply(state, impacts)

        self._finish_tick()
        return True

    def _finish_tick(self) -> None:
        self._state.compact()
        self._state.tick += 1
        self._renderer.present(self._state.tick)
