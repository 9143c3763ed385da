"""Round — the idle/running/game_over state machine.

Architecture
------------
Round owns everything a play session needs: the ArenaState, the
EnemySpawner (interval timer) and the SimulationLoop (frame request).

  idle --start--> running --player contact--> game_over --start--> running
  any  --reset--> idle

Entering running resets score, empties every collection, places the
player at the viewport center, starts the spawner and requests the first
frame.  Leaving running tears both handles down together, so outside
running there is neither a timer nor a pending frame.

Input:
  - ``start()``  rejected (returns False) while already running
  - ``fire(x, y)``  only while running; projectile leaves the player
    toward (x, y) at ``PROJECTILE_SPEED``

Events published on EventBus:
  - ``game_state_change``: any state transition
  - ``projectile_fired``: accepted fire input
  - ``game_over``: final score on player contact

All methods must run on the clock's execution context.  Other threads go
through ``clock.call_soon(round.start)`` and friends.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from .collision import CollisionEngine
from .entities import PROJECTILE_SPEED, Projectile, Viewport
from .geometry import velocity_from_angle
from .loop import SimulationLoop
from .spawner import SPAWN_INTERVAL_MS, EnemySpawner
from .state import ArenaState

if TYPE_CHECKING:
    from comms.event_bus import EventBus
    from .clock import ManualClock
    from .entities import Enemy
    from .render import Renderer


class Round:
    """Game state machine + ownership of spawner and loop."""

    STATES = ("idle", "running", "game_over")

    def __init__(
        self,
        clock: ManualClock,
        viewport: Viewport,
        event_bus: EventBus | None = None,
        renderer: Renderer | None = None,
        spawn_interval_ms: float = SPAWN_INTERVAL_MS,
    ) -> None:
        self._clock = clock
        self._event_bus = event_bus
        self._renderer = renderer
        self._spawn_interval_ms = spawn_interval_ms
        self._collisions = CollisionEngine(event_bus)
        self._spawner: EnemySpawner | None = None
        self._loop: SimulationLoop | None = None

        self.arena = ArenaState(viewport)
        self.state: str = "idle"
        self.final_score: int | None = None
        self.rounds_played = 0

    # -- Read side --------------------------------------------------------------

    @property
    def clock(self) -> ManualClock:
        return self._clock

    @property
    def score(self) -> int:
        return self.arena.score

    @property
    def is_over(self) -> bool:
        return self.state == "game_over"

    @property
    def spawner(self) -> EnemySpawner | None:
        return self._spawner

    @property
    def loop(self) -> SimulationLoop | None:
        return self._loop

    @property
    def spawn_handle(self) -> int | None:
        return self._spawner.handle if self._spawner is not None else None

    @property
    def frame_handle(self) -> int | None:
        return self._loop.handle if self._loop is not None else None

    def get_state(self) -> dict:
        """Return serializable round state for API/frontend."""
        player = self.arena.player
        return {
            "state": self.state,
            "score": self.score,
            "is_over": self.is_over,
            "final_score": self.final_score,
            "tick": self.arena.tick,
            "rounds_played": self.rounds_played,
            "viewport": {
                "width": self.arena.viewport.width,
                "height": self.arena.viewport.height,
            },
            "player": player.to_dict() if player is not None else None,
            **self.arena.counts(),
        }

    # -- Commands ---------------------------------------------------------------

    def start(self) -> bool:
        """Begin a new round from idle or game_over."""
        if self.state == "running":
            logger.debug("Start ignored: round already running")
            return False

        self._teardown()
        self.arena.reset()
        self.final_score = None

        self._spawner = EnemySpawner(
            self.arena, self._clock, self._event_bus, self._spawn_interval_ms
        )
        self._loop = SimulationLoop(
            self.arena,
            self._clock,
            renderer=self._renderer,
            collisions=self._collisions,
            on_player_contact=self._on_player_contact,
        )
        self.state = "running"
        self.rounds_played += 1
        self._spawner.start()
        self._loop.start()

        logger.info(f"Round {self.rounds_played} started")
        self._publish_state_change()
        self._publish("score_changed", {"score": self.score})
        return True

    def fire(self, x: float, y: float) -> Projectile | None:
        """Launch a projectile from the player toward (x, y)."""
        player = self.arena.player
        if self.state != "running" or player is None:
            return None
        velocity = velocity_from_angle((player.x, player.y), (x, y), PROJECTILE_SPEED)
        projectile = Projectile(player.x, player.y, velocity)
        self.arena.projectiles.append(projectile)
        self._publish("projectile_fired", {
            "id": projectile.entity_id,
            "target": {"x": x, "y": y},
            "velocity": {"x": velocity[0], "y": velocity[1]},
        })
        return projectile

    def end(self) -> None:
        """Transition running -> game_over."""
        if self.state != "running":
            return
        self._teardown()
        self.state = "game_over"
        self.final_score = self.score
        logger.info(f"Game over: score {self.final_score} after {self.arena.tick} ticks")
        self._publish("game_over", {
            "final_score": self.final_score,
            "ticks": self.arena.tick,
        })
        self._publish_state_change()

    def reset(self) -> None:
        """Back to idle from any state, clearing the arena."""
        self._teardown()
        self.arena.reset()
        self.arena.player = None
        self.state = "idle"
        self.final_score = None
        self._publish_state_change()

    # -- Internals --------------------------------------------------------------

    def _on_player_contact(self, enemy: Enemy) -> None:
        logger.debug(f"Enemy {enemy.entity_id} reached the player")
        self.end()

    def _teardown(self) -> None:
        if self._loop is not None:
            self._loop.stop()
            self._loop = None
        if self._spawner is not None:
            self._spawner.stop()
            self._spawner = None

    def _publish(self, event_type: str, data: dict) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event_type, data)

    def _publish_state_change(self) -> None:
        self._publish("game_state_change", self.get_state())
