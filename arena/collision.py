"""CollisionEngine — contact tests, explosions, and tiered enemy damage.

Architecture
------------
Collision handling is split in two phases so that no entity list is
mutated while the loop is iterating over it:

  1. ``resolve_hits()`` walks every (live enemy, live projectile) pair and
     returns a list of Impact intents.  It only reads the arena; it keeps
     local bookkeeping so a projectile is consumed by one enemy at most,
     a destroyed enemy is skipped for the remaining pairs, and several
     hits on one enemy in the same tick compose.

  2. ``apply()`` turns the intents into effects: explosion particles are
     added, enemies shrink (via a radius tween) or die, projectiles die,
     score increases.  Dead entities keep sitting in their lists with
     ``alive=False`` until the loop compacts them at the end of the tick.

Damage tiers:
  - target radius - 10 > 5   enemy shrinks by 10 (tweened), survives
  - otherwise                enemy destroyed, +100 score

The threshold is evaluated against the radius the enemy is settling
toward, not the in-between tween value, so hits landing mid-animation
still step the radius down in exact increments of 10.

Events published on the EventBus:
  - ``enemy_hit``: enemy shrank
  - ``enemy_destroyed``: enemy removed by a hit
  - ``score_changed``: after every score increment
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger

from .entities import Enemy, Particle, Projectile
from .geometry import distance

if TYPE_CHECKING:
    from comms.event_bus import EventBus
    from .state import ArenaState

DAMAGE_PER_HIT = 10.0
SHRINK_THRESHOLD = 5.0
SCORE_PER_KILL = 100

PARTICLES_PER_RADIUS = 2
PARTICLE_MAX_SPEED = 8.0
PARTICLE_MAX_RADIUS = 2.0


@dataclass
class Impact:
    """One projectile striking one enemy, before its effects are applied."""

    enemy: Enemy
    projectile: Projectile
    destroyed: bool
    new_radius: float
    particles: list[Particle] = field(default_factory=list)


def explode(enemy: Enemy) -> list[Particle]:
    """Burst of particles at *enemy*'s position in its color."""
    count = math.ceil(enemy.radius * PARTICLES_PER_RADIUS)
    particles = []
    for _ in range(count):
        velocity = (
            (random.random() - 0.5) * (random.random() * PARTICLE_MAX_SPEED),
            (random.random() - 0.5) * (random.random() * PARTICLE_MAX_SPEED),
        )
        radius = random.random() * PARTICLE_MAX_RADIUS
        while radius <= 0:
            radius = random.random() * PARTICLE_MAX_RADIUS
        particles.append(Particle(enemy.x, enemy.y, velocity, radius, enemy.color))
    return particles


def touches(ax: float, ay: float, ar: float, bx: float, by: float, br: float) -> bool:
    return distance(ax, ay, bx, by) < ar + br


class CollisionEngine:
    """Finds contacts in an ArenaState and applies their consequences."""

    def __init__(self, event_bus: EventBus | None = None) -> None:
        self._event_bus = event_bus

    def player_contact(self, state: ArenaState) -> Enemy | None:
        """First live enemy overlapping the player, if any."""
        player = state.player
        if player is None:
            return None
        for enemy in state.enemies:
            if enemy.alive and touches(
                enemy.x, enemy.y, enemy.radius, player.x, player.y, player.radius
            ):
                return enemy
        return None

    def resolve_hits(self, state: ArenaState) -> list[Impact]:
        impacts: list[Impact] = []
        consumed: set[int] = set()
        pending_radius: dict[int, float] = {}

        for enemy in state.enemies:
            if not enemy.alive:
                continue
            for projectile in state.projectiles:
                if not projectile.alive or projectile.entity_id in consumed:
                    continue
                if not touches(
                    enemy.x, enemy.y, enemy.radius,
                    projectile.x, projectile.y, projectile.radius,
                ):
                    continue

                consumed.add(projectile.entity_id)
                settled = pending_radius.get(enemy.entity_id, enemy.target_radius)
                new_radius = settled - DAMAGE_PER_HIT
                destroyed = new_radius <= SHRINK_THRESHOLD
                pending_radius[enemy.entity_id] = new_radius
                impacts.append(Impact(
                    enemy=enemy,
                    projectile=projectile,
                    destroyed=destroyed,
                    new_radius=new_radius,
                    particles=explode(enemy),
                ))
                if destroyed:
                    break

        return impacts

    def apply(self, state: ArenaState, impacts: list[Impact]) -> int:
        """Apply *impacts* to *state*.  Returns the score gained."""
        gained = 0
        for impact in impacts:
            enemy = impact.enemy
            state.particles.extend(impact.particles)
            impact.projectile.alive = False

            if not enemy.alive:
                continue

            if impact.destroyed:
                enemy.alive = False
                enemy.tween = None
                state.score += SCORE_PER_KILL
                gained += SCORE_PER_KILL
                logger.debug(f"Enemy {enemy.entity_id} destroyed, score {state.score}")
                self._publish("enemy_destroyed", {
                    "enemy_id": enemy.entity_id,
                    "position": {"x": enemy.x, "y": enemy.y},
                    "color": enemy.color,
                })
                self._publish("score_changed", {"score": state.score})
            else:
                enemy.shrink_to(impact.new_radius)
                self._publish("enemy_hit", {
                    "enemy_id": enemy.entity_id,
                    "radius": enemy.radius,
                    "target_radius": impact.new_radius,
                })
        return gained

    def _publish(self, event_type: str, data: dict) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event_type, data)
