"""ArenaState — every mutable thing one round owns, in one place.

The Round creates a fresh ArenaState on start and hands it explicitly to
the spawner, the loop and the collision engine.  Nothing else holds
entity lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .entities import Enemy, Particle, Player, Projectile, Viewport


@dataclass
class ArenaState:
    viewport: Viewport
    player: Player | None = None
    projectiles: list[Projectile] = field(default_factory=list)
    enemies: list[Enemy] = field(default_factory=list)
    particles: list[Particle] = field(default_factory=list)
    score: int = 0
    tick: int = 0

    def reset(self) -> None:
        """Empty every collection and place the player at the center."""
        self.projectiles.clear()
        self.enemies.clear()
        self.particles.clear()
        self.score = 0
        self.tick = 0
        cx, cy = self.viewport.center
        self.player = Player(cx, cy)

    def compact(self) -> None:
        """Drop entities whose ``alive`` flag was cleared during the tick."""
        self.projectiles[:] = [p for p in self.projectiles if p.alive]
        self.enemies[:] = [e for e in self.enemies if e.alive]
        self.particles[:] = [p for p in self.particles if p.alive]

    def counts(self) -> dict:
        return {
            "enemies": len(self.enemies),
            "projectiles": len(self.projectiles),
            "particles": len(self.particles),
        }
