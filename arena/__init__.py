"""Arena simulation engine — converging enemies, projectiles, particles.

Package layout:
  geometry.py   — distance, ranged random draws, aimed velocities
  entities.py   — Player / Projectile / Enemy / Particle + Viewport
  tween.py      — per-tick property animation (enemy radius shrink)
  state.py      — ArenaState (entity lists + score owned by one round)
  spawner.py    — EnemySpawner (interval timer, off-screen spawns)
  collision.py  — CollisionEngine (contact tests, explosions, damage)
  loop.py       — SimulationLoop (one tick per frame)
  round.py      — Round (idle / running / game_over state machine)
  clock.py      — ManualClock / RealtimeClock (frames + interval timers)
  render.py     — Renderer protocol, NullRenderer, FrameRecorder
"""

from .clock import ClockStopped, ManualClock, RealtimeClock
from .collision import CollisionEngine, Impact
from .entities import Enemy, Particle, Player, Projectile, Viewport
from .loop import SimulationLoop
from .render import FrameRecorder, NullRenderer, Renderer
from .round import Round
from .spawner import EnemySpawner
from .state import ArenaState
from .tween import Tween

__all__ = [
    "ArenaState",
    "ClockStopped",
    "CollisionEngine",
    "Enemy",
    "EnemySpawner",
    "FrameRecorder",
    "Impact",
    "ManualClock",
    "NullRenderer",
    "Particle",
    "Player",
    "Projectile",
    "RealtimeClock",
    "Renderer",
    "Round",
    "SimulationLoop",
    "Tween",
    "Viewport",
]
