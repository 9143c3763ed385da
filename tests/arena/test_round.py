"""Unit tests for Round — the idle/running/game_over state machine."""

from __future__ import annotations

import math
import queue
import random

import pytest

from arena.clock import ManualClock
from arena.collision import SCORE_PER_KILL
from arena.entities import Enemy, Projectile, Viewport
from arena.render import FrameRecorder
from arena.round import Round
from comms.event_bus import EventBus

pytestmark = pytest.mark.unit


def _make_round(width: float = 1000, height: float = 1000):
    bus = EventBus()
    clock = ManualClock()
    recorder = FrameRecorder()
    arena_round = Round(clock, Viewport(width, height), event_bus=bus, renderer=recorder)
    return bus, clock, recorder, arena_round


def _drain(q: queue.Queue) -> list[dict]:
    msgs = []
    while True:
        try:
            msgs.append(q.get_nowait())
        except queue.Empty:
            return msgs


def _park_enemy(arena_round: Round, radius: float) -> Enemy:
    """An enemy far from the player that does not move."""
    enemy = Enemy(100, 100, (0.0, 0.0), radius, "hsl(10.0, 50%, 50%)")
    arena_round.arena.enemies.append(enemy)
    return enemy


def _hit(arena_round: Round, enemy: Enemy) -> Projectile:
    shot = Projectile(enemy.x, enemy.y, (0.0, 0.0))
    arena_round.arena.projectiles.append(shot)
    return shot


class TestInitialState:
    def test_starts_idle(self):
        _, clock, _, arena_round = _make_round()
        assert arena_round.state == "idle"
        assert arena_round.score == 0
        assert arena_round.is_over is False
        assert arena_round.spawn_handle is None
        assert arena_round.frame_handle is None
        assert clock.active_intervals == 0
        assert clock.pending_frames == 0

    def test_valid_states(self):
        assert Round.STATES == ("idle", "running", "game_over")

    def test_fire_ignored_while_idle(self):
        _, _, _, arena_round = _make_round()
        assert arena_round.fire(10, 10) is None
        assert arena_round.arena.projectiles == []


class TestStart:
    def test_start_resets_arena(self):
        _, clock, _, arena_round = _make_round(800, 600)
        assert arena_round.start() is True
        arena = arena_round.arena
        assert arena_round.state == "running"
        assert arena.score == 0
        assert arena.tick == 0
        assert (arena.player.x, arena.player.y) == (400, 300)
        assert arena.enemies == [] and arena.projectiles == [] and arena.particles == []
        assert clock.active_intervals == 1
        assert clock.pending_frames == 1
        assert arena_round.spawn_handle is not None
        assert arena_round.frame_handle is not None

    def test_start_while_running_rejected(self):
        _, clock, _, arena_round = _make_round()
        arena_round.start()
        assert arena_round.start() is False
        assert clock.active_intervals == 1
        assert clock.pending_frames == 1

    def test_publishes_state_change(self):
        bus, _, _, arena_round = _make_round()
        sub = bus.subscribe({"game_state_change"})
        arena_round.start()
        msg = sub.get_nowait()
        assert msg["data"]["state"] == "running"
        assert msg["data"]["score"] == 0

    def test_restart_after_game_over_resets_score(self):
        random.seed(1)
        _, clock, _, arena_round = _make_round()
        arena_round.start()
        enemy = _park_enemy(arena_round, 10)
        _hit(arena_round, enemy)
        clock.step_frame()
        assert arena_round.score == SCORE_PER_KILL
        arena_round.end()
        assert arena_round.final_score == SCORE_PER_KILL

        assert arena_round.start() is True
        assert arena_round.score == 0
        assert arena_round.final_score is None
        assert arena_round.arena.particles == []
        assert arena_round.rounds_played == 2


class TestFire:
    def test_fire_velocity(self):
        bus, _, _, arena_round = _make_round()
        sub = bus.subscribe({"projectile_fired"})
        arena_round.start()
        shot = arena_round.fire(100, 100)
        assert shot.velocity == pytest.approx((-5 / math.sqrt(2), -5 / math.sqrt(2)))
        assert (shot.x, shot.y) == (500, 500)
        assert arena_round.arena.projectiles == [shot]
        assert sub.get_nowait()["data"]["id"] == shot.entity_id

    def test_fire_ignored_after_game_over(self):
        _, _, _, arena_round = _make_round()
        arena_round.start()
        arena_round.end()
        assert arena_round.fire(1, 1) is None

    def test_projectile_travels_and_leaves(self):
        _, clock, _, arena_round = _make_round(200, 200)
        arena_round.start()
        shot = arena_round.fire(200, 100)
        clock.step_frames(21)
        assert shot in arena_round.arena.projectiles
        clock.step_frames(1)
        assert shot not in arena_round.arena.projectiles


class TestDamage:
    def test_radius_thirty_needs_three_hits(self):
        random.seed(2)
        _, clock, _, arena_round = _make_round()
        arena_round.start()
        enemy = _park_enemy(arena_round, 30)

        _hit(arena_round, enemy)
        clock.step_frames(40)
        assert enemy.radius == 20
        assert arena_round.score == 0
        assert arena_round.arena.projectiles == []

        _hit(arena_round, enemy)
        clock.step_frames(40)
        assert enemy.radius == 10
        assert enemy in arena_round.arena.enemies

        _hit(arena_round, enemy)
        clock.step_frame()
        assert enemy not in arena_round.arena.enemies
        assert arena_round.score == SCORE_PER_KILL

    def test_score_event_after_every_increment(self):
        random.seed(3)
        bus, clock, _, arena_round = _make_round()
        arena_round.start()
        sub = bus.subscribe({"score_changed"})
        for x in (100, 300, 700):
            enemy = Enemy(x, 100, (0.0, 0.0), 12, "red")
            arena_round.arena.enemies.append(enemy)
            _hit(arena_round, enemy)
            clock.step_frame()
        scores = [m["data"]["score"] for m in _drain(sub)]
        assert scores == [100, 200, 300]


class TestGameOver:
    def test_contact_ends_round_and_halts_everything(self):
        random.seed(4)
        bus, clock, recorder, arena_round = _make_round()
        sub = bus.subscribe({"game_over"})
        arena_round.start()
        cx, cy = arena_round.arena.viewport.center
        arena_round.arena.enemies.append(Enemy(cx + 40, cy, (-1.0, 0.0), 20, "red"))

        clock.step_frames(30)
        assert arena_round.state == "game_over"
        assert arena_round.is_over
        assert arena_round.spawn_handle is None
        assert arena_round.frame_handle is None
        assert clock.active_intervals == 0
        assert clock.pending_frames == 0

        ticks = arena_round.arena.tick
        enemies = len(arena_round.arena.enemies)
        frames = recorder.frame_count
        clock.advance(5000)
        assert arena_round.arena.tick == ticks
        assert len(arena_round.arena.enemies) == enemies
        assert recorder.frame_count == frames

        msg = sub.get_nowait()
        assert msg["data"]["final_score"] == 0

    def test_player_survives_game_over(self):
        _, clock, _, arena_round = _make_round()
        arena_round.start()
        cx, cy = arena_round.arena.viewport.center
        arena_round.arena.enemies.append(Enemy(cx, cy, (0.0, 0.0), 20, "red"))
        clock.step_frame()
        assert arena_round.is_over
        assert arena_round.arena.player is not None

    def test_end_outside_running_is_noop(self):
        bus, _, _, arena_round = _make_round()
        sub = bus.subscribe({"game_over"})
        arena_round.end()
        assert arena_round.state == "idle"
        assert sub.empty()


class TestSpawningInRound:
    def test_one_enemy_per_second(self):
        random.seed(5)
        _, clock, _, arena_round = _make_round(4000, 4000)
        arena_round.start()
        clock.advance(3000)
        assert arena_round.spawner.spawned == 3
        assert arena_round.is_over is False

    def test_spawned_enemies_eventually_reach_player(self):
        random.seed(6)
        _, clock, _, arena_round = _make_round(400, 400)
        arena_round.start()
        clock.advance(30_000)
        assert arena_round.is_over
        spawned = list(arena_round.arena.enemies)
        clock.advance(10_000)
        assert arena_round.arena.enemies == spawned
        assert arena_round.spawner is None


class TestReset:
    def test_reset_returns_to_idle(self):
        _, clock, _, arena_round = _make_round()
        arena_round.start()
        arena_round.fire(0, 0)
        arena_round.reset()
        assert arena_round.state == "idle"
        assert arena_round.arena.projectiles == []
        assert arena_round.arena.player is None
        assert clock.active_intervals == 0
        assert clock.pending_frames == 0


class TestGetState:
    def test_serializable_snapshot(self):
        _, _, _, arena_round = _make_round(640, 480)
        arena_round.start()
        arena_round.fire(0, 0)
        state = arena_round.get_state()
        assert state["state"] == "running"
        assert state["projectiles"] == 1
        assert state["enemies"] == 0
        assert state["viewport"] == {"width": 640, "height": 480}
        assert state["player"]["x"] == 320
