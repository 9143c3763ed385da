"""Unit tests for the entity model and Viewport."""

from __future__ import annotations

import pytest

from arena.entities import (
    ALPHA_STEP,
    FRICTION,
    PLAYER_RADIUS,
    PROJECTILE_RADIUS,
    Enemy,
    Particle,
    Player,
    Projectile,
    Viewport,
)
from arena.render import FrameRecorder

pytestmark = pytest.mark.unit


class TestViewport:
    def test_center(self):
        assert Viewport(1000, 600).center == (500, 300)

    @pytest.mark.parametrize("w,h", [(0, 10), (10, 0), (-5, 5)])
    def test_rejects_non_positive(self, w, h):
        with pytest.raises(ValueError):
            Viewport(w, h)

    def test_partially_visible_circle_is_inside(self):
        v = Viewport(100, 100)
        assert not v.is_outside(-4, 50, 5)
        assert not v.is_outside(104, 50, 5)

    @pytest.mark.parametrize("x,y", [(-6, 50), (106, 50), (50, -6), (50, 106)])
    def test_fully_beyond_any_edge_is_outside(self, x, y):
        assert Viewport(100, 100).is_outside(x, y, 5)


class TestPlayer:
    def test_defaults(self):
        p = Player(10, 20)
        assert p.radius == PLAYER_RADIUS
        assert p.color == "white"

    def test_tick_does_not_move(self):
        p = Player(10, 20)
        p.tick(1 / 60)
        assert (p.x, p.y) == (10, 20)


class TestProjectile:
    def test_moves_by_velocity(self):
        p = Projectile(0, 0, (2.5, -1.0))
        p.tick(1 / 60)
        p.tick(1 / 60)
        assert (p.x, p.y) == pytest.approx((5.0, -2.0))
        assert p.radius == PROJECTILE_RADIUS

    def test_unique_ids(self):
        assert Projectile(0, 0, (1, 0)).entity_id != Projectile(0, 0, (1, 0)).entity_id


class TestEnemy:
    def test_moves_by_velocity(self):
        e = Enemy(0, 0, (1.0, 0.0), 20, "red")
        e.tick(1 / 60)
        assert e.x == 1.0

    def test_shrink_animates_then_settles(self):
        e = Enemy(0, 0, (0.0, 0.0), 30, "red")
        e.shrink_to(20)
        assert e.target_radius == 20
        e.tick(1 / 60)
        assert 20 < e.radius < 30
        for _ in range(60):
            e.tick(1 / 60)
        assert e.radius == 20
        assert e.tween is None

    def test_shrink_on_dead_enemy_is_noop(self):
        e = Enemy(0, 0, (0.0, 0.0), 30, "red", alive=False)
        e.shrink_to(20)
        assert e.tween is None
        assert e.radius == 30

    def test_retarget_mid_tween_starts_from_current_radius(self):
        e = Enemy(0, 0, (0.0, 0.0), 30, "red")
        e.shrink_to(20)
        for _ in range(5):
            e.tick(1 / 60)
        mid = e.radius
        e.shrink_to(10)
        assert e.tween.start == mid
        assert e.target_radius == 10


class TestParticle:
    def test_decay_step(self):
        p = Particle(0, 0, (2.0, -2.0), 1.0, "blue")
        p.tick(1 / 60)
        assert p.velocity == pytest.approx((2.0 * FRICTION, -2.0 * FRICTION))
        assert (p.x, p.y) == pytest.approx((2.0 * FRICTION, -2.0 * FRICTION))
        assert p.alpha == pytest.approx(1.0 - ALPHA_STEP)

    def test_fades_after_about_one_hundred_ticks(self):
        p = Particle(0, 0, (0.0, 0.0), 1.0, "blue")
        ticks = 0
        while not p.faded:
            p.tick(1 / 60)
            ticks += 1
        assert 100 <= ticks <= 101

    def test_draw_clamps_alpha(self):
        rec = FrameRecorder()
        rec.clear(100, 100)
        Particle(0, 0, (0.0, 0.0), 1.0, "blue", alpha=-0.004).draw(rec)
        rec.present(1)
        assert rec.last_frame.circles[0].alpha == 0.0
