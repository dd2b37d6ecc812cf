"""
Tests for Particle Systems
===========================
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from detection.landmarks import Landmark
from effects.particles import (
    Particle,
    RingSystem,
    SlimeSystem,
    SplashSystem,
    TrailSystem,
    random_color,
)

ORIGIN = Landmark(x=320, y=240)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


def run_until_empty(system, max_ticks=1000):
    """Tick a system until it empties; returns the tick count."""
    for tick in range(1, max_ticks + 1):
        system.update()
        if len(system) == 0:
            return tick
    raise AssertionError("particles never expired")


class TestRandomColor:
    """Test suite for color helpers."""

    def test_bgr_order(self, rng):
        b, g, r = random_color(rng, (250, 251), (100, 101), (10, 11))

        assert r == 250
        assert g == 100
        assert b == 10


class TestSplashSystem:
    """Test suite for thumbs-up splashes."""

    def test_burst_size(self, rng):
        splash = SplashSystem(rng)

        count = splash.spawn_burst(ORIGIN)

        assert 30 <= count <= 50
        assert len(splash) == count
        assert all(p.x == ORIGIN.x and p.y == ORIGIN.y for p in splash.particles)

    def test_super_burst_size(self, rng):
        splash = SplashSystem(rng)
        thumbs = [Landmark(100, 100), Landmark(500, 100)]

        count = splash.spawn_super_burst(ORIGIN, thumbs)

        assert 150 + 60 <= count <= 200 + 60
        assert len(splash) == count

    def test_gravity_and_decay(self, rng):
        splash = SplashSystem(rng)
        splash.particles.append(Particle(x=0, y=0, vx=1, vy=-5, life=255, size=10))

        splash.update()
        p = splash.particles[0]

        assert p.x == 1
        assert p.y == -5
        assert p.vy == pytest.approx(-4.8)
        assert p.life == 253
        assert p.size == pytest.approx(9.8)

    def test_finite_lifetime(self, rng):
        splash = SplashSystem(rng)
        splash.spawn_super_burst(ORIGIN, [ORIGIN])

        ticks = run_until_empty(splash)

        assert ticks <= 150

    def test_same_seed_same_particles(self):
        a = SplashSystem(np.random.default_rng(5))
        b = SplashSystem(np.random.default_rng(5))

        a.spawn_burst(ORIGIN)
        b.spawn_burst(ORIGIN)

        assert a.particles == b.particles


class TestRingSystem:
    """Test suite for praying rings."""

    def test_burst_radii(self, rng):
        rings = RingSystem(rng)

        rings.spawn_burst(ORIGIN, 5)

        assert [r.radius for r in rings.particles] == [10, 15, 20, 25, 30]
        assert all(100 <= r.max_radius <= 200 for r in rings.particles)

    def test_single_ring(self, rng):
        rings = RingSystem(rng)

        rings.spawn_ring(ORIGIN)

        ring = rings.particles[0]
        assert ring.radius == 5
        assert ring.alpha == 200
        assert 80 <= ring.max_radius <= 150

    def test_expand_and_fade(self, rng):
        rings = RingSystem(rng)
        rings.spawn_ring(ORIGIN)
        before = rings.particles[0].radius

        rings.update()

        assert rings.particles[0].radius > before
        assert rings.particles[0].alpha == 198

    def test_finite_lifetime(self, rng):
        rings = RingSystem(rng)
        rings.spawn_burst(ORIGIN)

        assert run_until_empty(rings) <= 128


class TestTrailSystem:
    """Test suite for hand trails."""

    def test_cap(self, rng):
        trails = TrailSystem(rng, max_particles=200)

        for i in range(250):
            trails.spawn(Landmark(i, i))

        assert len(trails) == 200
        assert trails.particles[0].x == 50
        assert trails.particles[-1].x == 249

    def test_no_gravity(self, rng):
        trails = TrailSystem(rng)
        trails.spawn(ORIGIN)

        trails.update()

        assert trails.particles[0].y == ORIGIN.y
        assert trails.particles[0].life == pytest.approx(98.5)

    def test_finite_lifetime(self, rng):
        trails = TrailSystem(rng)
        trails.spawn(ORIGIN)

        assert run_until_empty(trails) <= 67


class TestSlimeSystem:
    """Test suite for wall slime."""

    @pytest.fixture
    def slime(self, rng):
        return SlimeSystem(640, 480, ["LYRIC"], rng)

    @pytest.mark.parametrize("wall,check", [
        ("top", lambda d: d.y == 0 and d.vy > 0),
        ("bottom", lambda d: d.y == 480 and d.vy < 0),
        ("left", lambda d: d.x == 0 and d.vx > 0),
        ("right", lambda d: d.x == 640 and d.vx < 0),
    ])
    def test_spawn_moves_inwards(self, slime, wall, check):
        drop = slime.spawn(wall)

        assert check(drop)
        assert 15 <= drop.size <= 35

    def test_unknown_wall(self, slime):
        with pytest.raises(ValueError):
            slime.spawn("ceiling")

    def test_interval(self, slime):
        assert slime.maybe_spawn(500) is None
        assert slime.maybe_spawn(2001) is not None
        assert slime.maybe_spawn(2100) is None
        assert len(slime) == 1

    def test_leaves_canvas(self, slime):
        drop = slime.spawn("left")
        drop.x = -60

        slime.update()

        assert len(slime) == 0

    def test_finite_lifetime(self, slime):
        slime.spawn("top")

        assert run_until_empty(slime) <= 255

    def test_lyric(self, rng):
        slime = SlimeSystem(640, 480, ["LYRIC"], rng, lyric_chance=1.0)

        drop = slime.spawn("top")

        assert drop.lyric == "LYRIC"
        assert drop.show_lyric

    def test_set_bounds(self, slime):
        slime.set_bounds(320, 240)

        drop = slime.spawn("right")

        assert drop.x == 320


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
