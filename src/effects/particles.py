"""
Ephemeral Particle Systems
===========================

Four independent collections of short-lived particles. Every particle is
advanced once per tick: velocity is integrated into position, gravity is
added to vertical velocity, life counts down and size decays. A particle
is dropped the tick its life reaches zero or its size falls below the
system's floor; wall slime is also dropped once it leaves the canvas.

Colors are BGR tuples for OpenCV.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from detection.landmarks import Landmark

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]


def random_color(
    rng: np.random.Generator,
    red: Tuple[float, float],
    green: Tuple[float, float],
    blue: Tuple[float, float],
) -> Color:
    """Random BGR color from per-channel RGB ranges."""
    return (
        int(rng.uniform(*blue)),
        int(rng.uniform(*green)),
        int(rng.uniform(*red)),
    )


@dataclass
class Particle:
    """Position, velocity, remaining life, size and color."""
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    life: float = 255.0
    max_life: float = 255.0
    size: float = 10.0
    color: Color = (255, 255, 255)

    @property
    def life_ratio(self) -> float:
        if self.max_life <= 0:
            return 0.0
        return max(0.0, min(1.0, self.life / self.max_life))


@dataclass
class SlimeDrop(Particle):
    """Wall drip with an optional caption."""
    lyric: str = ""
    show_lyric: bool = False


@dataclass
class Ring:
    """Expanding concentric ring; alpha is its remaining life."""
    x: float
    y: float
    radius: float
    max_radius: float
    alpha: float
    speed: float
    color: Color = (255, 255, 255)


class ParticleSystem:
    """
    Base class for gravity/decay particle collections.

    Subclasses add spawn policies; the per-tick update is shared.
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        gravity: float = 0.0,
        life_decay: float = 1.0,
        size_decay: float = 1.0,
        min_size: float = 0.0,
    ):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.gravity = gravity
        self.life_decay = life_decay
        self.size_decay = size_decay
        self.min_size = min_size
        self.particles: List[Particle] = []

    def update(self) -> None:
        """Advance every particle one tick and drop the expired ones."""
        alive = []
        for p in self.particles:
            self._advance(p)
            if not self._is_expired(p):
                alive.append(p)
        self.particles = alive

    def _advance(self, p: Particle) -> None:
        p.x += p.vx
        p.y += p.vy
        p.vy += self.gravity
        p.life -= self.life_decay
        p.size *= self.size_decay

    def _is_expired(self, p: Particle) -> bool:
        return p.life <= 0 or p.size < self.min_size

    def clear(self) -> None:
        self.particles = []

    def __len__(self) -> int:
        return len(self.particles)


class SplashSystem(ParticleSystem):
    """Gravity bursts fired by thumbs-up gestures."""

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        burst_range: Tuple[int, int] = (30, 50),
        super_burst_range: Tuple[int, int] = (150, 200),
        thumb_burst: int = 30,
    ):
        super().__init__(rng, gravity=0.2, life_decay=2.0, size_decay=0.98, min_size=1.0)
        self.burst_range = burst_range
        self.super_burst_range = super_burst_range
        self.thumb_burst = thumb_burst

    def spawn_burst(self, origin: Landmark) -> int:
        """Small splash at ``origin``. Returns the number spawned."""
        count = int(self.rng.integers(self.burst_range[0], self.burst_range[1] + 1))
        for _ in range(count):
            self.particles.append(Particle(
                x=origin.x,
                y=origin.y,
                vx=self.rng.uniform(-8, 8),
                vy=self.rng.uniform(-12, -3),
                life=255.0,
                max_life=255.0,
                size=self.rng.uniform(8, 20),
                color=random_color(self.rng, (100, 255), (150, 255), (200, 255)),
            ))
        return count

    def spawn_super_burst(self, center: Landmark, thumbs: Sequence[Landmark]) -> int:
        """Large splash around ``center`` plus a sub-burst at each thumb."""
        count = int(self.rng.integers(self.super_burst_range[0], self.super_burst_range[1] + 1))
        for _ in range(count):
            self.particles.append(Particle(
                x=center.x + self.rng.uniform(-50, 50),
                y=center.y + self.rng.uniform(-50, 50),
                vx=self.rng.uniform(-15, 15),
                vy=self.rng.uniform(-20, -5),
                life=300.0,
                max_life=300.0,
                size=self.rng.uniform(15, 35),
                color=random_color(self.rng, (200, 255), (100, 255), (50, 255)),
            ))

        for thumb in thumbs:
            for _ in range(self.thumb_burst):
                self.particles.append(Particle(
                    x=thumb.x,
                    y=thumb.y,
                    vx=self.rng.uniform(-12, 12),
                    vy=self.rng.uniform(-15, -5),
                    life=250.0,
                    max_life=250.0,
                    size=self.rng.uniform(10, 25),
                    color=random_color(self.rng, (255, 255), (150, 255), (100, 255)),
                ))
            count += self.thumb_burst
        return count


class RingSystem(ParticleSystem):
    """Concentric rings emitted from praying hands. No gravity."""

    def __init__(self, rng: Optional[np.random.Generator] = None, fade: float = 2.0):
        super().__init__(rng)
        self.fade = fade
        self.particles: List[Ring] = []

    def spawn_burst(self, center: Landmark, count: int = 5) -> int:
        for i in range(count):
            self.particles.append(Ring(
                x=center.x,
                y=center.y,
                radius=10 + i * 5,
                max_radius=self.rng.uniform(100, 200),
                alpha=255.0,
                speed=self.rng.uniform(1, 3),
                color=random_color(self.rng, (150, 255), (100, 255), (200, 255)),
            ))
        return count

    def spawn_ring(self, center: Landmark) -> None:
        self.particles.append(Ring(
            x=center.x,
            y=center.y,
            radius=5.0,
            max_radius=self.rng.uniform(80, 150),
            alpha=200.0,
            speed=self.rng.uniform(0.5, 2),
            color=random_color(self.rng, (100, 255), (150, 255), (180, 255)),
        ))

    def _advance(self, ring: Ring) -> None:
        ring.radius += ring.speed
        ring.alpha -= self.fade

    def _is_expired(self, ring: Ring) -> bool:
        return ring.radius > ring.max_radius or ring.alpha <= 0


class TrailSystem(ParticleSystem):
    """Soft fading circles left behind by each palm. Capped globally."""

    def __init__(self, rng: Optional[np.random.Generator] = None, max_particles: int = 200):
        super().__init__(rng, gravity=0.0, life_decay=1.5, size_decay=0.98, min_size=5.0)
        self.max_particles = max_particles

    def spawn(self, point: Landmark) -> None:
        self.particles.append(Particle(
            x=point.x,
            y=point.y,
            life=100.0,
            max_life=100.0,
            size=self.rng.uniform(20, 40),
            color=random_color(self.rng, (150, 255), (100, 255), (180, 255)),
        ))
        self._trim()

    def update(self) -> None:
        super().update()
        self._trim()

    def _trim(self) -> None:
        overflow = len(self.particles) - self.max_particles
        if overflow > 0:
            del self.particles[:overflow]


class SlimeSystem(ParticleSystem):
    """
    Drips that ooze in from a random canvas edge at random intervals.

    The spawn interval is redrawn after every drop.
    """

    WALLS = ("top", "right", "bottom", "left")

    def __init__(
        self,
        width: int,
        height: int,
        lyrics: Sequence[str],
        rng: Optional[np.random.Generator] = None,
        interval_ms: Tuple[float, float] = (800.0, 2000.0),
        lyric_chance: float = 0.3,
        bounds_margin: float = 50.0,
    ):
        super().__init__(rng, gravity=0.05, life_decay=1.0, size_decay=1.0, min_size=0.0)
        self.width = width
        self.height = height
        self.lyrics = list(lyrics)
        self.interval_ms = interval_ms
        self.lyric_chance = lyric_chance
        self.bounds_margin = bounds_margin
        self._last_spawn_ms = 0.0
        self._next_interval_ms = self.rng.uniform(*interval_ms)

    def set_bounds(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def maybe_spawn(self, now_ms: float) -> Optional[SlimeDrop]:
        """Spawn one drop if the current interval has elapsed."""
        if now_ms - self._last_spawn_ms <= self._next_interval_ms:
            return None
        drop = self.spawn()
        self._last_spawn_ms = now_ms
        self._next_interval_ms = self.rng.uniform(*self.interval_ms)
        return drop

    def spawn(self, wall: Optional[str] = None) -> SlimeDrop:
        """Create a drop on ``wall`` (random if omitted) moving inwards."""
        rng = self.rng
        wall = wall or self.WALLS[int(rng.integers(len(self.WALLS)))]

        if wall == "top":
            x, y = rng.uniform(0, self.width), 0.0
            vx, vy = rng.uniform(-1, 1), rng.uniform(0.5, 2)
        elif wall == "right":
            x, y = float(self.width), rng.uniform(0, self.height)
            vx, vy = rng.uniform(-2, -0.5), rng.uniform(-1, 1)
        elif wall == "bottom":
            x, y = rng.uniform(0, self.width), float(self.height)
            vx, vy = rng.uniform(-1, 1), rng.uniform(-2, -0.5)
        elif wall == "left":
            x, y = 0.0, rng.uniform(0, self.height)
            vx, vy = rng.uniform(0.5, 2), rng.uniform(-1, 1)
        else:
            raise ValueError(f"Unknown wall: {wall}")

        lyric = self.lyrics[int(rng.integers(len(self.lyrics)))] if self.lyrics else ""
        drop = SlimeDrop(
            x=x,
            y=y,
            vx=vx,
            vy=vy,
            life=255.0,
            max_life=255.0,
            size=rng.uniform(15, 35),
            color=random_color(rng, (50, 120), (80, 150), (20, 80)),
            lyric=lyric,
            show_lyric=bool(lyric) and rng.random() < self.lyric_chance,
        )
        self.particles.append(drop)
        return drop

    def _is_expired(self, drop: SlimeDrop) -> bool:
        m = self.bounds_margin
        return (
            drop.life <= 0
            or drop.x < -m or drop.x > self.width + m
            or drop.y < -m or drop.y > self.height + m
        )
