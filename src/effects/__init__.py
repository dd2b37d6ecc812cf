"""Particle systems and decorative overlays."""
from .particles import Particle, SlimeDrop, Ring, SplashSystem, RingSystem, TrailSystem, SlimeSystem
from .word_overlay import TimedWordOverlay

__all__ = [
    "Particle",
    "SlimeDrop",
    "Ring",
    "SplashSystem",
    "RingSystem",
    "TrailSystem",
    "SlimeSystem",
    "TimedWordOverlay",
]
