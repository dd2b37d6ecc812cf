"""
Motion Glitch Detector
=======================

Motion-energy trigger for the glitch look: compares every landmark with
its position on the previous tick and switches the glitch on for a fixed
duration whenever the average displacement exceeds a threshold.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from detection.landmarks import Landmark

logger = logging.getLogger(__name__)


def average_displacement(previous: Sequence[Landmark], current: Sequence[Landmark]) -> float:
    """Mean point-to-point distance over the shorter of the two lists."""
    n = min(len(previous), len(current))
    if n == 0:
        return 0.0
    prev = np.asarray(previous[:n], dtype=np.float64)
    curr = np.asarray(current[:n], dtype=np.float64)
    return float(np.linalg.norm(curr - prev, axis=1).mean())


class MotionGlitchDetector:
    """
    Example:
        >>> glitch = MotionGlitchDetector(threshold=5.0, duration_ms=200)
        >>> active = glitch.update(snapshot.all_points(), now_ms)
    """

    def __init__(self, threshold: float = 5.0, duration_ms: float = 200.0):
        self.threshold = threshold
        self.duration_ms = duration_ms
        self.active = False
        self.last_movement = 0.0
        self._triggered_at_ms: Optional[float] = None
        self._previous: List[Landmark] = []

    def update(self, points: Sequence[Landmark], now_ms: float) -> bool:
        """Feed this tick's landmarks; returns whether the glitch is active."""
        if self.active and now_ms - self._triggered_at_ms > self.duration_ms:
            self.active = False

        if self._previous and points:
            self.last_movement = average_displacement(self._previous, points)
            if self.last_movement > self.threshold:
                self.trigger(now_ms)

        self._previous = list(points)
        return self.active

    def trigger(self, now_ms: float) -> None:
        if not self.active:
            logger.debug(f"Glitch triggered (movement {self.last_movement:.1f}px)")
        self.active = True
        self._triggered_at_ms = now_ms

    def reset(self) -> None:
        self.active = False
        self._triggered_at_ms = None
        self._previous = []
