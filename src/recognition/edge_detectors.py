"""
Gesture Edge Detectors
=======================

Per-gesture state machines that turn per-tick gesture states into effects.

Rising-edge triggers (thumbs-up, praying) fire once on a False -> True
transition. Level-triggered effects (wink, mouth text, wrist circle) are
active on every tick their gesture holds.
"""

import math
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from detection.landmarks import Face, Hand, HandIndex, Landmark
from effects.particles import RingSystem, SplashSystem
from . import predicates

logger = logging.getLogger(__name__)

WINK_MESSAGES = [
    "YOUR WINK WILL CHANGE THE WORLD",
    "THAT WINK COULD START A REVOLUTION",
    "YOUR WINK IS PURE MAGIC",
    "ONE WINK TO RULE THEM ALL",
    "YOUR WINK SPARKS JOY EVERYWHERE",
    "THAT WINK JUST SAVED THE DAY",
    "YOUR WINK IS LEGENDARY",
    "WORLD'S MOST POWERFUL WINK",
    "YOUR WINK BREAKS THE INTERNET",
    "THAT WINK IS UNIVERSE-CHANGING",
    "YOUR WINK INSPIRES NATIONS",
    "EPIC WINK OF DESTINY",
    "YOUR WINK CONQUERS HEARTS",
    "SUPERNATURAL WINK DETECTED",
    "YOUR WINK BENDS REALITY",
]


@dataclass
class TriggerEvent:
    """A one-shot effect that fired this tick."""
    name: str
    particles: int
    position: Optional[Landmark] = None


class EdgeTrigger:
    """Remembers the previous tick's state and reports rising edges."""

    def __init__(self, name: str):
        self.name = name
        self._previous = False

    def update(self, state: bool) -> bool:
        """Store ``state``; True only on a False -> True transition."""
        rising = state and not self._previous
        self._previous = state
        return rising

    @property
    def previous(self) -> bool:
        return self._previous

    def reset(self) -> None:
        self._previous = False


class WinkTrigger:
    """Rotating encouragement message while exactly one eye is open."""

    def __init__(
        self,
        messages: Sequence[str] = WINK_MESSAGES,
        rotate_every: int = 45,
        eye_threshold: float = predicates.EYE_OPEN_THRESHOLD,
    ):
        self.messages = list(messages)
        self.rotate_every = max(1, rotate_every)
        self.eye_threshold = eye_threshold
        self.active = False
        self.message = ""

    def message_for_tick(self, tick: int) -> str:
        if not self.messages:
            return ""
        return self.messages[(tick // self.rotate_every) % len(self.messages)]

    def update(self, face: Optional[Face], tick: int) -> Optional[str]:
        self.active = predicates.is_winking(face, self.eye_threshold)
        self.message = self.message_for_tick(tick) if self.active else ""
        return self.message or None


class MouthTextTrigger:
    """
    Reveals a quote word by word while the mouth is open.

    The reveal loops on wall-clock time measured from the moment the mouth
    opened; closing the mouth resets progress to the first word.
    """

    def __init__(
        self,
        quote: str,
        word_interval_ms: float = 200.0,
        mouth_threshold: float = predicates.MOUTH_OPEN_THRESHOLD,
    ):
        self.word_interval_ms = word_interval_ms
        self.mouth_threshold = mouth_threshold
        self.words: List[str] = []
        self.set_quote(quote)

        self.mouth_open = False
        self.current_word_index = 0
        self._edge = EdgeTrigger("mouth_open")
        self._opened_at_ms: Optional[float] = None

    def set_quote(self, quote: str) -> None:
        self.words = (quote or "").split()
        self.current_word_index = 0

    def reset(self) -> None:
        self.current_word_index = 0
        self._opened_at_ms = None
        self._edge.reset()

    def update(self, face: Optional[Face], now_ms: float) -> str:
        """Returns the text revealed so far, empty while the mouth is closed."""
        was_open = self._edge.previous
        self.mouth_open = predicates.is_mouth_open(face, self.mouth_threshold)
        opened = self._edge.update(self.mouth_open)

        if was_open and not self.mouth_open:
            self.reset()
        if opened or (self.mouth_open and self._opened_at_ms is None):
            self._opened_at_ms = now_ms

        if not self.mouth_open or not self.words:
            return ""

        count = len(self.words)
        cycle = count * self.word_interval_ms
        elapsed = max(0.0, now_ms - self._opened_at_ms)
        index = math.floor((elapsed % cycle) / self.word_interval_ms)
        self.current_word_index = min(index, count - 1)
        return " ".join(self.words[:self.current_word_index + 1])


class ThumbsUpTrigger:
    """
    Splash bursts on thumbs-up rising edges.

    A double thumbs-up fires a super splash at ``center`` plus a sub-burst at
    each thumb; while the double gesture holds, the single burst is
    suppressed even if its own edge rises.
    """

    def __init__(
        self,
        splash: SplashSystem,
        raise_px: float = predicates.THUMB_RAISE,
        curl_margin: float = predicates.INDEX_CURL_MARGIN,
    ):
        self.splash = splash
        self.thresholds = {"raise_px": raise_px, "curl_margin": curl_margin}
        self._single = EdgeTrigger("thumbs_up")
        self._double = EdgeTrigger("double_thumbs_up")

    def update(self, hands: Sequence[Hand], center: Landmark) -> Optional[TriggerEvent]:
        raised = predicates.thumbs_up_hands(hands, **self.thresholds)
        single = len(raised) >= 1
        double = len(hands) >= 2 and len(raised) >= 2

        double_rising = self._double.update(double)
        single_rising = self._single.update(single)

        if double_rising:
            thumbs = predicates.get_all_thumb_positions(hands)
            count = self.splash.spawn_super_burst(center, thumbs)
            return TriggerEvent("super_splash", count, center)

        if single_rising and not double:
            origin = raised[0].get(HandIndex.THUMB_TIP)
            if origin is None:
                return None
            count = self.splash.spawn_burst(origin)
            return TriggerEvent("splash", count, origin)

        return None

    def reset(self) -> None:
        self._single.reset()
        self._double.reset()


class PrayingTrigger:
    """Ring burst when hands come together, then a slow stream of rings."""

    def __init__(
        self,
        rings: RingSystem,
        burst: int = 5,
        emit_every: int = 10,
        min_distance: float = predicates.PRAYING_MIN_DISTANCE,
        max_distance: float = predicates.PRAYING_MAX_DISTANCE,
    ):
        self.rings = rings
        self.burst = burst
        self.emit_every = max(1, emit_every)
        self.min_distance = min_distance
        self.max_distance = max_distance
        self.praying = False
        self._edge = EdgeTrigger("praying")

    def update(self, hands: Sequence[Hand], tick: int) -> Optional[TriggerEvent]:
        self.praying = predicates.is_praying_hands(hands, self.min_distance, self.max_distance)
        rising = self._edge.update(self.praying)
        if not self.praying:
            return None

        center = predicates.get_praying_center(hands)
        if center is None:
            return None

        event = None
        if rising:
            count = self.rings.spawn_burst(center, self.burst)
            event = TriggerEvent("praying", count, center)
        if tick % self.emit_every == 0:
            self.rings.spawn_ring(center)
        return event

    def reset(self) -> None:
        self._edge.reset()


class WristCircleTrigger:
    """Circle between two wrists, sized by their distance. No edge state."""

    def __init__(
        self,
        in_range: Tuple[float, float] = (50.0, 400.0),
        out_range: Tuple[float, float] = (20.0, 200.0),
    ):
        self.in_range = in_range
        self.out_range = out_range
        self.circle: Optional[Tuple[Landmark, float]] = None

    def update(self, hands: Sequence[Hand]) -> Optional[Tuple[Landmark, float]]:
        """(center, diameter) when two wrists are visible, else None."""
        self.circle = None
        wrists = predicates.get_wrist_positions(hands)
        if len(wrists) >= 2 and wrists[0] is not None and wrists[1] is not None:
            center = predicates.midpoint(wrists[0], wrists[1])
            diameter = predicates.wrist_circle_diameter(
                predicates.distance(wrists[0], wrists[1]), self.in_range, self.out_range)
            self.circle = (center, diameter)
        return self.circle
