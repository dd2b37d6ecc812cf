"""Timed decorative word overlay, independent of any gesture."""

import logging
from typing import Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


class TimedWordOverlay:
    """
    Shows one random word for ``display_ms`` every ``period_ms``.

    Opacity fades in over the first ``fade_ms`` and out over the last
    ``fade_ms`` of the display window.
    """

    def __init__(
        self,
        words: Sequence[str],
        rng: Optional[np.random.Generator] = None,
        period_ms: float = 20000.0,
        display_ms: float = 3000.0,
        fade_ms: float = 500.0,
        max_opacity: float = 120.0,
    ):
        self.words = list(words)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.period_ms = period_ms
        self.display_ms = display_ms
        self.fade_ms = fade_ms
        self.max_opacity = max_opacity

        self.current_word = ""
        self._last_trigger_ms = 0.0
        self._shown_at_ms: Optional[float] = None

    def update(self, now_ms: float) -> None:
        if self.words and now_ms - self._last_trigger_ms > self.period_ms:
            self.current_word = self.words[int(self.rng.integers(len(self.words)))]
            self._shown_at_ms = now_ms
            self._last_trigger_ms = now_ms
            logger.debug(f"Word overlay: {self.current_word}")

        if self._shown_at_ms is not None and now_ms - self._shown_at_ms >= self.display_ms:
            self._shown_at_ms = None

    @property
    def is_visible(self) -> bool:
        return self._shown_at_ms is not None

    def opacity(self, now_ms: float) -> float:
        """Current opacity on a 0..255 scale, 0 when hidden."""
        if self._shown_at_ms is None:
            return 0.0
        t = now_ms - self._shown_at_ms
        if t < 0 or t >= self.display_ms:
            return 0.0
        if t < self.fade_ms:
            return self.max_opacity * t / self.fade_ms
        if t > self.display_ms - self.fade_ms:
            return self.max_opacity * (self.display_ms - t) / self.fade_ms
        return self.max_opacity
