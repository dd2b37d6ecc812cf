"""
Tests for Timed Word Overlay
=============================
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from effects.word_overlay import TimedWordOverlay


@pytest.fixture
def overlay():
    return TimedWordOverlay(["HOLA", "FIESTA"], np.random.default_rng(0))


class TestTimedWordOverlay:
    """Test suite for the periodic word."""

    def test_hidden_before_first_period(self, overlay):
        overlay.update(0)
        overlay.update(19999)

        assert not overlay.is_visible
        assert overlay.opacity(19999) == 0.0

    def test_shown_after_period(self, overlay):
        overlay.update(20001)

        assert overlay.is_visible
        assert overlay.current_word in ("HOLA", "FIESTA")

    @pytest.mark.parametrize("offset,expected", [
        (0, 0.0),
        (250, 60.0),
        (500, 120.0),
        (1500, 120.0),
        (2750, 60.0),
        (3000, 0.0),
    ])
    def test_fade_profile(self, overlay, offset, expected):
        overlay.update(20001)

        assert overlay.opacity(20001 + offset) == pytest.approx(expected)

    def test_hidden_after_display(self, overlay):
        overlay.update(20001)
        overlay.update(23001)

        assert not overlay.is_visible

    def test_next_period(self, overlay):
        overlay.update(20001)
        overlay.update(23001)
        overlay.update(40001)

        assert not overlay.is_visible

        overlay.update(40002)

        assert overlay.is_visible

    def test_no_words(self):
        empty = TimedWordOverlay([], np.random.default_rng(0))
        empty.update(50000)

        assert not empty.is_visible


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
