"""
Tests for Visualization Module
===============================
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from detection.landmarks import DetectionSnapshot
from effects.engine import EffectsConfig, EffectToggles, EffectsEngine
from utils.visualization import Visualizer, VisualizerConfig, ascii_text, hue_color, scaled
from landmark_builders import make_face, make_hand

WIDTH, HEIGHT = 640, 480


def busy_engine():
    """Engine with every overlay on and something to draw for each."""
    toggles = EffectToggles(**{name: True for name in vars(EffectToggles())})
    engine = EffectsEngine(EffectsConfig(seed=1, toggles=toggles), WIDTH, HEIGHT)
    for name in list(vars(engine.data_options)):
        engine.set_data_option(name, True)

    face = make_face(mouth_gap=20, left_eye_gap=10, right_eye_gap=4)
    hands = [make_hand(wrist=(300, 400), pose="thumbs_up"),
             make_hand(wrist=(360, 400), pose="thumbs_up")]
    for t in range(12):
        engine.tick(DetectionSnapshot(faces=[face], hands=hands), 20500 + t * 16)
    engine.slime.spawn("top").show_lyric = True
    return engine


@pytest.fixture
def visualizer():
    return Visualizer(VisualizerConfig(seed=0))


class TestHelpers:
    """Test suite for drawing helpers."""

    def test_ascii_text(self):
        assert ascii_text("¡PIÑATA!") == "PINATA!"
        assert ascii_text("¡JALAPEÑO!") == "JALAPENO!"
        assert ascii_text("plain") == "plain"

    def test_scaled(self):
        assert scaled((200, 100, 50), 0.5) == (100, 50, 25)
        assert scaled((200, 100, 50), 2.0) == (200, 100, 50)
        assert scaled((200, 100, 50), -1) == (0, 0, 0)

    def test_hue_color(self):
        b, g, r = hue_color(0)

        assert r == 255
        assert b < 50

    def test_config_from_dict(self):
        config = VisualizerConfig.from_dict({"show_fps": False, "colors": {"wink": [1, 2, 3]}})

        assert not config.show_fps
        assert config.wink_color == (1, 2, 3)
        assert config.text_color == (0, 255, 255)


class TestWrapLines:
    """Test suite for word wrapping."""

    def test_wraps_long_text(self, visualizer):
        text = " ".join(["thunder"] * 40)

        lines = visualizer.wrap_lines(text, 300, 24)

        assert len(lines) > 1
        assert " ".join(lines) == text

    def test_short_text_single_line(self, visualizer):
        assert visualizer.wrap_lines("hello", 600, 24) == ["hello"]

    def test_empty(self, visualizer):
        assert visualizer.wrap_lines("", 600, 24) == []


class TestRender:
    """Test suite for the full render pass."""

    def test_render_shape(self, visualizer):
        engine = EffectsEngine(EffectsConfig(seed=1), WIDTH, HEIGHT)
        engine.tick(DetectionSnapshot(), 0)
        frame = np.full((240, 320, 3), 128, dtype=np.uint8)

        canvas = visualizer.render(engine, frame, fps=30.0)

        assert canvas.shape == (HEIGHT, WIDTH, 3)
        assert canvas.dtype == np.uint8
        assert canvas.mean() > 50

    def test_video_is_mirrored(self, visualizer):
        engine = EffectsEngine(EffectsConfig(seed=1), WIDTH, HEIGHT)
        engine.set_wall_slime(False)
        engine.set_word_overlay(False)
        frame = np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8)
        frame[:, :10] = 255

        canvas = visualizer.render(engine, frame)

        assert canvas[100, WIDTH - 5].mean() > 150
        assert canvas[100, 5].mean() < 50

    def test_video_hidden(self, visualizer):
        engine = EffectsEngine(EffectsConfig(seed=1), WIDTH, HEIGHT)
        engine.set_show_video(False)
        engine.set_wall_slime(False)
        engine.set_word_overlay(False)
        frame = np.full((HEIGHT, WIDTH, 3), 255, dtype=np.uint8)

        canvas = visualizer.render(engine, frame)

        assert canvas[: HEIGHT // 2].max() == 0

    def test_loading_placeholder(self, visualizer):
        engine = EffectsEngine(EffectsConfig(seed=1), WIDTH, HEIGHT)

        canvas = visualizer.render(engine, None, status_text="Loading Face Mesh...")

        assert canvas[HEIGHT // 2 - 20: HEIGHT // 2 + 20].max() > 0

    def test_everything_on(self, visualizer):
        engine = busy_engine()
        assert len(engine.splash) > 0
        assert len(engine.rings) > 0
        assert len(engine.trails) > 0
        frame = np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8)

        canvas = visualizer.render(engine, frame, fps=24.0, status_text="")

        assert canvas.shape == (HEIGHT, WIDTH, 3)
        assert canvas.max() > 0

    def test_glitch_render(self, visualizer):
        engine = busy_engine()
        engine.glitch.trigger(engine.now_ms)

        canvas = visualizer.render(engine, np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8))

        assert canvas.shape == (HEIGHT, WIDTH, 3)

    def test_status_bar(self, visualizer):
        engine = EffectsEngine(EffectsConfig(seed=1), WIDTH, HEIGHT)
        engine.set_show_video(False)
        engine.set_wall_slime(False)
        engine.set_word_overlay(False)

        canvas = visualizer.render(engine, np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8))

        assert canvas[HEIGHT - 30:].max() > 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
