"""
Tests for Landmark Source
==========================
"""

import numpy as np
import pytest
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from detection.landmark_source import LandmarkSource, LandmarkSourceConfig, SourceState


def raw_points(n, x=0.25, y=0.5):
    return [SimpleNamespace(x=x, y=y, z=0.0) for _ in range(n)]


@pytest.fixture
def landmarkers():
    """Patch model creation with mock landmarkers."""
    face, hand = MagicMock(), MagicMock()
    with patch.object(LandmarkSource, "_create_face_landmarker", return_value=face), \
            patch.object(LandmarkSource, "_create_hand_landmarker", return_value=hand), \
            patch("detection.landmark_source.mp"):
        yield face, hand


class TestLandmarkSourceConfig:
    """Test suite for source configuration."""

    def test_defaults(self):
        config = LandmarkSourceConfig()

        assert config.max_num_faces == 1
        assert config.max_num_hands == 2
        assert config.detection_interval_ms == 100
        assert config.mirror

    def test_from_dict(self):
        config = LandmarkSourceConfig.from_dict({"max_num_hands": 1, "detection_interval_ms": 50})

        assert config.max_num_hands == 1
        assert config.detection_interval_ms == 50
        assert config.min_detection_confidence == 0.5


class TestStartup:
    """Test suite for the start-up state machine."""

    def test_initial_state(self):
        source = LandmarkSource()

        assert source.state == SourceState.UNINITIALIZED
        assert not source.is_ready
        assert source.snapshot.detection_count == 0

    def test_ready(self, landmarkers):
        messages = []
        source = LandmarkSource(on_status=messages.append)

        assert source.start()
        assert source.state == SourceState.READY
        assert messages[0] == "Loading Face Mesh..."
        assert "ready" in messages[-1].lower()

    def test_partial_models_still_ready(self):
        with patch.object(LandmarkSource, "_create_face_landmarker", return_value=None), \
                patch.object(LandmarkSource, "_create_hand_landmarker", return_value=MagicMock()):
            source = LandmarkSource()

            assert source.start()
            assert source.is_ready

    def test_failed(self):
        with patch.object(LandmarkSource, "_create_face_landmarker", return_value=None), \
                patch.object(LandmarkSource, "_create_hand_landmarker", return_value=None):
            source = LandmarkSource()

            assert not source.start()
            assert source.state == SourceState.FAILED
            assert source.status_text

    def test_stop_releases(self, landmarkers):
        face, hand = landmarkers
        source = LandmarkSource()
        source.start()

        source.stop()

        face.close.assert_called_once()
        hand.close.assert_called_once()
        assert source.state == SourceState.UNINITIALIZED


class TestSubmit:
    """Test suite for frame submission cadence."""

    @pytest.fixture
    def image(self):
        return np.zeros((48, 64, 3), dtype=np.uint8)

    def test_not_ready(self, image):
        assert not LandmarkSource().submit(image, 0)

    def test_interval(self, landmarkers, image):
        face, hand = landmarkers
        source = LandmarkSource(LandmarkSourceConfig(detection_interval_ms=100))
        source.start()

        sent = [source.submit(image, t) for t in (0, 50, 99, 100, 150, 230)]

        assert sent == [True, False, False, True, False, True]
        assert face.detect_async.call_count == 3
        assert hand.detect_async.call_count == 3

    def test_timestamps_increase(self, landmarkers, image):
        face, _ = landmarkers
        source = LandmarkSource(LandmarkSourceConfig(detection_interval_ms=0))
        source.start()

        source.submit(image, 10)
        source.submit(image, 10)

        stamps = [c.args[1] for c in face.detect_async.call_args_list]
        assert stamps == [10, 11]


class TestResults:
    """Test suite for result callbacks."""

    def test_face_result(self):
        source = LandmarkSource()
        source.set_canvas_size(640, 480)

        source._on_face_result(SimpleNamespace(face_landmarks=[raw_points(478)]), None, 0)

        face = source.snapshot.face
        assert face.is_complete
        assert face.get(0).x == pytest.approx(480.0)  # mirrored
        assert face.get(0).y == pytest.approx(240.0)
        assert source.result_count == 1

    def test_hand_result_labels(self):
        source = LandmarkSource(LandmarkSourceConfig(mirror=False))
        result = SimpleNamespace(
            hand_landmarks=[raw_points(21), raw_points(21)],
            handedness=[[SimpleNamespace(category_name="Left")], []],
        )

        source._on_hand_result(result, None, 0)

        hands = source.snapshot.hands
        assert [h.label for h in hands] == ["left", "right"]
        assert hands[0].wrist.x == pytest.approx(160.0)

    def test_empty_result_clears(self):
        source = LandmarkSource()
        source._on_hand_result(SimpleNamespace(hand_landmarks=[raw_points(21)], handedness=[]), None, 0)

        source._on_hand_result(SimpleNamespace(hand_landmarks=[], handedness=[]), None, 1)

        assert source.snapshot.hands == []

    def test_face_and_hands_independent(self):
        source = LandmarkSource()
        source._on_face_result(SimpleNamespace(face_landmarks=[raw_points(478)]), None, 0)
        source._on_hand_result(SimpleNamespace(hand_landmarks=[raw_points(21)], handedness=[]), None, 0)

        assert source.snapshot.detection_count == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
