"""
Tests for Performance Module
=============================
"""

import pytest
import time
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from utils.performance import PerformanceMonitor, STAGES


class TestPerformanceMonitor:
    """Test suite for PerformanceMonitor class."""

    @pytest.fixture
    def monitor(self):
        """Create performance monitor."""
        mon = PerformanceMonitor(window_size=5)
        mon.start()
        return mon

    def test_empty_monitor_reports_zero(self, monitor):
        assert monitor.fps == 0.0
        assert monitor.frame_time_ms == 0.0
        assert monitor.stage_time_ms("render") == 0.0

    def test_fps_calculation(self, monitor):
        """Test FPS calculation."""
        for _ in range(10):
            monitor.frame_start()
            time.sleep(0.02)
            monitor.frame_complete()

        assert 10 < monitor.fps < 55

    def test_stage_timing(self, monitor):
        """Test per-stage timing."""
        for _ in range(5):
            monitor.frame_start()

            with monitor.measure("capture"):
                time.sleep(0.002)

            with monitor.measure("effects"):
                time.sleep(0.010)

            monitor.frame_complete()

        capture_time = monitor.stage_time_ms("capture")
        effects_time = monitor.stage_time_ms("effects")

        assert capture_time >= 1.5
        assert effects_time >= 9
        assert effects_time > capture_time

    def test_measure_records_on_exception(self, monitor):
        with pytest.raises(RuntimeError):
            with monitor.measure("render"):
                raise RuntimeError("boom")

        assert monitor.stage_time_ms("render") >= 0.0
        assert "render" in monitor._stage_times

    def test_frame_complete_without_start_is_ignored(self, monitor):
        monitor.frame_complete()

        assert monitor.get_metrics().total_frames == 0

    def test_slow_frames_counted(self):
        monitor = PerformanceMonitor(target_fps=200)
        monitor.start()

        monitor.frame_start()
        time.sleep(0.01)
        monitor.frame_complete()

        metrics = monitor.get_metrics()
        assert metrics.total_frames == 1
        assert metrics.slow_frames == 1

    def test_metrics_snapshot(self, monitor):
        """Test getting metrics snapshot."""
        monitor.frame_start()
        with monitor.measure("detection"):
            time.sleep(0.005)
        monitor.frame_complete()

        metrics = monitor.get_metrics()

        assert metrics.total_frames == 1
        assert metrics.frame_time_ms > 0
        assert metrics.detection_time_ms > 0
        assert metrics.render_time_ms == 0.0

    def test_report_generation(self, monitor):
        """Test report string generation."""
        monitor.frame_start()
        monitor.frame_complete()

        report = monitor.get_report()

        assert "FPS" in report
        for stage in STAGES:
            assert stage.capitalize() in report

    def test_start_resets_counters(self, monitor):
        monitor.frame_start()
        monitor.frame_complete()

        monitor.start()

        assert monitor.get_metrics().total_frames == 0
        assert monitor.fps == 0.0

    def test_stop(self, monitor):
        """Test that stop logs correctly."""
        monitor.frame_start()
        monitor.frame_complete()

        # Should not raise
        monitor.stop()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
