"""
Performance Monitoring Module
==============================

Rolling frame-rate and per-stage timings for the render loop.
"""

import time
import logging
from dataclasses import dataclass
from typing import Dict, Optional
from collections import deque
from contextlib import contextmanager

logger = logging.getLogger(__name__)

STAGES = ("capture", "detection", "effects", "render")


@dataclass
class PerformanceMetrics:
    """Snapshot of the loop's timings."""
    fps: float = 0.0
    frame_time_ms: float = 0.0
    capture_time_ms: float = 0.0
    detection_time_ms: float = 0.0
    effects_time_ms: float = 0.0
    render_time_ms: float = 0.0
    total_frames: int = 0
    slow_frames: int = 0


class PerformanceMonitor:
    """
    Example:
        >>> monitor = PerformanceMonitor()
        >>> monitor.start()
        >>> while running:
        ...     monitor.frame_start()
        ...     with monitor.measure("effects"):
        ...         engine.tick(snapshot, now_ms)
        ...     monitor.frame_complete()
    """

    def __init__(self, window_size: int = 30, target_fps: float = 30.0):
        self.window_size = window_size
        self.target_fps = target_fps
        self._frame_times: deque = deque(maxlen=window_size)
        self._stage_times: Dict[str, deque] = {}
        self._frame_start: Optional[float] = None
        self._total_frames = 0
        self._slow_frames = 0

    def start(self) -> None:
        self._total_frames = 0
        self._slow_frames = 0
        self._frame_times.clear()
        self._stage_times.clear()
        logger.info("Performance monitor started")

    def stop(self) -> None:
        logger.info(f"Performance monitor stopped. "
                    f"Total frames: {self._total_frames}, slow: {self._slow_frames}")

    def frame_start(self) -> None:
        self._frame_start = time.perf_counter()

    def frame_complete(self) -> None:
        """Close the current frame and record its duration."""
        if self._frame_start is None:
            return
        frame_time = time.perf_counter() - self._frame_start
        self._frame_times.append(frame_time)
        self._total_frames += 1
        if frame_time > 1.0 / self.target_fps:
            self._slow_frames += 1
        self._frame_start = None

    @contextmanager
    def measure(self, stage: str):
        """Time a named stage of the current frame."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            if stage not in self._stage_times:
                self._stage_times[stage] = deque(maxlen=self.window_size)
            self._stage_times[stage].append(elapsed)

    @property
    def fps(self) -> float:
        if not self._frame_times:
            return 0.0
        avg = sum(self._frame_times) / len(self._frame_times)
        return 1.0 / avg if avg > 0 else 0.0

    @property
    def frame_time_ms(self) -> float:
        if not self._frame_times:
            return 0.0
        return (sum(self._frame_times) / len(self._frame_times)) * 1000

    def stage_time_ms(self, stage: str) -> float:
        times = self._stage_times.get(stage)
        if not times:
            return 0.0
        return (sum(times) / len(times)) * 1000

    def get_metrics(self) -> PerformanceMetrics:
        return PerformanceMetrics(
            fps=self.fps,
            frame_time_ms=self.frame_time_ms,
            capture_time_ms=self.stage_time_ms("capture"),
            detection_time_ms=self.stage_time_ms("detection"),
            effects_time_ms=self.stage_time_ms("effects"),
            render_time_ms=self.stage_time_ms("render"),
            total_frames=self._total_frames,
            slow_frames=self._slow_frames,
        )

    def get_report(self) -> str:
        """Formatted report string."""
        m = self.get_metrics()
        breakdown = "".join(
            f"  {stage.capitalize()}: {self.stage_time_ms(stage):.2f}ms\n" for stage in STAGES)
        return (
            f"Performance Report\n"
            f"{'=' * 40}\n"
            f"FPS: {m.fps:.1f} (target: {self.target_fps})\n"
            f"Frame Time: {m.frame_time_ms:.1f}ms\n"
            f"\nPer-Stage Breakdown:\n"
            f"{breakdown}"
            f"\nFrame Stats:\n"
            f"  Total: {m.total_frames}\n"
            f"  Slow: {m.slow_frames} ({100 * m.slow_frames / max(1, m.total_frames):.1f}%)\n"
        )
