"""
Webcam Capture Module
======================

Frame acquisition for the effects canvas, with optional threaded capture
so the render loop never blocks on the device. Frames are delivered
unmirrored; landmark normalization and the renderer handle the selfie
view.
"""

import cv2
import time
import threading
import logging
from dataclasses import dataclass
from typing import Optional, Tuple
import numpy as np

logger = logging.getLogger(__name__)

MIN_CANVAS_SIZE = (480, 360)


def calculate_canvas_size(
    viewport_width: int,
    viewport_height: int,
    scale: float = 0.85,
) -> Tuple[int, int]:
    """
    Largest 4:3 canvas that fits in ``scale`` of the viewport.

    Never smaller than 480x360.

    Args:
        viewport_width: Available width in pixels
        viewport_height: Available height in pixels
        scale: Fraction of the viewport to use

    Returns:
        (width, height) in whole pixels
    """
    max_w = viewport_width * scale
    max_h = viewport_height * scale

    if max_w * 3 <= max_h * 4:
        width, height = max_w, max_w * 3 / 4
    else:
        width, height = max_h * 4 / 3, max_h

    min_w, min_h = MIN_CANVAS_SIZE
    if width < min_w or height < min_h:
        return MIN_CANVAS_SIZE
    return int(round(width)), int(round(height))


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    device_id: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30
    buffer_size: int = 1
    threaded: bool = True
    warmup_frames: int = 5

    @classmethod
    def from_dict(cls, config: dict) -> "CameraConfig":
        """Create config from dictionary (YAML parsed)."""
        return cls(
            device_id=config.get("device_id", 0),
            width=config.get("width", 640),
            height=config.get("height", 480),
            fps=config.get("fps", 30),
            buffer_size=config.get("buffer_size", 1),
            warmup_frames=config.get("warmup_frames", 5),
            threaded=config.get("threaded", True),
        )


@dataclass
class Frame:
    """Captured BGR image with its capture time."""
    image: np.ndarray
    timestamp: float
    frame_number: int

    @property
    def rgb(self) -> np.ndarray:
        """RGB copy for the landmark models."""
        return cv2.cvtColor(self.image, cv2.COLOR_BGR2RGB)


class Camera:
    """
    Webcam capture with optional background thread.

    ``read()`` returns None until the first frame arrives; callers draw
    a loading placeholder in the meantime.

    Example:
        >>> with Camera(CameraConfig(width=640, height=480)) as camera:
        ...     frame = camera.read()
        ...     if frame:
        ...         source.submit(frame.rgb, now_ms)
    """

    def __init__(self, config: Optional[CameraConfig] = None):
        self.config = config or CameraConfig()
        self._cap: Optional[cv2.VideoCapture] = None
        self._frame_number = 0
        self._running = False

        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._latest_frame: Optional[Frame] = None

    def start(self) -> bool:
        """
        Open the device and begin capturing.

        Returns:
            True if the camera opened and produced a test frame
        """
        cfg = self.config
        logger.info(f"Starting camera (device={cfg.device_id}, {cfg.width}x{cfg.height}@{cfg.fps}fps)")

        self._cap = cv2.VideoCapture(cfg.device_id)
        if not self._cap.isOpened():
            logger.error(f"Failed to open camera device {cfg.device_id}")
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, cfg.width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, cfg.height)
        self._cap.set(cv2.CAP_PROP_FPS, cfg.fps)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)

        ok, test_frame = self._cap.read()
        if not ok or test_frame is None:
            logger.error("Camera opened but returned no frames")
            self._cap.release()
            self._cap = None
            return False

        actual_width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info(f"Camera initialized: {actual_width}x{actual_height}")

        for _ in range(cfg.warmup_frames):
            self._cap.read()

        self._running = True
        self._frame_number = 0

        if cfg.threaded:
            self._thread = threading.Thread(target=self._capture_loop, daemon=True)
            self._thread.start()
            logger.debug("Started threaded capture")

        return True

    def stop(self) -> None:
        """Stop capture and release the device."""
        self._running = False

        if self._thread:
            self._thread.join(timeout=1.0)
            self._thread = None

        if self._cap:
            self._cap.release()
            self._cap = None

        logger.info("Camera stopped")

    def read(self) -> Optional[Frame]:
        """
        Latest frame, or None if nothing has been captured yet.

        In threaded mode this never blocks.
        """
        if not self._running:
            return None

        if self.config.threaded:
            with self._lock:
                return self._latest_frame
        return self._capture_frame()

    def _capture_frame(self) -> Optional[Frame]:
        if not self._cap:
            return None

        ok, image = self._cap.read()

        if not ok or image is None:
            logger.warning("Failed to capture frame")
            return None

        self._frame_number += 1
        return Frame(image=image, timestamp=time.time(), frame_number=self._frame_number)

    def _capture_loop(self) -> None:
        while self._running:
            frame = self._capture_frame()
            if frame:
                with self._lock:
                    self._latest_frame = frame

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def resolution(self) -> Tuple[int, int]:
        return (self.config.width, self.config.height)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
