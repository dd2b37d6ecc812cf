"""
Landmark Source - MediaPipe Tasks API (LIVE_STREAM)
=====================================================

Runs the MediaPipe FaceLandmarker and HandLandmarker asynchronously and
publishes their most recent results as a DetectionSnapshot.

Results arrive on MediaPipe's own callback thread at the source's cadence
and overwrite the face or hand half of the snapshot wholesale. The render
loop reads whatever is there at the start of each tick, without locking.
"""

import logging
import urllib.request
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import numpy as np
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from .landmarks import DetectionSnapshot, Face, Hand, normalize_face, normalize_hand

logger = logging.getLogger(__name__)

FACE_LANDMARKER_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/face_landmarker/face_landmarker/float16/1/face_landmarker.task"
HAND_LANDMARKER_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task"
DEFAULT_MODEL_DIR = Path(__file__).parent.parent.parent / "models"


class SourceState(Enum):
    """Start-up state of the landmark source."""
    UNINITIALIZED = auto()
    LOADING = auto()
    READY = auto()
    FAILED = auto()


@dataclass
class LandmarkSourceConfig:
    """Configuration for the face and hand landmarkers."""
    face_model_path: str = ""
    hand_model_path: str = ""
    max_num_faces: int = 1
    max_num_hands: int = 2
    min_detection_confidence: float = 0.5
    min_presence_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    detection_interval_ms: int = 100  # ~10 results/sec
    mirror: bool = True

    @classmethod
    def from_dict(cls, d: dict) -> "LandmarkSourceConfig":
        """Create config from dictionary."""
        return cls(
            face_model_path=d.get("face_model_path", ""),
            hand_model_path=d.get("hand_model_path", ""),
            max_num_faces=d.get("max_num_faces", 1),
            max_num_hands=d.get("max_num_hands", 2),
            min_detection_confidence=d.get("min_detection_confidence", 0.5),
            min_presence_confidence=d.get("min_presence_confidence", 0.5),
            min_tracking_confidence=d.get("min_tracking_confidence", 0.5),
            detection_interval_ms=d.get("detection_interval_ms", 100),
            mirror=d.get("mirror", True),
        )


def download_model(url: str, save_path: Path) -> bool:
    """Download a landmarker model if not present."""
    if save_path.exists():
        logger.info(f"Model already exists at {save_path}")
        return True

    try:
        save_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Downloading model to {save_path}...")
        urllib.request.urlretrieve(url, save_path)
        logger.info("Model download complete!")
        return True
    except Exception as e:
        logger.error(f"Failed to download model from {url}: {e}")
        return False


class LandmarkSource:
    """
    Asynchronous face + hand landmark provider.

    Example:
        >>> source = LandmarkSource(LandmarkSourceConfig(), on_status=print)
        >>> source.start()
        >>> source.set_canvas_size(640, 480)
        >>> source.submit(rgb_image, timestamp_ms)
        >>> snapshot = source.snapshot
    """

    def __init__(
        self,
        config: Optional[LandmarkSourceConfig] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ):
        self.config = config or LandmarkSourceConfig()
        self._on_status = on_status
        self._state = SourceState.UNINITIALIZED
        self._status_text = ""

        self._face_landmarker: Optional[vision.FaceLandmarker] = None
        self._hand_landmarker: Optional[vision.HandLandmarker] = None

        self._canvas_size: Tuple[int, int] = (640, 480)
        self._last_submit_ms: Optional[int] = None
        self._last_timestamp_ms = -1
        self._result_count = 0

        # Overwritten wholesale by the callbacks
        self._faces: List[Face] = []
        self._hands: List[Hand] = []

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @property
    def state(self) -> SourceState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == SourceState.READY

    @property
    def status_text(self) -> str:
        return self._status_text

    def _set_state(self, state: SourceState, message: str) -> None:
        if state != self._state:
            logger.info(f"Landmark source: {self._state.name} -> {state.name}")
        self._state = state
        self._status_text = message
        logger.info(message)
        if self._on_status:
            self._on_status(message)

    def start(self) -> bool:
        """Load both models. Returns True if at least one is usable."""
        if self._state == SourceState.READY:
            return True

        self._set_state(SourceState.LOADING, "Loading Face Mesh...")
        self._face_landmarker = self._create_face_landmarker()

        self._set_state(SourceState.LOADING, "Loading Hand Pose...")
        self._hand_landmarker = self._create_hand_landmarker()

        if self._face_landmarker and self._hand_landmarker:
            self._set_state(SourceState.READY, "All models ready! Starting predictions...")
        elif self._face_landmarker or self._hand_landmarker:
            self._set_state(SourceState.READY, "Some models failed, starting with available ones...")
        else:
            self._set_state(SourceState.FAILED, "Error loading landmark models.")
            return False
        return True

    def stop(self) -> None:
        """Release resources."""
        if self._face_landmarker:
            self._face_landmarker.close()
            self._face_landmarker = None
        if self._hand_landmarker:
            self._hand_landmarker.close()
            self._hand_landmarker = None
        self._faces = []
        self._hands = []
        self._state = SourceState.UNINITIALIZED
        logger.info("Landmark source stopped")

    def _resolve_model(self, configured: str, filename: str, url: str) -> Optional[str]:
        model_path = Path(configured) if configured else DEFAULT_MODEL_DIR / filename
        if not model_path.exists() and not download_model(url, model_path):
            return None
        return str(model_path)

    def _create_face_landmarker(self) -> Optional[vision.FaceLandmarker]:
        model_path = self._resolve_model(
            self.config.face_model_path, "face_landmarker.task", FACE_LANDMARKER_MODEL_URL)
        if model_path is None:
            logger.error("Could not obtain face landmarker model")
            return None
        try:
            options = vision.FaceLandmarkerOptions(
                base_options=python.BaseOptions(model_asset_path=model_path),
                running_mode=vision.RunningMode.LIVE_STREAM,
                num_faces=self.config.max_num_faces,
                min_face_detection_confidence=self.config.min_detection_confidence,
                min_face_presence_confidence=self.config.min_presence_confidence,
                min_tracking_confidence=self.config.min_tracking_confidence,
                result_callback=self._on_face_result,
            )
            landmarker = vision.FaceLandmarker.create_from_options(options)
            logger.info(f"FaceLandmarker initialized with model: {model_path}")
            return landmarker
        except Exception as e:
            logger.error(f"Failed to initialize FaceLandmarker: {e}")
            return None

    def _create_hand_landmarker(self) -> Optional[vision.HandLandmarker]:
        model_path = self._resolve_model(
            self.config.hand_model_path, "hand_landmarker.task", HAND_LANDMARKER_MODEL_URL)
        if model_path is None:
            logger.error("Could not obtain hand landmarker model")
            return None
        try:
            options = vision.HandLandmarkerOptions(
                base_options=python.BaseOptions(model_asset_path=model_path),
                running_mode=vision.RunningMode.LIVE_STREAM,
                num_hands=self.config.max_num_hands,
                min_hand_detection_confidence=self.config.min_detection_confidence,
                min_hand_presence_confidence=self.config.min_presence_confidence,
                min_tracking_confidence=self.config.min_tracking_confidence,
                result_callback=self._on_hand_result,
            )
            landmarker = vision.HandLandmarker.create_from_options(options)
            logger.info(f"HandLandmarker initialized with model: {model_path}, max hands: {self.config.max_num_hands}")
            return landmarker
        except Exception as e:
            logger.error(f"Failed to initialize HandLandmarker: {e}")
            return None

    # ------------------------------------------------------------------
    # Frame submission and results
    # ------------------------------------------------------------------

    def set_canvas_size(self, width: int, height: int) -> None:
        """Pixel space that reported landmarks are mapped into."""
        self._canvas_size = (int(width), int(height))

    def submit(self, image: np.ndarray, timestamp_ms: int) -> bool:
        """
        Hand an RGB frame to the landmarkers if the detection interval elapsed.

        Args:
            image: RGB image as numpy array (H, W, 3), unmirrored
            timestamp_ms: Monotonic timestamp in milliseconds

        Returns:
            True if the frame was submitted
        """
        if not self.is_ready:
            return False

        if (self._last_submit_ms is not None and
                timestamp_ms - self._last_submit_ms < self.config.detection_interval_ms):
            return False

        # MediaPipe rejects non-increasing timestamps
        timestamp_ms = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms
        self._last_submit_ms = timestamp_ms

        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=image)
        if self._face_landmarker:
            self._face_landmarker.detect_async(mp_image, timestamp_ms)
        if self._hand_landmarker:
            self._hand_landmarker.detect_async(mp_image, timestamp_ms)
        return True

    def _on_face_result(self, result, output_image, timestamp_ms: int) -> None:
        width, height = self._canvas_size
        self._faces = [
            normalize_face(face_landmarks, width, height, self.config.mirror)
            for face_landmarks in (result.face_landmarks or [])
        ]
        self._result_count += 1

    def _on_hand_result(self, result, output_image, timestamp_ms: int) -> None:
        width, height = self._canvas_size
        hands = []
        for i, hand_landmarks in enumerate(result.hand_landmarks or []):
            label = "right"
            if result.handedness and len(result.handedness) > i and result.handedness[i]:
                label = result.handedness[i][0].category_name
            hands.append(normalize_hand(hand_landmarks, label, width, height, self.config.mirror))
        self._hands = hands
        self._result_count += 1

    @property
    def snapshot(self) -> DetectionSnapshot:
        """Most recent faces and hands."""
        return DetectionSnapshot(faces=self._faces, hands=self._hands)

    @property
    def result_count(self) -> int:
        return self._result_count

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
