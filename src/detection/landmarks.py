"""
Landmark Data Model
====================

Fixed record types for everything the perception models report, plus the
single normalization step that turns raw model output into them.

Coordinates are canvas pixels. Index positions follow the MediaPipe face
mesh and hand topologies and are never reordered; a malformed point keeps
its slot as ``None`` so downstream index lookups stay valid.
"""

import math
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, NamedTuple, Any
from enum import IntEnum

logger = logging.getLogger(__name__)

FACE_LANDMARK_COUNT = 478
HAND_LANDMARK_COUNT = 21


class HandIndex(IntEnum):
    """Hand landmark indices following MediaPipe convention."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


FINGERTIPS = (
    HandIndex.THUMB_TIP,
    HandIndex.INDEX_TIP,
    HandIndex.MIDDLE_TIP,
    HandIndex.RING_TIP,
    HandIndex.PINKY_TIP,
)


class FaceIndex(IntEnum):
    """Face mesh indices used by the effects."""
    NOSE_TIP = 1
    UPPER_LIP = 13
    LOWER_LIP = 14
    LEFT_EYE_INNER = 133
    LEFT_EYE_UPPER = 159
    LEFT_EYE_LOWER = 145
    RIGHT_EYE_INNER = 362
    RIGHT_EYE_UPPER = 386
    RIGHT_EYE_LOWER = 374


class Landmark(NamedTuple):
    """A single 2-D keypoint in canvas pixel space."""
    x: float
    y: float

    def to_pixel(self) -> Tuple[int, int]:
        """Integer pixel position for drawing."""
        return (int(round(self.x)), int(round(self.y)))


Point = Optional[Landmark]


@dataclass
class Face:
    """Face mesh for one subject. Slots may be ``None`` when malformed."""
    points: List[Point]

    def get(self, index: int) -> Point:
        """Landmark at ``index`` or ``None`` when out of range."""
        if 0 <= index < len(self.points):
            return self.points[index]
        return None

    def __len__(self) -> int:
        return len(self.points)

    @property
    def is_complete(self) -> bool:
        """True when the full refined mesh is available."""
        return len(self.points) >= FACE_LANDMARK_COUNT


@dataclass
class Hand:
    """21 hand landmarks plus the side label ("left" or "right")."""
    points: List[Point]
    label: str = "right"

    def get(self, index: int) -> Point:
        """Landmark at ``index`` or ``None`` when out of range."""
        if 0 <= index < len(self.points):
            return self.points[index]
        return None

    def __len__(self) -> int:
        return len(self.points)

    @property
    def wrist(self) -> Point:
        return self.get(HandIndex.WRIST)

    @property
    def palm(self) -> Point:
        """Middle finger base, used as the palm anchor for trails."""
        return self.get(HandIndex.MIDDLE_MCP)


@dataclass
class DetectionSnapshot:
    """Faces and hands reported for the current tick."""
    faces: List[Face] = field(default_factory=list)
    hands: List[Hand] = field(default_factory=list)

    @property
    def face(self) -> Optional[Face]:
        """The single tracked face, if any."""
        return self.faces[0] if self.faces else None

    @property
    def detection_count(self) -> int:
        return len(self.faces) + len(self.hands)

    def all_points(self) -> List[Landmark]:
        """Every valid point of the first face and all hands, in order."""
        points: List[Landmark] = []
        if self.face is not None:
            points.extend(p for p in self.face.points if p is not None)
        for hand in self.hands:
            points.extend(p for p in hand.points if p is not None)
        return points


def _coordinate(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _raw_xy(raw: Any) -> Tuple[Optional[float], Optional[float]]:
    """Pull x/y from an attribute object, a mapping or a sequence."""
    if raw is None:
        return None, None
    if hasattr(raw, "x") and hasattr(raw, "y"):
        return _coordinate(raw.x), _coordinate(raw.y)
    if isinstance(raw, dict):
        return _coordinate(raw.get("x")), _coordinate(raw.get("y"))
    if isinstance(raw, (list, tuple)) and len(raw) >= 2:
        return _coordinate(raw[0]), _coordinate(raw[1])
    return None, None


def normalize_point(
    raw: Any,
    width: int,
    height: int,
    mirror: bool = True,
    normalized: bool = True,
) -> Point:
    """
    Convert one model point into a canvas-space Landmark.

    Args:
        raw: Point in any supported shape
        width: Canvas width in pixels
        height: Canvas height in pixels
        mirror: Flip horizontally to match the mirrored video feed
        normalized: Input coordinates are in [0, 1] rather than pixels

    Returns:
        Landmark, or None if the point has no usable coordinates
    """
    x, y = _raw_xy(raw)
    if x is None or y is None:
        return None

    if normalized:
        x *= width
        y *= height
    if mirror:
        x = width - x

    return Landmark(x=x, y=y)


def normalize_points(
    raw_points: Optional[Sequence[Any]],
    width: int,
    height: int,
    mirror: bool = True,
    normalized: bool = True,
) -> List[Point]:
    """Normalize a whole landmark list, keeping slot positions."""
    if not raw_points:
        return []
    points = [normalize_point(p, width, height, mirror, normalized) for p in raw_points]
    skipped = sum(1 for p in points if p is None)
    if skipped:
        logger.debug(f"Skipped {skipped} malformed landmark(s)")
    return points


def normalize_face(raw_points, width: int, height: int, mirror: bool = True) -> Face:
    """Build a Face from raw face mesh points."""
    return Face(points=normalize_points(raw_points, width, height, mirror))


def normalize_hand(
    raw_points,
    label: str,
    width: int,
    height: int,
    mirror: bool = True,
) -> Hand:
    """Build a Hand from raw hand points and a handedness label."""
    side = (label or "right").strip().lower()
    if side not in ("left", "right"):
        side = "right"
    return Hand(points=normalize_points(raw_points, width, height, mirror), label=side)
