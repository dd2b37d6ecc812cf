"""
Geometric Predicates
=====================

Gesture states derived from a single detection snapshot. Thresholds are in
canvas pixels.

Missing detections never raise: most predicates fall back to False, the
eye-open checks fall back to True (so an absent face never reads as a
wink) and position queries return None.
"""

import math
from typing import List, Optional, Sequence

from detection.landmarks import (
    Face,
    FaceIndex,
    Hand,
    HandIndex,
    FINGERTIPS,
    HAND_LANDMARK_COUNT,
    Landmark,
    Point,
)

MOUTH_OPEN_THRESHOLD = 15.0
EYE_OPEN_THRESHOLD = 8.0
FIST_DISTANCE = 100.0
FIST_MIN_CLOSED = 3
THUMB_RAISE = 20.0
INDEX_CURL_MARGIN = 30.0
PRAYING_MIN_DISTANCE = 20.0
PRAYING_MAX_DISTANCE = 150.0


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two landmarks, 0 if either is absent."""
    if a is None or b is None:
        return 0.0
    return math.hypot(a.x - b.x, a.y - b.y)


def midpoint(a: Landmark, b: Landmark) -> Landmark:
    return Landmark(x=(a.x + b.x) / 2, y=(a.y + b.y) / 2)


# ----------------------------------------------------------------------
# Face
# ----------------------------------------------------------------------

def is_mouth_open(face: Optional[Face], threshold: float = MOUTH_OPEN_THRESHOLD) -> bool:
    """Lip gap above ``threshold``. Needs the full 478-point mesh."""
    if face is None or not face.is_complete:
        return False
    upper = face.get(FaceIndex.UPPER_LIP)
    lower = face.get(FaceIndex.LOWER_LIP)
    if upper is None or lower is None:
        return False
    return distance(upper, lower) > threshold


def _eye_open(face: Optional[Face], upper_idx: int, lower_idx: int, threshold: float) -> bool:
    if face is None or not face.is_complete:
        return True
    upper = face.get(upper_idx)
    lower = face.get(lower_idx)
    if upper is None or lower is None:
        return True
    return distance(upper, lower) > threshold


def is_left_eye_open(face: Optional[Face], threshold: float = EYE_OPEN_THRESHOLD) -> bool:
    """Subject's left eye. Fails open when landmarks are unavailable."""
    return _eye_open(face, FaceIndex.LEFT_EYE_UPPER, FaceIndex.LEFT_EYE_LOWER, threshold)


def is_right_eye_open(face: Optional[Face], threshold: float = EYE_OPEN_THRESHOLD) -> bool:
    """Subject's right eye. Fails open when landmarks are unavailable."""
    return _eye_open(face, FaceIndex.RIGHT_EYE_UPPER, FaceIndex.RIGHT_EYE_LOWER, threshold)


def is_winking(face: Optional[Face], threshold: float = EYE_OPEN_THRESHOLD) -> bool:
    """Exactly one eye open."""
    return is_left_eye_open(face, threshold) != is_right_eye_open(face, threshold)


def get_nose_center(face: Optional[Face]) -> Point:
    if face is None or len(face) <= 2:
        return None
    return face.get(FaceIndex.NOSE_TIP)


# ----------------------------------------------------------------------
# Hands
# ----------------------------------------------------------------------

def count_closed_fingers(hand: Optional[Hand], max_distance: float = FIST_DISTANCE) -> int:
    """Fingertips lying within ``max_distance`` of the wrist."""
    if hand is None or hand.wrist is None:
        return 0
    wrist = hand.wrist
    closed = 0
    for tip_idx in FINGERTIPS:
        tip = hand.get(tip_idx)
        if tip is not None and distance(wrist, tip) < max_distance:
            closed += 1
    return closed


def is_fist(
    hand: Optional[Hand],
    max_distance: float = FIST_DISTANCE,
    min_closed: int = FIST_MIN_CLOSED,
) -> bool:
    """At least ``min_closed`` fingertips curled in towards the wrist."""
    return count_closed_fingers(hand, max_distance) >= min_closed


def is_thumbs_up(
    hand: Optional[Hand],
    raise_px: float = THUMB_RAISE,
    curl_margin: float = INDEX_CURL_MARGIN,
) -> bool:
    """
    Thumb raised above its base with the index finger curled.

    The thumb tip must sit at least ``raise_px`` above the thumb MCP
    (smaller y), and the index tip must be no farther from the wrist than
    the index base plus ``curl_margin``.
    """
    if hand is None or len(hand) < HAND_LANDMARK_COUNT:
        return False

    thumb_tip = hand.get(HandIndex.THUMB_TIP)
    thumb_base = hand.get(HandIndex.THUMB_MCP)
    index_tip = hand.get(HandIndex.INDEX_TIP)
    index_base = hand.get(HandIndex.INDEX_MCP)
    wrist = hand.wrist
    if None in (thumb_tip, thumb_base, index_tip, index_base, wrist):
        return False

    thumb_extended = thumb_tip.y <= thumb_base.y - raise_px
    index_curled = distance(index_tip, wrist) < distance(index_base, wrist) + curl_margin
    return thumb_extended and index_curled


def thumbs_up_hands(hands: Sequence[Hand], **thresholds) -> List[Hand]:
    """Hands currently showing a thumbs-up, in detection order."""
    return [hand for hand in hands if is_thumbs_up(hand, **thresholds)]


def any_thumbs_up(hands: Sequence[Hand], **thresholds) -> bool:
    return len(thumbs_up_hands(hands, **thresholds)) >= 1


def is_double_thumbs_up(hands: Sequence[Hand], **thresholds) -> bool:
    """Two or more hands independently showing a thumbs-up."""
    if len(hands) < 2:
        return False
    return len(thumbs_up_hands(hands, **thresholds)) >= 2


def is_praying_hands(
    hands: Sequence[Hand],
    min_distance: float = PRAYING_MIN_DISTANCE,
    max_distance: float = PRAYING_MAX_DISTANCE,
) -> bool:
    """
    Two wrists close together.

    This is a proximity proxy only: any two nearby hands qualify regardless
    of palm orientation.
    """
    if len(hands) < 2:
        return False
    wrist1, wrist2 = hands[0].wrist, hands[1].wrist
    if wrist1 is None or wrist2 is None:
        return False
    return min_distance < distance(wrist1, wrist2) < max_distance


def get_praying_center(hands: Sequence[Hand]) -> Point:
    if len(hands) < 2:
        return None
    wrist1, wrist2 = hands[0].wrist, hands[1].wrist
    if wrist1 is None or wrist2 is None:
        return None
    return midpoint(wrist1, wrist2)


def get_wrist_positions(hands: Sequence[Hand]) -> List[Point]:
    """One wrist per hand, None where the wrist is missing."""
    return [hand.wrist for hand in hands]


def get_hands_open_status(hands: Sequence[Hand]) -> List[bool]:
    return [not is_fist(hand) for hand in hands]


def get_fingertip_positions(hands: Sequence[Hand]) -> List[List[Point]]:
    """Thumb..pinky tips for every hand."""
    return [[hand.get(idx) for idx in FINGERTIPS] for hand in hands]


def get_thumb_position(hands: Sequence[Hand]) -> Point:
    """Thumb tip of the first hand that has one."""
    for hand in hands:
        tip = hand.get(HandIndex.THUMB_TIP)
        if tip is not None:
            return tip
    return None


def get_all_thumb_positions(hands: Sequence[Hand]) -> List[Landmark]:
    return [hand.get(HandIndex.THUMB_TIP) for hand in hands
            if hand.get(HandIndex.THUMB_TIP) is not None]


def map_range(value: float, in_min: float, in_max: float, out_min: float, out_max: float) -> float:
    """Linear re-mapping without clamping."""
    if in_max == in_min:
        return out_min
    return out_min + (value - in_min) * (out_max - out_min) / (in_max - in_min)


def wrist_circle_diameter(
    wrist_distance: float,
    in_range=(50.0, 400.0),
    out_range=(20.0, 200.0),
) -> float:
    """Wrist distance mapped linearly onto a circle diameter, clamped."""
    size = map_range(wrist_distance, in_range[0], in_range[1], out_range[0], out_range[1])
    low, high = min(out_range), max(out_range)
    return max(low, min(high, size))
