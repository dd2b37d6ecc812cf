"""Landmark data model and the MediaPipe landmark source."""
from .landmarks import (
    Landmark,
    Face,
    Hand,
    DetectionSnapshot,
    FaceIndex,
    HandIndex,
    normalize_face,
    normalize_hand,
)

__all__ = [
    "Landmark",
    "Face",
    "Hand",
    "DetectionSnapshot",
    "FaceIndex",
    "HandIndex",
    "normalize_face",
    "normalize_hand",
]
