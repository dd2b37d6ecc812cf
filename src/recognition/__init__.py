"""Gesture recognition module."""
from .predicates import distance, is_fist, is_thumbs_up, is_double_thumbs_up, is_praying_hands
from .edge_detectors import (
    EdgeTrigger,
    WinkTrigger,
    MouthTextTrigger,
    ThumbsUpTrigger,
    PrayingTrigger,
    WristCircleTrigger,
    TriggerEvent,
)
from .motion import MotionGlitchDetector

__all__ = [
    "distance",
    "is_fist",
    "is_thumbs_up",
    "is_double_thumbs_up",
    "is_praying_hands",
    "EdgeTrigger",
    "WinkTrigger",
    "MouthTextTrigger",
    "ThumbsUpTrigger",
    "PrayingTrigger",
    "WristCircleTrigger",
    "TriggerEvent",
    "MotionGlitchDetector",
]
