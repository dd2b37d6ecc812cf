"""Webcam capture and canvas sizing."""
from .camera import Camera, CameraConfig, Frame, calculate_canvas_size

__all__ = ["Camera", "CameraConfig", "Frame", "calculate_canvas_size"]
