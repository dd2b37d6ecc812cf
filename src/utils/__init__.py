"""Utility modules for logging, performance and visualization."""
from .logger import setup_logging, EffectEventLogger
from .performance import PerformanceMonitor
from .visualization import Visualizer, VisualizerConfig

__all__ = [
    "setup_logging",
    "EffectEventLogger",
    "PerformanceMonitor",
    "Visualizer",
    "VisualizerConfig",
]
