"""
Logging setup and effect event logging.
"""

import os
import logging
import logging.handlers
import time
from collections import deque


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console (and optional rotating file) logging."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(root_logger.level)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class EffectEventLogger:
    """Logs one-shot effect firings and keeps a short history."""

    def __init__(self, history_size=100):
        self.logger = logging.getLogger("effect_events")
        self._history = deque(maxlen=history_size)
        self._total = 0

    def log_event(self, name, particles, position=None, tick=None):
        """Record an effect that fired this tick."""
        entry = {
            "timestamp": time.time(),
            "effect": name,
            "particles": particles,
            "position": (round(position.x, 1), round(position.y, 1)) if position else None,
            "tick": tick,
        }
        self._history.append(entry)
        self._total += 1
        self.logger.info(
            "Effect: %-13s | Particles: %4d | At: %s | Tick: %s",
            name,
            particles,
            entry["position"] or "n/a",
            tick if tick is not None else "n/a",
        )

    def log_toggle(self, name, enabled):
        self.logger.info("Toggle: %-22s -> %s", name, "on" if enabled else "off")

    def get_history(self, last_n=None):
        history = list(self._history)
        if last_n:
            return history[-last_n:]
        return history

    @property
    def total_events(self):
        return self._total
