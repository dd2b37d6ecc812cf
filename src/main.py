"""
Gesture FX - Main Application
==============================

Entry point for the webcam effects toy.
Orchestrates camera, landmark source, effects engine and visualization.
"""

import cv2
import yaml
import logging
import argparse
import signal
import time
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field

from capture.camera import Camera, CameraConfig, calculate_canvas_size
from detection.landmark_source import LandmarkSource, LandmarkSourceConfig
from effects.engine import EffectsConfig, EffectsEngine
from utils.logger import setup_logging
from utils.performance import PerformanceMonitor
from utils.visualization import Visualizer, VisualizerConfig

logger = logging.getLogger(__name__)

WINDOW_NAME = "Gesture FX"

# Keyboard shortcuts -> engine toggle names
KEY_TOGGLES = {
    ord('v'): "show_video",
    ord('f'): "show_face",
    ord('h'): "show_hands",
    ord('d'): "show_data_stream",
    ord('o'): "show_data_on_visualization",
    ord('1'): "wink_trigger",
    ord('2'): "mouth_text_trigger",
    ord('3'): "wrist_circle_trigger",
    ord('4'): "thumbs_up_trigger",
    ord('5'): "praying_trigger",
    ord('6'): "hand_trails",
    ord('s'): "wall_slime",
}


@dataclass
class AppConfig:
    """Application configuration container."""
    camera: CameraConfig = field(default_factory=CameraConfig)
    landmarks: LandmarkSourceConfig = field(default_factory=LandmarkSourceConfig)
    effects: EffectsConfig = field(default_factory=EffectsConfig)
    visualization: VisualizerConfig = field(default_factory=VisualizerConfig)
    viewport: tuple = (1280, 720)
    canvas_scale: float = 0.85
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_max_size_mb: int = 10
    log_backup_count: int = 3
    target_fps: float = 30.0


def load_config(config_path) -> dict:
    """Load configuration from YAML file."""
    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


def create_app_config(config_dict: dict) -> AppConfig:
    """Create AppConfig from configuration dictionary."""
    viz = config_dict.get("visualization", {})
    log_cfg = config_dict.get("logging", {})
    return AppConfig(
        camera=CameraConfig.from_dict(config_dict.get("camera", {})),
        landmarks=LandmarkSourceConfig.from_dict(config_dict.get("landmarks", {})),
        effects=EffectsConfig.from_dict(config_dict.get("effects", {})),
        visualization=VisualizerConfig.from_dict(viz),
        viewport=tuple(viz.get("viewport", [1280, 720])),
        canvas_scale=viz.get("canvas_scale", 0.85),
        log_level=log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        log_max_size_mb=log_cfg.get("max_size_mb", 10),
        log_backup_count=log_cfg.get("backup_count", 3),
        target_fps=config_dict.get("performance", {}).get("target_fps", 30.0),
    )


class FXApplication:
    """
    Main application class for Gesture FX.

    Coordinates all components:
    - Camera capture
    - Face and hand landmarks (MediaPipe, asynchronous)
    - Effects engine (triggers, particles, overlays)
    - Visualization
    - Performance monitoring
    """

    def __init__(self, config: AppConfig):
        self.config = config

        self.width, self.height = calculate_canvas_size(
            config.viewport[0], config.viewport[1], config.canvas_scale)

        self.camera = Camera(config.camera)
        self.source = LandmarkSource(config.landmarks)
        self.engine = EffectsEngine(config.effects, self.width, self.height)
        self.visualizer = Visualizer(config.visualization)
        self.performance = PerformanceMonitor(target_fps=config.target_fps)

        self.source.set_canvas_size(self.width, self.height)

        self._running = False
        self._start_time = 0.0

    def start(self) -> bool:
        """Start all components. Only a missing camera is fatal."""
        logger.info(f"Starting Gesture FX ({self.width}x{self.height} canvas)...")

        if not self.camera.start():
            logger.error("Failed to start camera")
            return False

        if not self.source.start():
            logger.warning("Landmark models unavailable; effects will only show ambient layers")

        self.performance.start()
        self._start_time = time.perf_counter()
        self._running = True
        logger.info("Gesture FX started")
        return True

    def stop(self) -> None:
        """Stop all components."""
        logger.info("Stopping Gesture FX...")
        self._running = False

        self.camera.stop()
        self.source.stop()
        self.performance.stop()

        cv2.destroyAllWindows()
        logger.info("Gesture FX stopped")

    def run(self) -> None:
        """Run the main application loop."""
        if not self.start():
            return

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        try:
            self._main_loop()
        finally:
            self.stop()
            self._print_final_report()

    def now_ms(self) -> float:
        return (time.perf_counter() - self._start_time) * 1000

    def _main_loop(self) -> None:
        while self._running:
            self.performance.frame_start()
            now_ms = self.now_ms()

            # === Capture Stage ===
            with self.performance.measure("capture"):
                frame = self.camera.read()

            # === Detection Stage ===
            with self.performance.measure("detection"):
                if frame is not None:
                    self.source.submit(frame.rgb, int(now_ms))
                snapshot = self.source.snapshot

            # === Effects Stage ===
            with self.performance.measure("effects"):
                self.engine.tick(snapshot, now_ms)

            # === Render Stage ===
            with self.performance.measure("render"):
                status = "" if self.source.is_ready else self.source.status_text
                canvas = self.visualizer.render(
                    self.engine,
                    frame.image if frame is not None else None,
                    fps=self.performance.fps,
                    status_text=status,
                )
                cv2.imshow(WINDOW_NAME, canvas)

            self.performance.frame_complete()
            self._handle_key(cv2.waitKey(1) & 0xFF)

    def _handle_key(self, key: int) -> None:
        if key == ord('q') or key == 27:
            self._running = False
        elif key == ord('p'):
            print(self.performance.get_report())
        elif key in KEY_TOGGLES:
            self.engine.flip_toggle(KEY_TOGGLES[key])

    def _signal_handler(self, signum, frame) -> None:
        logger.info(f"Received signal {signum}, shutting down...")
        self._running = False

    def _print_final_report(self) -> None:
        print("\n" + "=" * 50)
        print("FINAL PERFORMANCE REPORT")
        print("=" * 50)
        print(self.performance.get_report())
        print(f"Effects fired: {self.engine.events.total_events}")
        print(f"Landmark results: {self.source.result_count}")
        print("=" * 50)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Gesture FX - webcam effects driven by face and hand landmarks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Keyboard Controls:
  v         - Toggle video
  f / h     - Toggle face mesh / hands
  d / o     - Toggle data panel / data labels
  1-6       - Toggle wink, mouth text, wrist circle,
              thumbs up, praying, hand trails
  s         - Toggle wall slime
  p         - Print performance report
  q/ESC     - Quit

Examples:
  gesture-fx
  gesture-fx --camera 1 --seed 42
  gesture-fx --config custom_config.yaml --log-file logs/fx.log
        """
    )

    parser.add_argument(
        "--config", "-c",
        default="config/config.yaml",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for particle and overlay randomness"
    )

    parser.add_argument(
        "--camera",
        type=int,
        default=None,
        help="Camera device index"
    )

    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write logs to this rotating file"
    )

    args = parser.parse_args()

    config_path = Path(args.config)
    if not config_path.is_absolute() and not config_path.exists():
        config_path = Path(__file__).parent.parent / args.config

    config_found = config_path.exists()
    config_dict = load_config(config_path) if config_found else {}
    app_config = create_app_config(config_dict)

    if args.debug:
        app_config.log_level = "DEBUG"
    if args.log_file:
        app_config.log_file = args.log_file
    if args.seed is not None:
        app_config.effects.seed = args.seed
        app_config.visualization.seed = args.seed
    if args.camera is not None:
        app_config.camera.device_id = args.camera

    setup_logging(app_config.log_level, app_config.log_file,
                  app_config.log_max_size_mb, app_config.log_backup_count)

    if config_found:
        logger.info(f"Loaded configuration from {config_path}")
    else:
        logger.warning(f"Config file not found: {config_path}, using defaults")

    print("""
+-------------------------------------------+
|               GESTURE  FX                 |
|   face + hand landmark webcam effects     |
+-------------------------------------------+
    """)

    app = FXApplication(app_config)
    app.run()


if __name__ == "__main__":
    main()
