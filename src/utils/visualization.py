"""
Visualization Module
=====================

Per-tick render pass: background (or its glitch variant), mirrored video,
landmark overlays, data readouts, trigger visuals, the four particle
collections, the timed word overlay and the status bar.

Translucent effects are drawn premultiplied onto a black layer and added
on top of the frame, so a particle's alpha scales its color.
"""

import math
import unicodedata
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from detection.landmarks import Face, FaceIndex, Hand
from recognition import predicates

Color = Tuple[int, int, int]


@dataclass
class VisualizerConfig:
    """Visualization settings."""
    show_fps: bool = True
    show_status: bool = True
    video_alpha: float = 200 / 255
    point_size: int = 5
    line_thickness: int = 2
    seed: Optional[int] = None

    # Colors (BGR format)
    text_color: Color = (0, 255, 255)       # Yellow
    wink_color: Color = (147, 20, 255)      # Deep pink
    outline_color: Color = (0, 0, 0)
    status_color: Color = (255, 255, 255)

    @classmethod
    def from_dict(cls, config: dict) -> "VisualizerConfig":
        """Create config from dictionary."""
        colors = config.get("colors", {})
        return cls(
            show_fps=config.get("show_fps", True),
            show_status=config.get("show_status", True),
            video_alpha=config.get("video_alpha", 200 / 255),
            point_size=config.get("point_size", 5),
            line_thickness=config.get("line_thickness", 2),
            seed=config.get("seed"),
            text_color=tuple(colors.get("text", [0, 255, 255])),
            wink_color=tuple(colors.get("wink", [147, 20, 255])),
            outline_color=tuple(colors.get("outline", [0, 0, 0])),
            status_color=tuple(colors.get("status", [255, 255, 255])),
        )


def ascii_text(text: str) -> str:
    """Hershey fonts only cover ASCII; strip accents and drop the rest."""
    normalized = unicodedata.normalize("NFKD", text)
    return normalized.encode("ascii", "ignore").decode("ascii")


def scaled(color: Color, alpha: float) -> Color:
    """Premultiply a BGR color by ``alpha`` in [0, 1]."""
    alpha = max(0.0, min(1.0, alpha))
    return tuple(int(c * alpha) for c in color)


def hue_color(hue: float, saturation: int = 230, value: int = 255) -> Color:
    """BGR color for a hue in degrees."""
    hsv = np.uint8([[[int(hue % 360) // 2, saturation, value]]])
    b, g, r = cv2.cvtColor(hsv, cv2.COLOR_HSV2BGR)[0, 0]
    return (int(b), int(g), int(r))


class Visualizer:
    """
    Draws one frame of the effects toy.

    Example:
        >>> viz = Visualizer(VisualizerConfig())
        >>> while running:
        ...     engine.tick(source.snapshot, now_ms)
        ...     canvas = viz.render(engine, frame.image, fps=monitor.fps)
        ...     cv2.imshow("Gesture FX", canvas)
    """

    # Hand connection pairs for drawing skeleton
    HAND_CONNECTIONS = [
        (0, 1), (1, 2), (2, 3), (3, 4),      # Thumb
        (0, 5), (5, 6), (6, 7), (7, 8),      # Index
        (0, 9), (9, 10), (10, 11), (11, 12), # Middle
        (0, 13), (13, 14), (14, 15), (15, 16), # Ring
        (0, 17), (17, 18), (18, 19), (19, 20), # Pinky
        (5, 9), (9, 13), (13, 17),           # Palm
    ]

    def __init__(self, config: Optional[VisualizerConfig] = None):
        self.config = config or VisualizerConfig()
        self.rng = np.random.default_rng(self.config.seed)
        self._font = cv2.FONT_HERSHEY_SIMPLEX

    # ------------------------------------------------------------------
    # Render pass
    # ------------------------------------------------------------------

    def render(
        self,
        engine,
        frame: Optional[np.ndarray],
        fps: float = 0.0,
        status_text: str = "",
    ) -> np.ndarray:
        """
        Compose the full canvas for the engine's current state.

        Args:
            engine: EffectsEngine after this tick's ``tick()``
            frame: Unmirrored BGR camera frame, or None if not available
            fps: Frame rate for the status bar
            status_text: Landmark source status, shown while not empty

        Returns:
            BGR canvas of the engine's size
        """
        width, height = engine.width, engine.height
        toggles = engine.toggles
        tick = engine.tick_count
        glitch = engine.glitch.active

        canvas = np.zeros((height, width, 3), dtype=np.uint8)
        if glitch:
            self.draw_glitch_background(canvas)

        if frame is not None:
            if toggles.show_video:
                canvas = self.draw_video(canvas, frame)
        else:
            self._put_text(canvas, "Loading camera...", (width // 2, height // 2),
                           24, self.config.status_color, center=True)

        snapshot = engine.snapshot
        if toggles.show_face or toggles.show_hands:
            layer = np.zeros_like(canvas)
            if toggles.show_face and snapshot.face is not None:
                self.draw_face_mesh(layer, snapshot.face, tick)
            if toggles.show_hands:
                self.draw_hands(layer, snapshot.hands, tick)
            if glitch:
                layer = self.glitch_transform(layer)
            mask = layer.any(axis=2)
            canvas[mask] = layer[mask]

        if toggles.show_data_stream:
            self.draw_data_panel(canvas, engine.data_readout())
        if toggles.show_data_on_visualization:
            self.draw_data_labels(canvas, engine)

        if engine.wink_message:
            self._put_text(canvas, engine.wink_message, (width // 2, height // 2), 36,
                           self.config.wink_color, thickness=3,
                           outline=(255, 255, 255), center=True)
        if engine.mouth_text_display:
            self.draw_wrapped_text(canvas, engine.mouth_text_display)
        if engine.circle is not None:
            center, diameter = engine.circle
            cv2.circle(canvas, center.to_pixel(), max(1, int(diameter / 2)), (255, 255, 255), -1)

        fx = np.zeros_like(canvas)
        if toggles.thumbs_up_trigger:
            self.draw_splash(fx, engine.splash.particles)
        if toggles.praying_trigger:
            self.draw_rings(fx, engine.rings.particles)
        if toggles.hand_trails:
            self.draw_trails(fx, engine.trails.particles)
        if toggles.wall_slime:
            self.draw_slime(fx, engine.slime.particles)
        if toggles.word_overlay:
            self.draw_word_overlay(fx, engine, width, height)
        canvas = cv2.add(canvas, fx)

        if toggles.wall_slime:
            self.draw_slime_lyrics(canvas, engine.slime.particles)

        self.draw_status_bar(canvas, engine.detection_count, fps, status_text)
        return canvas

    # ------------------------------------------------------------------
    # Background and video
    # ------------------------------------------------------------------

    def draw_video(self, canvas: np.ndarray, frame: np.ndarray) -> np.ndarray:
        """Mirrored, slightly transparent camera feed."""
        height, width = canvas.shape[:2]
        if frame.shape[:2] != (height, width):
            frame = cv2.resize(frame, (width, height))
        mirrored = cv2.flip(frame, 1)
        alpha = self.config.video_alpha
        return cv2.addWeighted(mirrored, alpha, canvas, 1.0 - alpha, 0)

    def draw_glitch_background(self, canvas: np.ndarray) -> np.ndarray:
        """Faint RGB-shifted washes plus a few noise lines."""
        height, width = canvas.shape[:2]
        for channel in (2, 1, 0):
            wash = np.zeros_like(canvas)
            dx = int(self.rng.integers(-2, 3))
            dy = int(self.rng.integers(-1, 2))
            x0, y0 = max(0, dx), max(0, dy)
            wash[y0:height + min(0, dy), x0:width + min(0, dx), channel] = 5
            cv2.add(canvas, wash, dst=canvas)

        for _ in range(5):
            y = int(self.rng.integers(0, height))
            cv2.line(canvas, (0, y), (width, y), (100, 100, 100), 1)
        return canvas

    def glitch_transform(self, layer: np.ndarray) -> np.ndarray:
        """Small random displacement, rotation and scale."""
        height, width = layer.shape[:2]
        angle = math.degrees(self.rng.uniform(-0.02, 0.02))
        scale = self.rng.uniform(0.98, 1.02)
        matrix = cv2.getRotationMatrix2D((width / 2, height / 2), angle, scale)
        matrix[0, 2] += self.rng.uniform(-3, 3)
        matrix[1, 2] += self.rng.uniform(-2, 2)
        return cv2.warpAffine(layer, matrix, (width, height))

    # ------------------------------------------------------------------
    # Landmarks
    # ------------------------------------------------------------------

    def draw_face_mesh(self, image: np.ndarray, face: Face, tick: int) -> np.ndarray:
        """Pulsing red mesh points with a sparse web of lines."""
        n = len(face.points)
        flicker = self.rng.uniform(0.7, 1.0, size=n)
        radius = max(1, int(self.config.point_size * 1.5 / 2))
        glow_radius = max(2, int(self.config.point_size * 3 / 2))

        for i, point in enumerate(face.points):
            if point is None:
                continue
            pos = point.to_pixel()
            if i < 50 or 100 < i < 150 or i > 400:
                cv2.circle(image, pos, glow_radius, (0, 0, 100), -1)

            pulse = math.sin(tick * 0.05 + i * 0.1) * 0.5 + 0.5
            red = min(255.0, 255 * pulse + 100) * flicker[i]
            green = 50 * pulse * flicker[i]
            cv2.circle(image, pos, radius, (0, int(green), int(red)), -1)

        for i in range(0, n - 5, 10):
            a, b = face.points[i], face.points[i + 5]
            if a is not None and b is not None:
                cv2.line(image, a.to_pixel(), b.to_pixel(), (0, 0, 150), 1)
        return image

    def draw_hands(self, image: np.ndarray, hands: Sequence[Hand], tick: int) -> np.ndarray:
        for hand_index, hand in enumerate(hands):
            self.draw_hand(image, hand, hand_index, tick)
        return image

    def draw_hand(self, image: np.ndarray, hand: Hand, hand_index: int, tick: int) -> np.ndarray:
        """Gradient-colored landmarks, skeleton and side label."""
        total = max(1, len(hand.points))
        connection_color = hue_color(tick * 1.5 + hand_index * 180 + 180)

        for start_idx, end_idx in self.HAND_CONNECTIONS:
            a, b = hand.get(start_idx), hand.get(end_idx)
            if a is not None and b is not None:
                cv2.line(image, a.to_pixel(), b.to_pixel(), connection_color,
                         self.config.line_thickness)

        for i, point in enumerate(hand.points):
            if point is None:
                continue
            color = hue_color(tick * 1.5 + (i + hand_index * 21) * 360 / total + 180)
            cv2.circle(image, point.to_pixel(), max(1, self.config.point_size // 2 + 1), color, -1)

        wrist = hand.wrist
        if wrist is not None:
            self._put_text(image, hand.label.capitalize(), (int(wrist.x), int(wrist.y) - 20),
                           12, connection_color, thickness=1, center=True)
        return image

    # ------------------------------------------------------------------
    # Data readouts
    # ------------------------------------------------------------------

    def draw_data_panel(self, image: np.ndarray, lines: List[str]) -> np.ndarray:
        """Readout list in a translucent box along the right edge."""
        height, width = image.shape[:2]
        line_height = 18
        panel_w = min(260, width // 2)
        panel_h = min(height - 20, 16 + line_height * len(lines))
        x0, y0 = width - panel_w - 10, 10

        roi = image[y0:y0 + panel_h, x0:x0 + panel_w]
        roi[:] = (roi * 0.4).astype(np.uint8)

        y = y0 + 20
        for line in lines:
            if y > y0 + panel_h:
                break
            cv2.putText(image, ascii_text(line), (x0 + 8, y), self._font, 0.45,
                        self.config.text_color, 1, cv2.LINE_AA)
            y += line_height
        return image

    def draw_data_labels(self, image: np.ndarray, engine) -> np.ndarray:
        """Readouts placed next to the landmarks they describe."""
        opts = engine.data_options
        cfg = engine.config
        face, hands = engine.snapshot.face, engine.snapshot.hands

        def label(text, point, dx, dy):
            if point is not None:
                self._put_text(image, text, (int(point.x + dx), int(point.y + dy)), 11,
                               self.config.text_color, thickness=1,
                               outline=self.config.outline_color)

        if face is not None:
            if opts.mouth_open:
                is_open = predicates.is_mouth_open(face, cfg.mouth_open_threshold)
                label(f"Mouth: {'Open' if is_open else 'Closed'}", face.get(FaceIndex.LOWER_LIP), 10, 20)
            if opts.left_eye_open:
                is_open = predicates.is_left_eye_open(face, cfg.eye_open_threshold)
                label(f"L Eye: {'Open' if is_open else 'Closed'}", face.get(FaceIndex.LEFT_EYE_INNER), 15, -10)
            if opts.right_eye_open:
                is_open = predicates.is_right_eye_open(face, cfg.eye_open_threshold)
                label(f"R Eye: {'Open' if is_open else 'Closed'}", face.get(FaceIndex.RIGHT_EYE_INNER), -60, -10)
            if opts.nose_center:
                nose = predicates.get_nose_center(face)
                if nose is not None:
                    label(f"({nose.x:.0f}, {nose.y:.0f})", nose, 10, -10)

        if opts.wrist_position:
            for i, wrist in enumerate(predicates.get_wrist_positions(hands)):
                if wrist is not None:
                    label(f"W{i + 1}: ({wrist.x:.0f}, {wrist.y:.0f})", wrist, 10, -10)
        if opts.hand_open:
            for hand, is_open in zip(hands, predicates.get_hands_open_status(hands)):
                label("Open" if is_open else "Closed", hand.palm, 10, 20)
        if opts.fingertip_positions:
            for tips in predicates.get_fingertip_positions(hands):
                for name, tip in zip("TIMRP", tips):
                    if tip is not None:
                        label(f"{name}:({tip.x:.0f},{tip.y:.0f})", tip, 8, -8)
        return image

    # ------------------------------------------------------------------
    # Trigger visuals
    # ------------------------------------------------------------------

    def wrap_lines(self, text: str, max_width: int, size_px: float) -> List[str]:
        """Greedy word wrap measured with the current font."""
        scale = size_px / 30.0
        lines: List[str] = []
        current = ""
        for word in ascii_text(text).split():
            candidate = f"{current} {word}".strip()
            (w, _), _ = cv2.getTextSize(candidate, self._font, scale, 2)
            if w > max_width and current:
                lines.append(current)
                current = word
            else:
                current = candidate
        if current:
            lines.append(current)
        return lines

    def draw_wrapped_text(self, image: np.ndarray, text: str) -> np.ndarray:
        """Mouth-text quote, centered at the top, wrapped to the canvas."""
        width = image.shape[1]
        y = 50
        for line in self.wrap_lines(text, width - 40, 24):
            self._put_text(image, line, (width // 2, y), 24, (0, 255, 255),
                           thickness=2, outline=self.config.outline_color, center=True)
            y += 30
        return image

    # ------------------------------------------------------------------
    # Particles (premultiplied, additive)
    # ------------------------------------------------------------------

    def draw_splash(self, fx: np.ndarray, particles) -> np.ndarray:
        for p in particles:
            alpha = min(p.life, 255) / 255
            cv2.circle(fx, (int(p.x), int(p.y)), max(1, int(p.size / 2)), scaled(p.color, alpha), -1)
        return fx

    def draw_rings(self, fx: np.ndarray, rings) -> np.ndarray:
        for ring in rings:
            cv2.circle(fx, (int(ring.x), int(ring.y)), max(1, int(ring.radius)),
                       scaled(ring.color, ring.alpha / 255), 2)
        return fx

    def draw_trails(self, fx: np.ndarray, trails) -> np.ndarray:
        for trail in trails:
            alpha = predicates.map_range(trail.life, 0, trail.max_life, 0, 80) / 255
            pos = (int(trail.x), int(trail.y))
            cv2.circle(fx, pos, max(1, int(trail.size / 2)), scaled(trail.color, alpha), -1)
            cv2.circle(fx, pos, max(1, int(trail.size * 0.3)), scaled((255, 255, 255), alpha * 0.3), -1)
        return fx

    def draw_slime(self, fx: np.ndarray, drops) -> np.ndarray:
        """Blob, drips and a short fading trail behind each drop."""
        for drop in drops:
            alpha = drop.life / 255
            color = scaled(drop.color, alpha)
            size = drop.size
            x, y = drop.x, drop.y

            cv2.circle(fx, (int(x), int(y)), max(1, int(size / 2)), color, -1)
            cv2.ellipse(fx, (int(x), int(y + size / 3)),
                        (max(1, int(size * 0.35)), max(1, int(size * 0.6))), 0, 0, 360, color, -1)
            cv2.ellipse(fx, (int(x), int(y + size / 2)),
                        (max(1, int(size * 0.2)), max(1, int(size * 0.4))), 0, 0, 360, color, -1)

            for j in range(1, 4):
                trail_color = scaled(drop.color, alpha * 0.3 / j)
                tx = int(x - drop.vx * j * 3)
                ty = int(y - drop.vy * j * 3)
                cv2.circle(fx, (tx, ty), max(1, int(size * 0.4 / j)), trail_color, -1)
        return fx

    def draw_slime_lyrics(self, image: np.ndarray, drops, visible_above: float = 100.0) -> np.ndarray:
        for drop in drops:
            if drop.show_lyric and drop.life > visible_above:
                color = scaled((200, 255, 200), drop.life * 0.8 / 255)
                self._put_text(image, drop.lyric, (int(drop.x), int(drop.y - drop.size)), 12,
                               color, thickness=1, outline=(0, 100, 0), center=True)
        return image

    def draw_word_overlay(self, fx: np.ndarray, engine, width: int, height: int) -> np.ndarray:
        overlay = engine.word_overlay
        opacity = overlay.opacity(engine.now_ms)
        if not overlay.is_visible or opacity <= 0:
            return fx
        drift = math.sin(engine.tick_count * 0.1) * 3
        pos = (int(width * 0.75), int(height * 0.15 + drift))
        self._put_text(fx, overlay.current_word, pos, 24, scaled((255, 255, 255), opacity / 255),
                       thickness=1, center=True)
        return fx

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def draw_status_bar(
        self,
        image: np.ndarray,
        detection_count: int,
        fps: float = 0.0,
        status_text: str = "",
    ) -> np.ndarray:
        height = image.shape[0]
        y = height - 12
        text = f"Detections: {detection_count}"
        if self.config.show_fps:
            text += f"  FPS: {fps:.1f}"
        cv2.putText(image, text, (10, y), self._font, 0.5, self.config.status_color, 1, cv2.LINE_AA)
        if self.config.show_status and status_text:
            cv2.putText(image, ascii_text(status_text), (10, y - 20), self._font, 0.5,
                        self.config.text_color, 1, cv2.LINE_AA)
        return image

    def _put_text(
        self,
        image: np.ndarray,
        text: str,
        org: Tuple[int, int],
        size_px: float,
        color: Color,
        thickness: int = 2,
        outline: Optional[Color] = None,
        center: bool = False,
    ) -> None:
        """putText with pixel-ish sizing, optional outline and centering."""
        text = ascii_text(text)
        if not text:
            return
        scale = size_px / 30.0
        x, y = org
        if center:
            (w, h), _ = cv2.getTextSize(text, self._font, scale, thickness)
            x -= w // 2
            y += h // 2
        if outline is not None:
            cv2.putText(image, text, (x, y), self._font, scale, outline, thickness + 2, cv2.LINE_AA)
        cv2.putText(image, text, (x, y), self._font, scale, color, thickness, cv2.LINE_AA)
