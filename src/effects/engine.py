"""
Effects Engine
===============

Application state for the effects toy: user toggles, gesture edge state,
the four particle collections, the timed word overlay and the motion
glitch. ``tick()`` is called once per rendered frame with the latest
detection snapshot; the Visualizer then draws whatever state it left
behind.
"""

import logging
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional, Tuple

import numpy as np

from detection.landmarks import DetectionSnapshot, Landmark
from recognition import predicates
from recognition.edge_detectors import (
    MouthTextTrigger,
    PrayingTrigger,
    ThumbsUpTrigger,
    TriggerEvent,
    WinkTrigger,
    WristCircleTrigger,
)
from recognition.motion import MotionGlitchDetector
from utils.logger import EffectEventLogger
from .particles import RingSystem, SlimeSystem, SplashSystem, TrailSystem
from .word_overlay import TimedWordOverlay

logger = logging.getLogger(__name__)

DEFAULT_QUOTE = (
    "Thunder crashes through the darkness eternal flames rise from the abyss "
    "steel warriors march into battle ancient power flows through veins of fire "
    "darkness consumes the light above savage winds howl across barren lands "
    "metallic gods forge destiny in chaos storm clouds gather over mountain peaks "
    "iron hearts beat with primal rage electric energy surges through the void "
    "crimson skies burn with unholy light shadow beasts roam the cursed earth"
)

OVERLAY_WORDS = [
    "¡PAPAYA!", "¡CHURROS!", "¡BURRITO!", "¡FIESTA!", "¡PIÑATA!",
    "¡GUACAMOLE!", "¡QUESADILLA!", "¡TACO!", "¡SALSA!", "¡NACHO!",
    "¡MARIACHI!", "¡SOMBRERO!", "¡MACARENA!", "¡JALAPEÑO!", "¡TORTILLA!",
    "¡ENCHILADA!", "¡CHIHUAHUA!", "¡TAMALE!", "¡GAZPACHO!", "¡FRIJOLES!",
]

SLIME_LYRICS = [
    "STEEL FORGED IN DARKNESS",
    "CHAINS OF ETERNAL TORMENT",
    "THUNDER SPLITS THE VOID",
    "BLOOD RAIN DESCENDS",
    "IRON WILL NEVER BEND",
    "SHADOWS CONSUME ALL",
    "FIRE BURNS WITHIN",
    "CHAOS REIGNS SUPREME",
    "METAL GODS ARISE",
    "DESTINY CARVED IN STONE",
    "POWER FLOWS THROUGH VEINS",
    "DARKNESS NEVER DIES",
    "RAGE FUELS THE MACHINE",
    "STEEL MEETS FLESH",
    "ANCIENT POWER AWAKENS",
]


@dataclass
class EffectToggles:
    """Overlay and trigger switches."""
    show_video: bool = True
    show_face: bool = False
    show_hands: bool = False
    show_data_stream: bool = False
    show_data_on_visualization: bool = False
    wink_trigger: bool = False
    mouth_text_trigger: bool = False
    wrist_circle_trigger: bool = False
    thumbs_up_trigger: bool = False
    praying_trigger: bool = False
    hand_trails: bool = False
    wall_slime: bool = True
    word_overlay: bool = True

    @classmethod
    def from_dict(cls, d: dict) -> "EffectToggles":
        defaults = cls()
        return cls(**{f.name: bool(d.get(f.name, getattr(defaults, f.name))) for f in fields(cls)})


@dataclass
class DataStreamOptions:
    """Which readouts the data panel and on-canvas labels show."""
    mouth_open: bool = False
    left_eye_open: bool = False
    right_eye_open: bool = False
    nose_center: bool = False
    wrist_position: bool = False
    hand_open: bool = False
    fingertip_positions: bool = False

    @classmethod
    def from_dict(cls, d: dict) -> "DataStreamOptions":
        return cls(**{f.name: bool(d.get(f.name, False)) for f in fields(cls)})


@dataclass
class EffectsConfig:
    """Thresholds, timings and initial state for the effects engine."""
    mouth_open_threshold: float = 15.0
    eye_open_threshold: float = 8.0
    thumb_raise_px: float = 20.0
    index_curl_margin: float = 30.0
    praying_min_distance: float = 20.0
    praying_max_distance: float = 150.0
    wrist_circle_in: Tuple[float, float] = (50.0, 400.0)
    wrist_circle_out: Tuple[float, float] = (20.0, 200.0)
    wink_rotate_ticks: int = 45
    word_interval_ms: float = 200.0
    ring_burst: int = 5
    ring_emit_ticks: int = 10
    trail_max_particles: int = 200
    slime_interval_ms: Tuple[float, float] = (800.0, 2000.0)
    word_period_ms: float = 20000.0
    word_display_ms: float = 3000.0
    movement_threshold: float = 5.0
    glitch_duration_ms: float = 200.0
    quote: str = DEFAULT_QUOTE
    seed: Optional[int] = None
    toggles: EffectToggles = field(default_factory=EffectToggles)
    data_options: DataStreamOptions = field(default_factory=DataStreamOptions)

    @classmethod
    def from_dict(cls, config: dict) -> "EffectsConfig":
        """Create config from dictionary."""
        return cls(
            mouth_open_threshold=config.get("mouth_open_threshold", 15.0),
            eye_open_threshold=config.get("eye_open_threshold", 8.0),
            thumb_raise_px=config.get("thumb_raise_px", 20.0),
            index_curl_margin=config.get("index_curl_margin", 30.0),
            praying_min_distance=config.get("praying_min_distance", 20.0),
            praying_max_distance=config.get("praying_max_distance", 150.0),
            wrist_circle_in=tuple(config.get("wrist_circle_in", [50.0, 400.0])),
            wrist_circle_out=tuple(config.get("wrist_circle_out", [20.0, 200.0])),
            wink_rotate_ticks=config.get("wink_rotate_ticks", 45),
            word_interval_ms=config.get("word_interval_ms", 200.0),
            ring_burst=config.get("ring_burst", 5),
            ring_emit_ticks=config.get("ring_emit_ticks", 10),
            trail_max_particles=config.get("trail_max_particles", 200),
            slime_interval_ms=tuple(config.get("slime_interval_ms", [800.0, 2000.0])),
            word_period_ms=config.get("word_period_ms", 20000.0),
            word_display_ms=config.get("word_display_ms", 3000.0),
            movement_threshold=config.get("movement_threshold", 5.0),
            glitch_duration_ms=config.get("glitch_duration_ms", 200.0),
            quote=config.get("quote") or DEFAULT_QUOTE,
            seed=config.get("seed"),
            toggles=EffectToggles.from_dict(config.get("toggles", {})),
            data_options=DataStreamOptions.from_dict(config.get("data_options", {})),
        )


class EffectsEngine:
    """
    Per-tick gesture effects.

    Example:
        >>> engine = EffectsEngine(EffectsConfig(), width=640, height=480)
        >>> engine.set_thumbs_up_trigger(True)
        >>> events = engine.tick(source.snapshot, now_ms)
        >>> canvas = visualizer.render(engine, frame.image)
    """

    def __init__(self, config: Optional[EffectsConfig] = None, width: int = 640, height: int = 480):
        self.config = config or EffectsConfig()
        cfg = self.config
        self.width = width
        self.height = height

        self.rng = np.random.default_rng(cfg.seed)
        self.toggles = EffectToggles(**vars(cfg.toggles))
        self.data_options = DataStreamOptions(**vars(cfg.data_options))
        self.events = EffectEventLogger()

        # Particle collections
        self.splash = SplashSystem(self.rng)
        self.rings = RingSystem(self.rng)
        self.trails = TrailSystem(self.rng, max_particles=cfg.trail_max_particles)
        self.slime = SlimeSystem(width, height, SLIME_LYRICS, self.rng,
                                 interval_ms=cfg.slime_interval_ms)
        self.word_overlay = TimedWordOverlay(OVERLAY_WORDS, self.rng,
                                             period_ms=cfg.word_period_ms,
                                             display_ms=cfg.word_display_ms)

        # Gesture triggers
        self.wink = WinkTrigger(rotate_every=cfg.wink_rotate_ticks,
                                eye_threshold=cfg.eye_open_threshold)
        self.mouth_text = MouthTextTrigger(cfg.quote, cfg.word_interval_ms,
                                           cfg.mouth_open_threshold)
        self.wrist_circle = WristCircleTrigger(cfg.wrist_circle_in, cfg.wrist_circle_out)
        self.thumbs_up = ThumbsUpTrigger(self.splash, cfg.thumb_raise_px, cfg.index_curl_margin)
        self.praying = PrayingTrigger(self.rings, cfg.ring_burst, cfg.ring_emit_ticks,
                                      cfg.praying_min_distance, cfg.praying_max_distance)
        self.glitch = MotionGlitchDetector(cfg.movement_threshold, cfg.glitch_duration_ms)

        # Per-tick outputs read by the renderer
        self.tick_count = 0
        self.now_ms = 0.0
        self.snapshot = DetectionSnapshot()
        self.wink_message: Optional[str] = None
        self.mouth_text_display = ""
        self.circle: Optional[Tuple[Landmark, float]] = None

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.slime.set_bounds(width, height)

    @property
    def canvas_center(self) -> Landmark:
        return Landmark(x=self.width / 2, y=self.height / 2)

    @property
    def detection_count(self) -> int:
        return self.snapshot.detection_count

    def tick(self, snapshot: DetectionSnapshot, now_ms: float) -> List[TriggerEvent]:
        """
        Advance all effects by one frame.

        Args:
            snapshot: Latest faces and hands
            now_ms: Milliseconds since start (monotonic)

        Returns:
            One-shot effects that fired this tick
        """
        self.tick_count += 1
        self.now_ms = now_ms
        self.snapshot = snapshot
        face, hands = snapshot.face, snapshot.hands
        t = self.toggles
        fired: List[TriggerEvent] = []

        self.glitch.update(snapshot.all_points(), now_ms)

        self.wink_message = self.wink.update(face, self.tick_count) if t.wink_trigger else None
        self.mouth_text_display = self.mouth_text.update(face, now_ms) if t.mouth_text_trigger else ""
        self.circle = self.wrist_circle.update(hands) if t.wrist_circle_trigger else None

        if t.thumbs_up_trigger:
            event = self.thumbs_up.update(hands, self.canvas_center)
            if event:
                fired.append(event)
            self.splash.update()

        if t.praying_trigger:
            event = self.praying.update(hands, self.tick_count)
            if event:
                fired.append(event)
            self.rings.update()

        if t.hand_trails:
            for hand in hands:
                if hand.palm is not None:
                    self.trails.spawn(hand.palm)
            self.trails.update()

        if t.wall_slime:
            self.slime.maybe_spawn(now_ms)
            self.slime.update()

        if t.word_overlay:
            self.word_overlay.update(now_ms)

        for event in fired:
            self.events.log_event(event.name, event.particles, event.position, self.tick_count)

        return fired

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def set_toggle(self, name: str, enabled: bool) -> None:
        """Set any toggle or data option by name."""
        enabled = bool(enabled)
        if hasattr(self.toggles, name):
            setattr(self.toggles, name, enabled)
        elif hasattr(self.data_options, name):
            setattr(self.data_options, name, enabled)
        else:
            raise KeyError(f"Unknown toggle: {name}")

        if name == "mouth_text_trigger" and enabled:
            self.mouth_text.set_quote(self.config.quote)
        elif name == "mouth_text_trigger" and not enabled:
            self.mouth_text.reset()
        elif name == "thumbs_up_trigger" and not enabled:
            self.thumbs_up.reset()
        elif name == "praying_trigger" and not enabled:
            self.praying.reset()

        self.events.log_toggle(name, enabled)

    def flip_toggle(self, name: str) -> bool:
        """Invert a toggle and return its new value."""
        if hasattr(self.toggles, name):
            target = self.toggles
        elif hasattr(self.data_options, name):
            target = self.data_options
        else:
            raise KeyError(f"Unknown toggle: {name}")
        value = not getattr(target, name)
        self.set_toggle(name, value)
        return value

    def toggle_states(self) -> Dict[str, bool]:
        states = dict(vars(self.toggles))
        states.update(vars(self.data_options))
        return states

    def set_quote(self, quote: str) -> None:
        self.config.quote = quote or DEFAULT_QUOTE
        self.mouth_text.set_quote(self.config.quote)
        logger.info(f"Mouth text quote set ({len(self.mouth_text.words)} words)")

    def set_show_video(self, enabled: bool) -> None:
        self.set_toggle("show_video", enabled)

    def set_show_face(self, enabled: bool) -> None:
        self.set_toggle("show_face", enabled)

    def set_show_hands(self, enabled: bool) -> None:
        self.set_toggle("show_hands", enabled)

    def set_show_data_stream(self, enabled: bool) -> None:
        self.set_toggle("show_data_stream", enabled)

    def set_show_data_on_visualization(self, enabled: bool) -> None:
        self.set_toggle("show_data_on_visualization", enabled)

    def set_wink_trigger(self, enabled: bool) -> None:
        self.set_toggle("wink_trigger", enabled)

    def set_mouth_text_trigger(self, enabled: bool) -> None:
        self.set_toggle("mouth_text_trigger", enabled)

    def set_wrist_circle_trigger(self, enabled: bool) -> None:
        self.set_toggle("wrist_circle_trigger", enabled)

    def set_thumbs_up_trigger(self, enabled: bool) -> None:
        self.set_toggle("thumbs_up_trigger", enabled)

    def set_praying_trigger(self, enabled: bool) -> None:
        self.set_toggle("praying_trigger", enabled)

    def set_hand_trails(self, enabled: bool) -> None:
        self.set_toggle("hand_trails", enabled)

    def set_wall_slime(self, enabled: bool) -> None:
        self.set_toggle("wall_slime", enabled)

    def set_word_overlay(self, enabled: bool) -> None:
        self.set_toggle("word_overlay", enabled)

    def set_data_option(self, name: str, enabled: bool) -> None:
        if not hasattr(self.data_options, name):
            raise KeyError(f"Unknown data option: {name}")
        self.set_toggle(name, enabled)

    # ------------------------------------------------------------------
    # Readouts
    # ------------------------------------------------------------------

    def data_readout(self) -> List[str]:
        """Text lines for the data panel, honoring the data options."""
        face, hands = self.snapshot.face, self.snapshot.hands
        opts = self.data_options
        cfg = self.config
        lines: List[str] = []

        if opts.mouth_open:
            lines.append(f"Mouth Open: {predicates.is_mouth_open(face, cfg.mouth_open_threshold)}")
        if opts.left_eye_open:
            lines.append(f"Left Eye Open: {predicates.is_left_eye_open(face, cfg.eye_open_threshold)}")
        if opts.right_eye_open:
            lines.append(f"Right Eye Open: {predicates.is_right_eye_open(face, cfg.eye_open_threshold)}")
        if opts.nose_center:
            nose = predicates.get_nose_center(face)
            lines.append(f"Nose Center: ({nose.x:.1f}, {nose.y:.1f})" if nose else "Nose Center: Not detected")
        if opts.wrist_position:
            for i, wrist in enumerate(predicates.get_wrist_positions(hands)):
                lines.append(f"Wrist {i + 1}: ({wrist.x:.1f}, {wrist.y:.1f})" if wrist
                             else f"Wrist {i + 1}: Not detected")
        if opts.hand_open:
            for i, is_open in enumerate(predicates.get_hands_open_status(hands)):
                lines.append(f"Hand {i + 1} Open: {is_open}")
        if opts.fingertip_positions:
            names = ("Thumb", "Index", "Middle", "Ring", "Pinky")
            for i, tips in enumerate(predicates.get_fingertip_positions(hands)):
                lines.append(f"Hand {i + 1} Fingertips:")
                for name, tip in zip(names, tips):
                    if tip is not None:
                        lines.append(f"  {name}: ({tip.x:.1f}, {tip.y:.1f})")

        return lines or ["No data options selected"]
