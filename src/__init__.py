"""
Gesture FX
==========

Webcam effects toy driven by face and hand landmarks.

Modules:
    - capture: Webcam frames and canvas sizing
    - detection: MediaPipe landmark source and landmark data model
    - recognition: Gesture predicates, edge triggers, motion glitch
    - effects: Particle systems, word overlay, effects engine
    - utils: Logging, performance monitoring, visualization
"""

__version__ = "1.0.0"
