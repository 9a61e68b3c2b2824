"""
Rendering Layer
===============

Bounded Context: Zone visualization.

Responsibilities:
- Draw zone rectangles in their classified color
- Render color labels ("..." while a cycle is running)

Non-responsibilities:
- Classification (handled by capcolor_classifier)
- Zone state changes (handled by the cycle scheduler)
"""

from capcolor_zone.rendering.visualizer import ZoneVisualizer

__all__ = [
    "ZoneVisualizer",
]
