"""
Geometry Layer
==============

Bounded Context: Zone rectangles and frame cropping.

Responsibilities:
- Percentage rectangle representation (immutable)
- Percentage -> pixel mapping
- Cropping and encoding zone pixels
- NO classification state, NO visualization
"""

from capcolor_zone.geometry.shapes import ZoneGeometry, PixelRect
from capcolor_zone.geometry.extractor import ZoneExtractor, ZoneImage

__all__ = [
    "ZoneGeometry",
    "PixelRect",
    "ZoneExtractor",
    "ZoneImage",
]
