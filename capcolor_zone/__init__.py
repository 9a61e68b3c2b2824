"""
Capcolor Zone
=============

Bounded Context: Zones of a video frame and their classification state.

Design Philosophy:
- Separation of Concerns: Geometry, Registry, Rendering separated
- Immutability: geometry and zone snapshots are frozen dataclasses
- Pragmatismo > Purismo: supervision crops and draws, we don't reinvent

Architecture:

    capcolor_zone/
    ├── geometry/          # Pure geometry (immutable, stateless)
    │   ├── shapes.py      # ZoneGeometry (percentages), PixelRect
    │   └── extractor.py   # ZoneExtractor (frame -> ZoneImage)
    │
    ├── rendering/         # Visualization (stateless drawing)
    │   └── visualizer.py  # ZoneVisualizer
    │
    └── registry.py        # Zone snapshots, ZoneRegistry

Usage:

    from capcolor_zone import Zone, ZoneGeometry, ZoneRegistry, ZoneExtractor

    registry = ZoneRegistry([
        Zone(id=1, name="Zone 1", geometry=ZoneGeometry(x=5, y=5, width=43, height=43)),
    ])

    extractor = ZoneExtractor(jpeg_quality=80)
    for zone in registry.snapshot():
        zone_image = extractor.extract(frame, zone.id, zone.geometry, encode=False)
"""

# Geometry Layer (immutable, stateless)
from capcolor_zone.geometry.shapes import ZoneGeometry, PixelRect
from capcolor_zone.geometry.extractor import ZoneExtractor, ZoneImage

# Registry (snapshot state)
from capcolor_zone.registry import Zone, ZoneRegistry

# Rendering Layer (stateless)
from capcolor_zone.rendering.visualizer import ZoneVisualizer

__all__ = [
    # Geometry
    "ZoneGeometry",
    "PixelRect",
    "ZoneExtractor",
    "ZoneImage",
    # Registry
    "Zone",
    "ZoneRegistry",
    # Rendering
    "ZoneVisualizer",
]

__version__ = "1.0.0"
