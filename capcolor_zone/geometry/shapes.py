"""
Zone Geometry Module
====================

Pure geometric representations - NO state, NO side effects.

Design:
- Immutable shapes (frozen dataclass pattern)
- Zones are defined in percentages of the frame, so the same configuration
  works for any capture resolution
- Mapping to pixels truncates every component the same way, so the remote
  (encoded) and local (raw pixels) paths always read the same region
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class PixelRect:
    """
    Integer pixel rectangle inside a frame.

    Attributes:
        x: Left edge (pixels)
        y: Top edge (pixels)
        width: Rectangle width (pixels, may be 0)
        height: Rectangle height (pixels, may be 0)
    """

    x: int
    y: int
    width: int
    height: int

    @property
    def is_empty(self) -> bool:
        """True when the rectangle covers no pixels."""
        return self.width <= 0 or self.height <= 0

    @property
    def xyxy(self) -> Tuple[int, int, int, int]:
        """(x_min, y_min, x_max, y_max) as used by supervision crop utilities."""
        return self.x, self.y, self.x + self.width, self.y + self.height


@dataclass(frozen=True)
class ZoneGeometry:
    """
    Immutable zone rectangle in frame percentages.

    Attributes:
        x: Left edge, percent of frame width
        y: Top edge, percent of frame height
        width: Width, percent of frame width
        height: Height, percent of frame height

    Invariants:
        - every component in [0, 100]
        - x + width <= 100 and y + height <= 100

    Example:
        >>> geometry = ZoneGeometry(x=5, y=5, width=43, height=43)
        >>> geometry.to_pixel_rect((1280, 720))
        PixelRect(x=64, y=36, width=550, height=309)
    """

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        """Validate percentages."""
        for name in ("x", "y", "width", "height"):
            value = getattr(self, name)
            if not 0.0 <= value <= 100.0:
                raise ValueError(f"Zone {name} must be in [0, 100], got {value}")

        if self.x + self.width > 100.0:
            raise ValueError(
                f"Zone exceeds frame width: x={self.x} + width={self.width} > 100"
            )
        if self.y + self.height > 100.0:
            raise ValueError(
                f"Zone exceeds frame height: y={self.y} + height={self.height} > 100"
            )

    def to_pixel_rect(self, frame_resolution_wh: Tuple[int, int]) -> PixelRect:
        """
        Map the percentage rectangle onto a frame of the given size.

        Each of the four components is truncated independently, then the
        rectangle is clipped to the frame.

        Args:
            frame_resolution_wh: (width, height) of the frame in pixels

        Returns:
            PixelRect (possibly empty)
        """
        frame_width, frame_height = frame_resolution_wh

        x = int(self.x / 100.0 * frame_width)
        y = int(self.y / 100.0 * frame_height)
        width = int(self.width / 100.0 * frame_width)
        height = int(self.height / 100.0 * frame_height)

        # Clip to frame bounds
        x = min(max(x, 0), frame_width)
        y = min(max(y, 0), frame_height)
        width = max(min(width, frame_width - x), 0)
        height = max(min(height, frame_height - y), 0)

        return PixelRect(x=x, y=y, width=width, height=height)

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict."""
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}
