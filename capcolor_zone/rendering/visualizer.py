"""
Zone Visualizer Module
======================

Pure visualization layer for zones and their classified colors.

Design:
- Stateless rendering (pure functions over a frame copy)
- No business logic: reads Zone snapshots, never writes them
- Uses supervision drawing utilities

Dependencies:
- supervision (draw utilities, Color, Rect, Point)
- numpy (arrays)
"""

from typing import Iterable

import numpy as np
import supervision as sv

from capcolor_zone.registry import INITIAL_COLOR_NAME, Zone

PROCESSING_LABEL = "..."
UNIDENTIFIED_NAMES = frozenset({INITIAL_COLOR_NAME, "None", "Error"})


class ZoneVisualizer:
    """
    Stateless visualizer for zone rendering.

    A zone whose color was identified is outlined and labelled in that color;
    zones showing a sentinel (scanning, None, Error) are labelled in white.

    Usage:
        visualizer = ZoneVisualizer(thickness=4)
        annotated = visualizer.draw_zones(frame, registry.snapshot())
    """

    def __init__(
        self,
        text_color: sv.Color = sv.Color(r=255, g=255, b=255),
        text_background_color: sv.Color = sv.Color(r=0, g=0, b=0),
        thickness: int = 4,
        text_scale: float = 0.8,
        text_thickness: int = 2,
        text_padding: int = 10,
        opacity: float = 0.1,
    ):
        """
        Initialize visualizer with style configuration.

        Args:
            text_color: Label color for unidentified zones
            text_background_color: Background color for labels
            thickness: Rectangle outline thickness
            text_scale: Scale factor for labels
            text_thickness: Thickness for labels
            text_padding: Padding for label background
            opacity: Opacity of the zone fill (0-1)
        """
        self.text_color = text_color
        self.text_background_color = text_background_color
        self.thickness = thickness
        self.text_scale = text_scale
        self.text_thickness = text_thickness
        self.text_padding = text_padding
        self.opacity = opacity

    @staticmethod
    def is_identified(zone: Zone) -> bool:
        return zone.color_name not in UNIDENTIFIED_NAMES

    @staticmethod
    def label_for(zone: Zone) -> str:
        return PROCESSING_LABEL if zone.is_processing else zone.color_name

    def draw_zone(self, frame: np.ndarray, zone: Zone) -> np.ndarray:
        """
        Draw one zone on the frame.

        Args:
            frame: BGR frame to draw on
            zone: Zone snapshot

        Returns:
            Frame with the zone drawn
        """
        frame_height, frame_width = frame.shape[:2]
        pixel_rect = zone.geometry.to_pixel_rect((frame_width, frame_height))
        if pixel_rect.is_empty:
            return frame

        rect = sv.Rect(
            x=pixel_rect.x, y=pixel_rect.y,
            width=pixel_rect.width, height=pixel_rect.height,
        )
        zone_color = sv.Color.from_hex(zone.color_hex)
        label_color = zone_color if self.is_identified(zone) else self.text_color

        frame = sv.draw_filled_rectangle(
            scene=frame, rect=rect, color=zone_color, opacity=self.opacity
        )
        frame = sv.draw_rectangle(
            scene=frame, rect=rect, color=zone_color, thickness=self.thickness
        )

        # Label centered above the zone
        text_anchor = sv.Point(
            x=pixel_rect.x + pixel_rect.width // 2,
            y=max(pixel_rect.y - 20, 20),
        )
        frame = sv.draw_text(
            scene=frame,
            text=self.label_for(zone),
            text_anchor=text_anchor,
            text_color=label_color,
            text_scale=self.text_scale,
            text_thickness=self.text_thickness,
            text_padding=self.text_padding,
            background_color=self.text_background_color,
        )

        return frame

    def draw_zones(self, frame: np.ndarray, zones: Iterable[Zone]) -> np.ndarray:
        """Draw every zone on a copy of the frame."""
        annotated = frame.copy()
        for zone in zones:
            annotated = self.draw_zone(annotated, zone)
        return annotated
