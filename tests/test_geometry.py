"""
Tests for zone geometry: percentage validation and pixel mapping.
"""

import pytest

from capcolor_zone import PixelRect, ZoneGeometry


class TestZoneGeometryValidation:
    """Percentages must describe a rectangle inside the frame."""

    def test_valid_geometry(self):
        geometry = ZoneGeometry(x=5, y=5, width=43, height=43)
        assert geometry.to_dict() == {"x": 5, "y": 5, "width": 43, "height": 43}

    @pytest.mark.parametrize("kwargs", [
        {"x": -1, "y": 0, "width": 10, "height": 10},
        {"x": 0, "y": 0, "width": 101, "height": 10},
        {"x": 60, "y": 0, "width": 50, "height": 10},
        {"x": 0, "y": 95, "width": 10, "height": 10},
    ])
    def test_invalid_geometry_rejected(self, kwargs):
        with pytest.raises(ValueError):
            ZoneGeometry(**kwargs)


class TestPixelMapping:
    """Percent -> pixel mapping truncates each component, then clips."""

    def test_quadrant_on_720p(self):
        rect = ZoneGeometry(x=5, y=5, width=43, height=43).to_pixel_rect((1280, 720))
        assert rect == PixelRect(x=64, y=36, width=550, height=309)

    def test_second_quadrant_truncates(self):
        rect = ZoneGeometry(x=52, y=52, width=43, height=43).to_pixel_rect((1280, 720))
        assert rect == PixelRect(x=665, y=374, width=550, height=309)

    def test_full_frame(self):
        rect = ZoneGeometry(x=0, y=0, width=100, height=100).to_pixel_rect((640, 480))
        assert rect == PixelRect(x=0, y=0, width=640, height=480)
        assert rect.xyxy == (0, 0, 640, 480)

    def test_rect_stays_inside_frame(self):
        rect = ZoneGeometry(x=50, y=50, width=50, height=50).to_pixel_rect((101, 101))
        assert rect.x + rect.width <= 101
        assert rect.y + rect.height <= 101

    def test_tiny_zone_is_empty(self):
        rect = ZoneGeometry(x=10, y=10, width=0.5, height=0.5).to_pixel_rect((100, 100))
        assert rect.width == 0
        assert rect.is_empty

    def test_zero_size_frame_is_empty(self):
        rect = ZoneGeometry(x=5, y=5, width=43, height=43).to_pixel_rect((0, 0))
        assert rect.is_empty
