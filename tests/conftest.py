"""Shared fakes for the color monitor tests."""

import asyncio
from typing import List, Optional

import numpy as np
import pytest

from capcolor_classifier import ColorResult
from capcolor_processor.frame_source import Frame
from capcolor_zone import Zone, ZoneGeometry, ZoneImage, ZoneRegistry


def solid_bgr_frame(bgr, width: int = 200, height: int = 100) -> np.ndarray:
    """Uniform BGR frame."""
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:, :] = bgr
    return image


class FakeFrameSource:
    """FrameSource double: returns a fixed image, counts captures."""

    def __init__(self, image: Optional[np.ndarray] = None, ready: bool = True):
        self.image = image if image is not None else solid_bgr_frame((0, 0, 200))
        self.is_ready = ready
        self.is_available = True
        self.capture_count = 0
        self.error: Optional[Exception] = None
        self.released = False

    async def wait_ready(self) -> None:
        while not self.is_ready:
            await asyncio.sleep(0)

    async def get_current_frame(self) -> Optional[Frame]:
        self.capture_count += 1
        if self.error is not None:
            raise self.error
        if not self.is_ready:
            return None
        return Frame.from_image(self.image)

    def release(self) -> None:
        self.released = True
        self.is_available = False


class ScriptedClassifier:
    """Classifier double returning a result per zone id (or raising)."""

    def __init__(self, results=None, failing_zone_ids=(), mode: str = "local", delay: float = 0.0):
        self.results = results or {}
        self.failing_zone_ids = set(failing_zone_ids)
        self.mode = mode
        self.needs_encoded = mode == "remote"
        self.delay = delay
        self.calls: List[int] = []

    async def classify(self, zone_image: ZoneImage) -> ColorResult:
        self.calls.append(zone_image.zone_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if zone_image.zone_id in self.failing_zone_ids:
            raise RuntimeError(f"zone {zone_image.zone_id} exploded")
        return self.results.get(
            zone_image.zone_id, ColorResult(color_name="Red", hex_code="#FF0000")
        )


class FakeBackend:
    """InferenceBackend double."""

    def __init__(self, response: str = '{"colorName": "Blue", "hexCode": "#0000FF"}',
                 error: Optional[Exception] = None, delay: float = 0.0,
                 failing_calls=()):
        self.response = response
        self.error = error
        self.failing_calls = set(failing_calls)
        self.delay = delay
        self.calls = []

    async def infer(self, image: bytes, mime_type: str, instruction: str) -> str:
        self.calls.append((image, mime_type, instruction))
        call_number = len(self.calls)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if call_number in self.failing_calls:
            raise ConnectionError(f"call {call_number} dropped")
        return self.response


def quadrant_zones() -> List[Zone]:
    return [
        Zone(id=1, name="Zone 1", geometry=ZoneGeometry(x=5, y=5, width=43, height=43)),
        Zone(id=2, name="Zone 2", geometry=ZoneGeometry(x=52, y=5, width=43, height=43)),
        Zone(id=3, name="Zone 3", geometry=ZoneGeometry(x=5, y=52, width=43, height=43)),
        Zone(id=4, name="Zone 4", geometry=ZoneGeometry(x=52, y=52, width=43, height=43)),
    ]


@pytest.fixture
def registry() -> ZoneRegistry:
    return ZoneRegistry(quadrant_zones())


@pytest.fixture
def frame_source() -> FakeFrameSource:
    return FakeFrameSource()
