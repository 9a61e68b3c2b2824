"""
Color Classifier Contract
=========================

Bounded Context: What every classification strategy consumes and returns.

Design:
- ColorResult is an immutable value object
- Two sentinel results: NONE_RESULT ("no confident color") and
  ERROR_RESULT ("classification failed") are distinct values
- Strategies are interchangeable behind the ColorClassifier protocol;
  the scheduler never knows which one is active
"""

import re
from dataclasses import dataclass
from typing import Protocol

from capcolor_zone.geometry.extractor import ZoneImage

ERROR_HEX = "#FF4136"
NONE_HEX = "#FFFFFF"

_HEX_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


@dataclass(frozen=True)
class ColorResult:
    """
    Classified color of one zone image.

    Attributes:
        color_name: Color name (e.g., "Red", "None", "Error")
        hex_code: Color as #RRGGBB
    """

    color_name: str
    hex_code: str

    def to_dict(self) -> dict:
        return {"colorName": self.color_name, "hexCode": self.hex_code}


ERROR_RESULT = ColorResult(color_name="Error", hex_code=ERROR_HEX)
NONE_RESULT = ColorResult(color_name="None", hex_code=NONE_HEX)


def is_hex_code(value: str) -> bool:
    """True for #RRGGBB strings."""
    return bool(_HEX_PATTERN.match(value))


@dataclass(frozen=True)
class ZoneColorResult:
    """Classification result paired with the zone it belongs to."""

    zone_id: int
    result: ColorResult


class ColorClassifier(Protocol):
    """
    Protocol for classification strategies (interface).

    Attributes:
        mode: "remote" or "local"
        needs_encoded: True if the strategy reads ZoneImage.encoded,
            False if it reads ZoneImage.pixels
    """

    mode: str
    needs_encoded: bool

    async def classify(self, zone_image: ZoneImage) -> ColorResult:
        """Classify one zone image. Must not raise for bad input."""
        ...
