"""
Reference Palette
=================

Named reference colors used as nearest-neighbour targets by the local
classifier.

Design:
- Immutable entries (frozen dataclass)
- Order matters: on an exact distance tie the earlier entry wins
- Canonical RGB and display hex are independent (Red matches (200, 0, 0)
  but is displayed as #FF0000)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np
import supervision as sv

from capcolor_classifier.base import is_hex_code


@dataclass(frozen=True)
class PaletteEntry:
    """
    Immutable reference color.

    Attributes:
        name: Color name returned on a match
        rgb: Canonical (r, g, b) used for distance computation
        hex_code: Display color returned on a match
    """

    name: str
    rgb: Tuple[int, int, int]
    hex_code: str

    def __post_init__(self):
        """Validate invariants."""
        if not self.name:
            raise ValueError("Palette entry name cannot be empty")
        if len(self.rgb) != 3 or not all(0 <= c <= 255 for c in self.rgb):
            raise ValueError(f"Palette entry '{self.name}' rgb must be 3 values in [0, 255], got {self.rgb}")
        if not is_hex_code(self.hex_code):
            raise ValueError(f"Palette entry '{self.name}' hex must be #RRGGBB, got {self.hex_code}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaletteEntry":
        """
        Deserialize from a config dict.

        `rgb` is optional; when missing it is derived from `hex`.

        Raises:
            ValueError: If required keys are missing or values invalid
        """
        try:
            name = str(data["name"])
            hex_code = str(data["hex"])
        except KeyError as e:
            raise ValueError(f"Missing required palette field: {e}")

        if "rgb" in data:
            rgb = tuple(int(c) for c in data["rgb"])
        else:
            rgb = sv.Color.from_hex(hex_code).as_rgb()

        return cls(name=name, rgb=rgb, hex_code=hex_code.upper())


DEFAULT_PALETTE: Tuple[PaletteEntry, ...] = (
    PaletteEntry(name="Red", rgb=(200, 0, 0), hex_code="#FF0000"),
    PaletteEntry(name="Green", rgb=(0, 128, 0), hex_code="#008000"),
    PaletteEntry(name="Blue", rgb=(0, 0, 255), hex_code="#0000FF"),
    PaletteEntry(name="Yellow", rgb=(255, 255, 0), hex_code="#FFFF00"),
    PaletteEntry(name="Orange", rgb=(255, 165, 0), hex_code="#FFA500"),
    PaletteEntry(name="White", rgb=(240, 240, 240), hex_code="#F0F0F0"),
    PaletteEntry(name="Black", rgb=(20, 20, 20), hex_code="#141414"),
    PaletteEntry(name="Purple", rgb=(128, 0, 128), hex_code="#800080"),
    PaletteEntry(name="Cyan", rgb=(0, 255, 255), hex_code="#00FFFF"),
)


def palette_matrix(palette: Sequence[PaletteEntry]) -> np.ndarray:
    """(N, 3) float array of canonical RGB values, in palette order."""
    return np.array([entry.rgb for entry in palette], dtype=np.float64)


def palette_from_list(data: List[Dict[str, Any]]) -> Tuple[PaletteEntry, ...]:
    """Build a palette from config dicts, keeping their order."""
    palette = tuple(PaletteEntry.from_dict(item) for item in data)
    if not palette:
        raise ValueError("Palette must have at least one entry")
    return palette
