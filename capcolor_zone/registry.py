"""
Zone Registry - Immutable zone snapshots with single-writer replacement.

This module provides the Zone value object and the ZoneRegistry that holds
the current classification state of every configured zone.

Design:
- Zone is a frozen dataclass; a state change produces a new Zone
- The registry stores one tuple of zones and swaps it wholesale
  (snapshot pattern), so readers never see a half-applied cycle
- Only the cycle scheduler writes; any number of readers may call snapshot()

Concurrency:
- All writes happen on the asyncio loop thread; replace() is a single
  reference assignment, so no lock is needed
"""

from dataclasses import dataclass, replace as dc_replace
from typing import Dict, Iterable, List, Optional, Tuple

from capcolor_zone.geometry.shapes import ZoneGeometry

INITIAL_COLOR_NAME = "Scanning..."
INITIAL_COLOR_HEX = "#FFFFFF"


@dataclass(frozen=True)
class Zone:
    """
    One named zone and its current classification state.

    Attributes:
        id: Stable integer identifier (unique in the registry)
        name: Display name
        geometry: Immutable percentage rectangle
        color_name: Last classified color name
        color_hex: Last classified color as #RRGGBB
        is_processing: True while a cycle is classifying this zone
    """

    id: int
    name: str
    geometry: ZoneGeometry
    color_name: str = INITIAL_COLOR_NAME
    color_hex: str = INITIAL_COLOR_HEX
    is_processing: bool = False

    def with_color(self, color_name: str, color_hex: str) -> "Zone":
        """Copy with a new classification, processing cleared."""
        return dc_replace(
            self, color_name=color_name, color_hex=color_hex, is_processing=False
        )

    def with_processing(self, is_processing: bool) -> "Zone":
        """Copy with the processing flag set to the given value."""
        return dc_replace(self, is_processing=is_processing)

    def to_dict(self) -> Dict:
        """Serialize in the shape the display layer consumes."""
        return {
            "id": self.id,
            "name": self.name,
            "geometry": self.geometry.to_dict(),
            "colorName": self.color_name,
            "colorHex": self.color_hex,
            "isProcessing": self.is_processing,
        }


class ZoneRegistry:
    """
    Holds the current immutable tuple of zones.

    Usage:
        registry = ZoneRegistry([
            Zone(id=1, name="Zone 1", geometry=ZoneGeometry(5, 5, 43, 43)),
        ])

        zones = registry.snapshot()          # tuple[Zone, ...]
        registry.replace(new_zones)          # whole-tuple swap
    """

    def __init__(self, zones: Iterable[Zone]):
        """
        Args:
            zones: Initial zones, in display order

        Raises:
            ValueError: If two zones share an id, or a geometry differs on replace
        """
        zones = tuple(zones)
        self._check_unique_ids(zones)
        self._zones: Tuple[Zone, ...] = zones
        self._geometry_by_id: Dict[int, ZoneGeometry] = {
            zone.id: zone.geometry for zone in zones
        }

    @staticmethod
    def _check_unique_ids(zones: Tuple[Zone, ...]) -> None:
        seen = set()
        for zone in zones:
            if zone.id in seen:
                raise ValueError(f"Zone id {zone.id} already exists")
            seen.add(zone.id)

    def snapshot(self) -> Tuple[Zone, ...]:
        """Current zones (immutable)."""
        return self._zones

    def replace(self, zones: Iterable[Zone]) -> None:
        """
        Swap in a new zone tuple.

        The new tuple must hold exactly the configured zone ids with their
        original geometry; only classification state may differ.
        """
        zones = tuple(zones)
        if [zone.id for zone in zones] != [zone.id for zone in self._zones]:
            raise ValueError("Zone ids cannot change after configuration")
        for zone in zones:
            if zone.geometry != self._geometry_by_id[zone.id]:
                raise ValueError(f"Geometry of zone {zone.id} cannot change")
        self._zones = zones

    def get(self, zone_id: int) -> Optional[Zone]:
        for zone in self._zones:
            if zone.id == zone_id:
                return zone
        return None

    def list_zones(self) -> List[Dict]:
        return [zone.to_dict() for zone in self._zones]

    def __len__(self) -> int:
        return len(self._zones)
