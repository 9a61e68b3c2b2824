"""
Zone Snapshot Message Schema
============================

Bounded Context: What the display layer receives after every cycle.

Design:
- ZoneColorState: one zone (id, name, geometry, color, processing flag)
- ZoneSnapshotMessage: every zone of one cycle + the process-wide error

Message Flow:
    CycleScheduler → CycleReport → ZoneSnapshotMessage → ZoneSnapshotPublisher → MQTT → Display

Wire format (camelCase keys, as the display layer reads them):
    {
        "schema_version": "1.0",
        "timestamp": "...",
        "service_id": "line_01",
        "cycle_id": 12,
        "mode": "local",
        "status": "completed",
        "error": null,
        "zones": [
            {"id": 1, "name": "Zone 1",
             "geometry": {"x": 5, "y": 5, "width": 43, "height": 43},
             "colorName": "Red", "colorHex": "#FF0000", "isProcessing": false}
        ]
    }
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from capcolor_zone import Zone

from .common import Timestamp, ZoneRect


@dataclass(frozen=True)
class ZoneColorState:
    """
    Display state of one zone.

    Attributes:
        zone_id: Zone identifier
        name: Display name
        geometry: Zone rectangle (percentages)
        color_name: Classified color name
        color_hex: Classified color (#RRGGBB)
        is_processing: True while a cycle is running
    """
    zone_id: int
    name: str
    geometry: ZoneRect
    color_name: str
    color_hex: str
    is_processing: bool = False

    @classmethod
    def from_zone(cls, zone: Zone) -> 'ZoneColorState':
        """Build from a registry Zone snapshot."""
        return cls(
            zone_id=zone.id,
            name=zone.name,
            geometry=ZoneRect(
                x=zone.geometry.x,
                y=zone.geometry.y,
                width=zone.geometry.width,
                height=zone.geometry.height,
            ),
            color_name=zone.color_name,
            color_hex=zone.color_hex,
            is_processing=zone.is_processing,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'id': self.zone_id,
            'name': self.name,
            'geometry': self.geometry.to_dict(),
            'colorName': self.color_name,
            'colorHex': self.color_hex,
            'isProcessing': self.is_processing,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ZoneColorState':
        """
        Deserialize from dict.

        Raises:
            ValueError: If required fields are missing
        """
        try:
            return cls(
                zone_id=int(data['id']),
                name=data['name'],
                geometry=ZoneRect.from_dict(data['geometry']),
                color_name=data['colorName'],
                color_hex=data['colorHex'],
                is_processing=bool(data.get('isProcessing', False)),
            )
        except KeyError as e:
            raise ValueError(f"Missing required ZoneColorState field: {e}")


@dataclass(frozen=True)
class ZoneSnapshotMessage:
    """
    Snapshot of every zone after one cycle.

    Attributes:
        schema_version: Message schema version
        timestamp: Creation time
        service_id: Publishing service
        cycle_id: Cycle that produced the snapshot
        mode: Classification mode of that cycle ("remote" or "local")
        status: "completed", "capture_failed" or "failed"
        zones: Zone states, in registry order
        error: Process-wide error message (None when healthy)
    """
    schema_version: str
    timestamp: Timestamp
    service_id: str
    cycle_id: int
    mode: str
    status: str
    zones: List[ZoneColorState] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def zone_count(self) -> int:
        return len(self.zones)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'schema_version': self.schema_version,
            'timestamp': self.timestamp.to_dict(),
            'service_id': self.service_id,
            'cycle_id': self.cycle_id,
            'mode': self.mode,
            'status': self.status,
            'error': self.error,
            'zones': [zone.to_dict() for zone in self.zones],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ZoneSnapshotMessage':
        """
        Deserialize from dict.

        Raises:
            ValueError: If required fields are missing or invalid
        """
        try:
            return cls(
                schema_version=data['schema_version'],
                timestamp=Timestamp(value=data['timestamp']),
                service_id=data['service_id'],
                cycle_id=int(data['cycle_id']),
                mode=data['mode'],
                status=data['status'],
                zones=[ZoneColorState.from_dict(z) for z in data.get('zones', [])],
                error=data.get('error'),
            )
        except KeyError as e:
            raise ValueError(f"Missing required ZoneSnapshotMessage field: {e}")
