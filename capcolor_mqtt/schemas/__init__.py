"""
Capcolor MQTT Schemas
=====================

Bounded Context: Data Structures

Immutable, typed data structures for MQTT messages.

Design:
- Frozen dataclasses (immutability)
- to_dict() for JSON serialization, from_dict() for deserialization
- Schema versioning for evolution

Public API
----------
Common Types:
    ZoneRect: Zone geometry in percentages
    Timestamp: ISO 8601 timestamp wrapper

Zone Snapshot Types:
    ZoneColorState: One zone's display state
    ZoneSnapshotMessage: All zones after one cycle
"""

from .common import Timestamp, ZoneRect
from .zone_snapshot import ZoneColorState, ZoneSnapshotMessage

__all__ = [
    # Common types
    'Timestamp',
    'ZoneRect',
    # Zone snapshot types
    'ZoneColorState',
    'ZoneSnapshotMessage',
]
