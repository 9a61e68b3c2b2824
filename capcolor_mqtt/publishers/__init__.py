"""
MQTT Publishers
==============

Bounded Context: Message Production

Design:
- BasePublisher: Abstract base with connection management
- ZoneSnapshotPublisher: Publishes per-cycle zone snapshots (retained)

Public API
----------
    BasePublisher: Abstract publisher (for custom publishers)
    ZoneSnapshotPublisher: Zone snapshot publisher
"""

from .base import BasePublisher
from .zone_snapshot import ZoneSnapshotPublisher

__all__ = [
    'BasePublisher',
    'ZoneSnapshotPublisher',
]
