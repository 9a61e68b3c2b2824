"""
Capcolor MQTT Communication Package
===================================

Bounded Context: Communication Protocol for the Zone Color Monitor

Publishes the zone snapshot produced by every classification cycle so
that displays run decoupled from the processor.

Architecture:
- schemas/: Immutable data structures with type safety
- publishers/: Message producers (ZoneSnapshotPublisher)
- logging/: Structured JSON logging for observability

Public API
----------
Schemas:
    ZoneRect, Timestamp
    ZoneColorState, ZoneSnapshotMessage

Publishers:
    ZoneSnapshotPublisher
    BasePublisher (for custom publishers)

Logging:
    LogEvent, StructuredLogger, create_logger
"""

from .logging import LogEvent, StructuredLogger, create_logger
from .publishers import BasePublisher, ZoneSnapshotPublisher
from .schemas import Timestamp, ZoneColorState, ZoneRect, ZoneSnapshotMessage

__version__ = "1.0.0"

__all__ = [
    # Schemas
    'Timestamp',
    'ZoneRect',
    'ZoneColorState',
    'ZoneSnapshotMessage',
    # Publishers
    'BasePublisher',
    'ZoneSnapshotPublisher',
    # Logging
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
