"""
Structured Logging for Capcolor MQTT
====================================

Bounded Context: Observability

JSON-structured logging with typed event names.

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from capcolor_mqtt.logging import create_logger, LogEvent
    >>> logger = create_logger("snapshot_publisher")
    >>> logger.info(
    ...     event=LogEvent.CYCLE_COMPLETED,
    ...     message="Cycle 12 completed",
    ...     metadata={'cycle_id': 12, 'mode': 'local'}
    ... )
"""

from .events import LogEvent
from .structured import StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
