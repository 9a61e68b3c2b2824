"""
Structured JSON Logger
=====================

Bounded Context: Observability Infrastructure

JSON-lines logger for the MQTT side of the service (publishers, snapshot
messages, cycle outcomes).

Design:
- Wraps Python's logging module (handlers, levels, thread safety)
- One JSON object per record, with component + typed event name
- Metadata dict for context (cycle_id, topic, zone_ids, ...)

Output:
    {
        "timestamp": "2025-10-24T15:30:45.123456+00:00",
        "level": "INFO",
        "component": "snapshot_publisher",
        "event": "zone.snapshot.published",
        "message": "Published snapshot of 4 zones",
        "metadata": {"cycle_id": 12, "zone_count": 4}
    }
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .events import LogEvent


class StructuredLogger:
    """
    JSON structured logger.

    Attributes:
        component: Component name (e.g., "snapshot_publisher")
        logger: Underlying Python logger instance

    Example:
        >>> logger = StructuredLogger("snapshot_publisher")
        >>> logger.info(
        ...     event=LogEvent.MQTT_CONNECTED,
        ...     message="Connected to broker",
        ...     metadata={'broker': 'localhost:1883'}
        ... )
    """

    def __init__(
        self,
        component: str,
        level: int = logging.INFO,
        logger_name: Optional[str] = None
    ):
        """
        Initialize structured logger.

        Args:
            component: Component identifier
            level: Logging level (default: INFO)
            logger_name: Custom logger name (default: capcolor_mqtt.<component>)
        """
        self.component = component
        self.logger_name = logger_name or f"capcolor_mqtt.{component}"
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(level)

        # JSON lines go to their own handler, not through the root formatter
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)
            self.logger.propagate = False

    def _log(
        self,
        level: str,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level,
            'component': self.component,
            'event': event.value,
            'message': message,
        }

        if metadata:
            log_entry['metadata'] = metadata

        if exc_info:
            log_entry['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info)
            }

        self.logger.log(getattr(logging, level), json.dumps(log_entry, default=str))

    def debug(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log DEBUG level message."""
        self._log('DEBUG', event, message, metadata)

    def info(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log INFO level message.

        Example:
            >>> logger.info(
            ...     event=LogEvent.ZONE_SNAPSHOT_PUBLISHED,
            ...     message="Published snapshot",
            ...     metadata={'cycle_id': 12}
            ... )
        """
        self._log('INFO', event, message, metadata)

    def warning(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log WARNING level message."""
        self._log('WARNING', event, message, metadata)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """
        Log ERROR level message.

        Example:
            >>> try:
            ...     publisher.publish(data)
            ... except ValueError as e:
            ...     logger.error(
            ...         event=LogEvent.SERIALIZATION_ERROR,
            ...         message="Failed to serialize snapshot",
            ...         exc_info=e,
            ...     )
        """
        self._log('ERROR', event, message, metadata, exc_info)


class JSONFormatter(logging.Formatter):
    """Pass-through formatter: StructuredLogger records are already JSON."""

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


def create_logger(
    component: str,
    level: int = logging.INFO
) -> StructuredLogger:
    """
    Factory function to create configured StructuredLogger.

    Example:
        >>> logger = create_logger("snapshot_publisher", level=logging.DEBUG)
    """
    return StructuredLogger(component=component, level=level)
