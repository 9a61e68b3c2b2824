"""
Zone Snapshot Publisher
=======================

Bounded Context: Zone Snapshot Message Production

Publishes the state of every zone after each classification cycle.

Design:
- Inherits from BasePublisher (connection management)
- Formats ZoneSnapshotMessage to JSON
- Retained publishes: a display that subscribes late still gets the
  latest snapshot
- Logs structured events

Message Flow:
    CycleScheduler → ZoneSnapshotMessage → ZoneSnapshotPublisher → MQTT Broker

Example:
    >>> from capcolor_mqtt import ZoneSnapshotPublisher, create_logger
    >>> publisher = ZoneSnapshotPublisher(
    ...     broker_host="localhost",
    ...     topic="capcolor/data/zones/line_01",
    ...     logger=create_logger("snapshot_publisher")
    ... )
    >>> publisher.connect()
    >>> publisher.publish_snapshot(msg)
"""

from typing import Any, Dict, Optional

from .base import BasePublisher
from ..logging import LogEvent, StructuredLogger
from ..schemas import ZoneSnapshotMessage


class ZoneSnapshotPublisher(BasePublisher):
    """
    Publisher for zone snapshot messages.

    Attributes:
        Same as BasePublisher, plus:
        schema_version: Current schema version for messages
        retain: Whether snapshots are published as retained messages
    """

    def __init__(
        self,
        broker_host: str,
        topic: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "capcolor_snapshot_publisher",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0,
        retain: bool = True
    ):
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            topic=topic,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos
        )
        self.schema_version = "1.0"
        self.retain = retain

    def format_message(self, snapshot_msg: ZoneSnapshotMessage) -> Dict[str, Any]:
        """
        Format ZoneSnapshotMessage to JSON-compatible dict.

        Raises:
            ValueError: If the message cannot be serialized
        """
        try:
            formatted = snapshot_msg.to_dict()

            self.logger.debug(
                event=LogEvent.ZONE_SNAPSHOT_SERIALIZED,
                message="Serialized zone snapshot message",
                metadata={
                    'cycle_id': snapshot_msg.cycle_id,
                    'zone_count': snapshot_msg.zone_count,
                    'status': snapshot_msg.status
                }
            )

            return formatted

        except Exception as e:
            self.logger.error(
                event=LogEvent.SERIALIZATION_ERROR,
                message="Failed to serialize zone snapshot message",
                exc_info=e,
                metadata={'cycle_id': snapshot_msg.cycle_id}
            )
            raise ValueError(f"Invalid zone snapshot message: {e}") from e

    def publish_snapshot(self, snapshot_msg: ZoneSnapshotMessage) -> bool:
        """
        Format and publish a zone snapshot.

        Returns:
            True if published successfully, False otherwise
        """
        try:
            formatted = self.format_message(snapshot_msg)
        except ValueError:
            return False

        success = self.publish(formatted, retain=self.retain)

        if success:
            self.logger.info(
                event=LogEvent.ZONE_SNAPSHOT_PUBLISHED,
                message=f"Published snapshot of {snapshot_msg.zone_count} zones",
                metadata={
                    'cycle_id': snapshot_msg.cycle_id,
                    'status': snapshot_msg.status,
                    'mode': snapshot_msg.mode,
                    'colors': {
                        zone.zone_id: zone.color_name for zone in snapshot_msg.zones
                    }
                }
            )

        return success
