"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

This module defines typed event names for structured logging.

Design:
- Enum-based (prevents typos, enables autocomplete)
- Hierarchical naming (namespace.category.action)
- Searchable in log aggregators (Elasticsearch, CloudWatch Insights)

Event Naming Convention:
    <component>.<category>.<action>

    component: mqtt, zone, cycle, error
    category: connected, publish, snapshot
    action: success, failed, serialized

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.cycle_id
    | filter event = "zone.snapshot.published"
    | stats count() by bin(5m)
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - mqtt.*: MQTT broker interactions
    - zone.*: Zone snapshot messages
    - cycle.*: Classification cycle outcomes
    - error.*: Error conditions
    """

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully published to broker."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication failed."""

    # ========== Zone Snapshot Events ==========
    ZONE_SNAPSHOT_SERIALIZED = "zone.snapshot.serialized"
    """Zone snapshot message serialized to JSON."""

    ZONE_SNAPSHOT_PUBLISHED = "zone.snapshot.published"
    """Zone snapshot message published."""

    # ========== Cycle Events ==========
    CYCLE_COMPLETED = "cycle.completed"
    """Classification cycle merged its results."""

    CYCLE_FAILED = "cycle.failed"
    """Classification cycle aborted (capture or aggregate failure)."""

    # ========== Error Events ==========
    SERIALIZATION_ERROR = "error.serialization"
    """Failed to serialize message to JSON."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""

    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
    """Error during message publication."""

