"""
capcolor_control - Control Plane for the zone color monitor

Bounded Context: MQTT-based command-and-control
Responsibilities:
  - MQTT connection management (Control Plane)
  - Command registration and validation
  - Command execution delegation

Architecture:
  - CommandRegistry: Explicit registration pattern
  - MQTTControlPlane: MQTT client + command reception
  - QoS 1 for control commands (at-least-once delivery)

Commands registered by the service:
  - set_mode: switch between "remote" and "local" classification
  - list_zones: publish the current zone snapshot on the status topic
  - get_status: publish scheduler stats on the status topic
"""

from .plane import MQTTControlPlane
from .registry import CommandNotAvailableError, CommandRegistry

__all__ = [
    "CommandRegistry",
    "CommandNotAvailableError",
    "MQTTControlPlane",
]
