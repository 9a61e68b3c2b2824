"""
MQTT client wrapper for sending commands to the color monitor.

Handles MQTT connection, publishing, and disconnection.
"""

import json
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt


class MQTTCommandClient:
    """
    MQTT client for sending commands to the color monitor.

    Publishes commands to the control plane topic with QoS 1.
    """

    def __init__(
        self,
        broker: str = "localhost",
        port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None
    ):
        self.broker = broker
        self.port = port
        self.username = username
        self.password = password

        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)

        if username and password:
            self.client.username_pw_set(username, password)

    def send_command(
        self,
        topic: str,
        command: Dict[str, Any],
        qos: int = 1
    ) -> None:
        """
        Send command to MQTT topic.

        Args:
            topic: MQTT topic (e.g., "capcolor/control/line_01/commands")
            command: Command dictionary (will be JSON serialized)
            qos: Quality of Service (default: 1 for control commands)

        Raises:
            ConnectionError: If unable to connect to MQTT broker
            ValueError: If command serialization fails
            RuntimeError: If publishing fails
        """
        try:
            payload = json.dumps(command)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid command data: {e}") from e

        try:
            self.client.connect(self.broker, self.port, keepalive=60)
        except (ConnectionRefusedError, OSError) as e:
            raise ConnectionError(
                f"Unable to connect to MQTT broker at {self.broker}:{self.port}. "
                "Is mosquitto running?"
            ) from e

        try:
            # Network loop must run for QoS 1 acknowledgements
            self.client.loop_start()
            result = self.client.publish(topic, payload, qos=qos)
            result.wait_for_publish(timeout=5.0)
            if not result.is_published():
                raise RuntimeError(f"Command not acknowledged by {self.broker}:{self.port}")
        finally:
            self.client.loop_stop()
            self.client.disconnect()

        print(f"✅ Command sent: {command.get('command', 'unknown')}")
