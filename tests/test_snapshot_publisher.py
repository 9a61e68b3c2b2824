"""
Tests for zone snapshot messages and the snapshot publisher (no broker).
"""

import json
from types import SimpleNamespace

import paho.mqtt.client as mqtt
import pytest

from capcolor_mqtt import (
    Timestamp,
    ZoneColorState,
    ZoneSnapshotMessage,
    ZoneSnapshotPublisher,
    create_logger,
)

from conftest import quadrant_zones


def make_message(**overrides) -> ZoneSnapshotMessage:
    zones = [z.with_color("Red", "#FF0000") for z in quadrant_zones()]
    fields = dict(
        schema_version="1.0",
        timestamp=Timestamp(value="2025-01-01T00:00:00+00:00"),
        service_id="line_01",
        cycle_id=3,
        mode="local",
        status="completed",
        zones=[ZoneColorState.from_zone(z) for z in zones],
        error=None,
    )
    fields.update(overrides)
    return ZoneSnapshotMessage(**fields)


@pytest.fixture
def publisher():
    return ZoneSnapshotPublisher(
        broker_host="localhost",
        topic="capcolor/data/zones/line_01",
        logger=create_logger("test_snapshot_publisher"),
    )


class TestZoneSnapshotMessage:

    def test_to_dict_shape(self):
        data = make_message().to_dict()

        assert data["service_id"] == "line_01"
        assert data["cycle_id"] == 3
        assert data["error"] is None
        assert data["zones"][0] == {
            "id": 1,
            "name": "Zone 1",
            "geometry": {"x": 5, "y": 5, "width": 43, "height": 43},
            "colorName": "Red",
            "colorHex": "#FF0000",
            "isProcessing": False,
        }

    def test_from_dict(self):
        message = make_message(status="capture_failed", error="no frame")
        restored = ZoneSnapshotMessage.from_dict(json.loads(json.dumps(message.to_dict())))

        assert restored.status == "capture_failed"
        assert restored.error == "no frame"
        assert restored.zone_count == 4
        assert restored.zones[3].zone_id == 4

    def test_from_dict_missing_field(self):
        data = make_message().to_dict()
        del data["cycle_id"]
        with pytest.raises(ValueError):
            ZoneSnapshotMessage.from_dict(data)


class TestZoneSnapshotPublisher:

    def test_format_message(self, publisher):
        assert publisher.format_message(make_message()) == make_message().to_dict()

    def test_publish_without_connection(self, publisher):
        assert publisher.publish_snapshot(make_message()) is False
        assert publisher.get_stats()["failed_count"] == 1

    def test_publish_retained(self, publisher, monkeypatch):
        sent = []

        def fake_publish(topic, payload, qos, retain):
            sent.append((topic, payload, qos, retain))
            return SimpleNamespace(rc=mqtt.MQTT_ERR_SUCCESS)

        monkeypatch.setattr(publisher.client, "publish", fake_publish)
        publisher._connected.set()

        assert publisher.publish_snapshot(make_message()) is True

        topic, payload, qos, retain = sent[0]
        assert topic == "capcolor/data/zones/line_01"
        assert retain is True
        assert qos == 0
        assert json.loads(payload)["zones"][0]["colorName"] == "Red"
        assert publisher.get_stats()["message_count"] == 1

    def test_broker_rejects_publish(self, publisher, monkeypatch):
        monkeypatch.setattr(
            publisher.client, "publish",
            lambda **kwargs: SimpleNamespace(rc=mqtt.MQTT_ERR_NO_CONN),
        )
        publisher._connected.set()

        assert publisher.publish_snapshot(make_message()) is False
