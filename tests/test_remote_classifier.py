"""
Tests for the remote classifier: every failure becomes the Error result.
"""

import asyncio

import pytest

from capcolor_classifier import (
    ERROR_RESULT,
    ColorResult,
    RemoteColorClassifier,
    create_classifier,
)
from capcolor_classifier.remote import COLOR_INSTRUCTION, parse_color_response
from capcolor_zone import PixelRect, ZoneImage

from conftest import FakeBackend


def jpeg_zone(zone_id: int = 1, encoded: bytes = b"\xff\xd8fake") -> ZoneImage:
    return ZoneImage(zone_id=zone_id, rect=PixelRect(0, 0, 10, 10), encoded=encoded)


class TestParseColorResponse:

    def test_valid_payload(self):
        result = parse_color_response({"colorName": "Red", "hexCode": "#FF0000"})
        assert result == ColorResult(color_name="Red", hex_code="#FF0000")

    @pytest.mark.parametrize("payload", [
        {"colorName": "Red"},
        {"hexCode": "#FF0000"},
        {"colorName": 1, "hexCode": "#FF0000"},
        ["Red", "#FF0000"],
        "Red",
    ])
    def test_invalid_payload(self, payload):
        with pytest.raises(ValueError):
            parse_color_response(payload)


class TestRemoteClassifier:

    @pytest.mark.asyncio
    async def test_valid_response(self):
        backend = FakeBackend()
        classifier = RemoteColorClassifier(backend)

        result = await classifier.classify(jpeg_zone())

        assert result == ColorResult(color_name="Blue", hex_code="#0000FF")
        image, mime_type, instruction = backend.calls[0]
        assert image == b"\xff\xd8fake"
        assert mime_type == "image/jpeg"
        assert instruction == COLOR_INSTRUCTION

    @pytest.mark.asyncio
    async def test_whitespace_around_json(self):
        backend = FakeBackend(response='\n  {"colorName": "Green", "hexCode": "#008000"}  \n')
        result = await RemoteColorClassifier(backend).classify(jpeg_zone())
        assert result.color_name == "Green"

    @pytest.mark.asyncio
    async def test_empty_image_not_sent(self):
        backend = FakeBackend()
        result = await RemoteColorClassifier(backend).classify(jpeg_zone(encoded=b""))
        assert result == ERROR_RESULT
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_missing_field(self):
        backend = FakeBackend(response='{"colorName": "Red"}')
        assert await RemoteColorClassifier(backend).classify(jpeg_zone()) == ERROR_RESULT

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        backend = FakeBackend(response="the cap is red")
        assert await RemoteColorClassifier(backend).classify(jpeg_zone()) == ERROR_RESULT

    @pytest.mark.asyncio
    async def test_backend_error(self):
        backend = FakeBackend(error=ConnectionError("network down"))
        assert await RemoteColorClassifier(backend).classify(jpeg_zone()) == ERROR_RESULT

    @pytest.mark.asyncio
    async def test_timeout(self):
        backend = FakeBackend(delay=1.0)
        classifier = RemoteColorClassifier(backend, timeout_s=0.01)
        assert await classifier.classify(jpeg_zone()) == ERROR_RESULT

    @pytest.mark.asyncio
    async def test_concurrent_requests(self):
        backend = FakeBackend(delay=0.01)
        classifier = RemoteColorClassifier(backend)

        results = await asyncio.gather(*(classifier.classify(jpeg_zone(i)) for i in range(4)))

        assert [r.color_name for r in results] == ["Blue"] * 4
        assert len(backend.calls) == 4


class TestCreateClassifier:

    def test_local(self):
        classifier = create_classifier("local")
        assert classifier.mode == "local"
        assert classifier.needs_encoded is False

    def test_remote(self):
        classifier = create_classifier("remote", backend=FakeBackend(), timeout_s=3.0)
        assert classifier.mode == "remote"
        assert classifier.needs_encoded is True
        assert classifier.timeout_s == 3.0

    def test_remote_requires_backend(self):
        with pytest.raises(ValueError):
            create_classifier("remote")

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            create_classifier("psychic")
