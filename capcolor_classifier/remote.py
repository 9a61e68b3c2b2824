"""
Remote Color Classifier
=======================

Bounded Context: Color classification delegated to a vision model.

Design:
- InferenceBackend is the seam to the external service: image bytes +
  instruction in, raw JSON text out
- GeminiBackend implements it with the google-genai async client
- RemoteColorClassifier owns validation and failure mapping: every failure
  (empty input, transport, timeout, bad JSON, schema mismatch) becomes
  ERROR_RESULT, nothing is raised to the caller
- One request per call, no retry (the next cycle retries naturally)
"""

import asyncio
import json
import logging
import os
from typing import Any, Protocol

from google import genai
from google.genai import types

from capcolor_classifier.base import ERROR_RESULT, ColorResult
from capcolor_zone.geometry.extractor import ZoneImage

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"

COLOR_INSTRUCTION = """Analyze the provided image, which is a close-up view of a potential PET bottle cap. Your task is to identify the dominant color of the bottle cap.

Respond with a JSON object that strictly adheres to the following schema.
If no bottle cap or distinct solid color is identifiable, return "None" and a white hex code.
Do not provide any text or explanation outside of the JSON object."""

RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "colorName": types.Schema(
            type=types.Type.STRING,
            description="The common name of the color (e.g., 'Red', 'Blue', 'Green').",
        ),
        "hexCode": types.Schema(
            type=types.Type.STRING,
            description="The hexadecimal code for the color (e.g., '#FF0000').",
        ),
    },
    required=["colorName", "hexCode"],
)


class InferenceBackend(Protocol):
    """Protocol for remote inference backends (interface)."""

    async def infer(self, image: bytes, mime_type: str, instruction: str) -> str:
        """
        Run one inference request.

        Returns:
            Raw response text (expected to be a JSON object)
        """
        ...


class GeminiBackend:
    """
    Gemini vision backend (google-genai SDK, async client).

    Usage:
        backend = GeminiBackend.from_env("API_KEY", model="gemini-2.5-flash")
        text = await backend.infer(jpeg_bytes, "image/jpeg", COLOR_INSTRUCTION)
    """

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, temperature: float = 0.1):
        """
        Args:
            api_key: Gemini API key
            model: Model name
            temperature: Sampling temperature
        """
        if not api_key:
            raise ValueError("Gemini API key cannot be empty")
        self.model = model
        self.temperature = temperature
        self.client = genai.Client(api_key=api_key)

    @classmethod
    def from_env(
        cls, api_key_env: str = "API_KEY", model: str = DEFAULT_MODEL, temperature: float = 0.1
    ) -> "GeminiBackend":
        """
        Build a backend from an API key stored in the environment.

        Raises:
            ValueError: If the environment variable is not set
        """
        api_key = os.environ.get(api_key_env)
        if not api_key:
            raise ValueError(
                f"{api_key_env} environment variable not set. "
                f"Please set it to use the Gemini API."
            )
        return cls(api_key=api_key, model=model, temperature=temperature)

    async def infer(self, image: bytes, mime_type: str, instruction: str) -> str:
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=[
                types.Part.from_bytes(data=image, mime_type=mime_type),
                instruction,
            ],
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=RESPONSE_SCHEMA,
                temperature=self.temperature,
            ),
        )
        return response.text or ""


def parse_color_response(payload: Any) -> ColorResult:
    """
    Validate a decoded backend response.

    Args:
        payload: Decoded JSON value

    Returns:
        ColorResult built from colorName / hexCode

    Raises:
        ValueError: If payload is not an object with both fields as strings
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Expected JSON object, got {type(payload).__name__}")

    color_name = payload.get("colorName")
    hex_code = payload.get("hexCode")
    if not isinstance(color_name, str) or not isinstance(hex_code, str):
        raise ValueError(f"Invalid JSON structure received from API: {payload}")

    return ColorResult(color_name=color_name, hex_code=hex_code)


class RemoteColorClassifier:
    """
    Classifies JPEG zone images through an InferenceBackend.

    Usage:
        classifier = RemoteColorClassifier(GeminiBackend.from_env())
        result = await classifier.classify(zone_image)
    """

    mode = "remote"
    needs_encoded = True

    def __init__(
        self,
        backend: InferenceBackend,
        timeout_s: float = 10.0,
        instruction: str = COLOR_INSTRUCTION,
    ):
        """
        Args:
            backend: Inference backend
            timeout_s: Per-request timeout in seconds
            instruction: Text instruction sent with every image
        """
        if timeout_s <= 0:
            raise ValueError(f"timeout_s must be > 0, got {timeout_s}")
        self.backend = backend
        self.timeout_s = timeout_s
        self.instruction = instruction

    async def classify(self, zone_image: ZoneImage) -> ColorResult:
        """
        Classify the encoded image of one zone.

        Returns:
            Backend color, or ERROR_RESULT on any failure
        """
        if not zone_image.encoded:
            return ERROR_RESULT

        try:
            text = await asyncio.wait_for(
                self.backend.infer(zone_image.encoded, zone_image.mime_type, self.instruction),
                timeout=self.timeout_s,
            )
            result = parse_color_response(json.loads(text.strip()))
        except asyncio.TimeoutError:
            logger.error(
                f"Timed out identifying color of zone {zone_image.zone_id} "
                f"after {self.timeout_s}s"
            )
            return ERROR_RESULT
        except json.JSONDecodeError as e:
            logger.error(f"Malformed JSON for zone {zone_image.zone_id}: {e}")
            return ERROR_RESULT
        except Exception as e:
            logger.error(f"Error identifying color of zone {zone_image.zone_id}: {e}")
            return ERROR_RESULT

        logger.debug(f"Zone {zone_image.zone_id} classified remotely as {result.color_name}")
        return result
