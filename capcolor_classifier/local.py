"""
Local Color Classifier
======================

Bounded Context: Pixel-statistics color classification (no network).

Algorithm:
1. Mean R, G, B over every pixel (alpha ignored)
2. saturation = max(mean) - min(mean), brightness = mean of the means
3. Reject gray / dark / overexposed samples as "None"
4. Nearest palette entry by Euclidean distance in RGB
5. Reject matches farther than max_distance as "None"

Design:
- Deterministic, pure function of the pixel buffer
- Palette order is the tie-break (np.argmin returns the first minimum)
- Thresholds are tuning values, injected via ClassifierThresholds
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from capcolor_classifier.base import NONE_RESULT, ColorResult
from capcolor_classifier.palette import DEFAULT_PALETTE, PaletteEntry, palette_matrix
from capcolor_zone.geometry.extractor import ZoneImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassifierThresholds:
    """
    Rejection bounds for the local classifier.

    Attributes:
        min_saturation: Below this the sample is considered gray
        min_brightness: Below this the sample is considered black
        max_brightness: Above this the sample is considered white/overexposed
        max_distance: Farther than this from every palette entry -> "None"
    """

    min_saturation: float = 25.0
    min_brightness: float = 40.0
    max_brightness: float = 220.0
    max_distance: float = 120.0

    def __post_init__(self):
        """Validate thresholds."""
        if self.min_saturation < 0:
            raise ValueError(f"min_saturation must be >= 0, got {self.min_saturation}")
        if not 0 <= self.min_brightness <= self.max_brightness <= 255:
            raise ValueError(
                "brightness bounds must satisfy 0 <= min_brightness <= max_brightness <= 255, "
                f"got ({self.min_brightness}, {self.max_brightness})"
            )
        if self.max_distance <= 0:
            raise ValueError(f"max_distance must be > 0, got {self.max_distance}")


def mean_rgb(pixels: np.ndarray) -> Optional[np.ndarray]:
    """
    Mean (r, g, b) of a pixel buffer.

    Accepts (H, W, C) or (N, C) arrays with C in {3, 4}, or a flat RGBA8
    buffer (length multiple of 4).

    Returns:
        float64 array of shape (3,), or None for an empty buffer

    Raises:
        ValueError: If the buffer layout is not recognised
    """
    pixels = np.asarray(pixels)
    if pixels.size == 0:
        return None

    if pixels.ndim == 1:
        if pixels.size % 4 != 0:
            raise ValueError(f"Flat buffer must be RGBA8 (length % 4 == 0), got {pixels.size}")
        pixels = pixels.reshape(-1, 4)

    channels = pixels.shape[-1]
    if channels not in (3, 4):
        raise ValueError(f"Pixel buffer must have 3 or 4 channels, got shape {pixels.shape}")

    rgb = pixels.reshape(-1, channels)[:, :3].astype(np.float64)
    return rgb.mean(axis=0)


class LocalColorClassifier:
    """
    Nearest-reference-color classifier over the zone's mean color.

    Usage:
        classifier = LocalColorClassifier()
        result = classifier.classify_pixels(rgb_pixels)
        # ColorResult(color_name="Red", hex_code="#FF0000")
    """

    mode = "local"
    needs_encoded = False

    def __init__(
        self,
        palette: Sequence[PaletteEntry] = DEFAULT_PALETTE,
        thresholds: ClassifierThresholds = ClassifierThresholds(),
    ):
        """
        Args:
            palette: Reference colors, in tie-break order
            thresholds: Rejection bounds
        """
        if len(palette) == 0:
            raise ValueError("Palette must have at least one entry")
        self.palette = tuple(palette)
        self.thresholds = thresholds
        self._palette_rgb = palette_matrix(self.palette)

    def classify_pixels(self, pixels: Optional[np.ndarray]) -> ColorResult:
        """
        Classify a raw pixel buffer.

        Args:
            pixels: RGB or RGBA pixel buffer (None or empty -> "None")

        Returns:
            Matching palette entry as ColorResult, or NONE_RESULT
        """
        if pixels is None:
            return NONE_RESULT

        mean = mean_rgb(pixels)
        if mean is None:
            return NONE_RESULT

        saturation = float(mean.max() - mean.min())
        brightness = float(mean.sum() / 3.0)

        if (
            saturation < self.thresholds.min_saturation
            or brightness < self.thresholds.min_brightness
            or brightness > self.thresholds.max_brightness
        ):
            return NONE_RESULT

        distances = np.linalg.norm(self._palette_rgb - mean, axis=1)
        best = int(np.argmin(distances))

        if distances[best] > self.thresholds.max_distance:
            return NONE_RESULT

        entry = self.palette[best]
        return ColorResult(color_name=entry.name, hex_code=entry.hex_code)

    async def classify(self, zone_image: ZoneImage) -> ColorResult:
        """Classify the RGB pixels of a zone image."""
        result = self.classify_pixels(zone_image.pixels)
        logger.debug(f"Zone {zone_image.zone_id} classified locally as {result.color_name}")
        return result
