"""
Zone Extractor Module
=====================

Bounded Context: Turning a captured frame + zone geometry into classifier input.

Design:
- Stateless: one frame in, one ZoneImage out
- Same PixelRect for both outputs (encoded JPEG and raw RGB pixels)
- Degenerate rectangles yield an empty ZoneImage, never an exception

Dependencies:
- supervision (crop_image)
- opencv (JPEG encoding, BGR -> RGB conversion)
"""

from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np
import supervision as sv

from capcolor_zone.geometry.shapes import PixelRect, ZoneGeometry

JPEG_MIME_TYPE = "image/jpeg"


@dataclass(frozen=True)
class ZoneImage:
    """
    Pixel data of one zone, cropped from one frame.

    Attributes:
        zone_id: Zone the crop belongs to
        rect: Pixel rectangle that was cropped
        pixels: RGB array (H, W, 3), None if not requested or empty
        encoded: JPEG bytes, b"" if not requested or empty
        mime_type: MIME type of `encoded`
    """

    zone_id: int
    rect: PixelRect
    pixels: Optional[np.ndarray] = None
    encoded: bytes = b""
    mime_type: str = JPEG_MIME_TYPE

    @property
    def is_empty(self) -> bool:
        return self.rect.is_empty


class ZoneExtractor:
    """
    Crops zones out of BGR frames.

    Usage:
        extractor = ZoneExtractor(jpeg_quality=80)
        zone_image = extractor.extract(frame.image, zone.id, zone.geometry, encode=True)
    """

    def __init__(self, jpeg_quality: int = 80):
        """
        Args:
            jpeg_quality: JPEG quality in [1, 100] for encoded output
        """
        if not 1 <= jpeg_quality <= 100:
            raise ValueError(f"jpeg_quality must be in [1, 100], got {jpeg_quality}")
        self.jpeg_quality = jpeg_quality

    def crop(self, image: np.ndarray, rect: PixelRect) -> Optional[np.ndarray]:
        """Crop rect out of image; None when the rectangle is empty."""
        if rect.is_empty:
            return None
        cropped = sv.crop_image(image=image, xyxy=rect.xyxy)
        if cropped.size == 0:
            return None
        return cropped

    def encode_jpeg(self, crop: np.ndarray) -> bytes:
        """
        Encode a BGR crop as JPEG.

        Raises:
            RuntimeError: If OpenCV fails to encode the image
        """
        ok, buffer = cv2.imencode(
            ".jpg", crop, [int(cv2.IMWRITE_JPEG_QUALITY), self.jpeg_quality]
        )
        if not ok:
            raise RuntimeError(f"JPEG encoding failed for crop of shape {crop.shape}")
        return buffer.tobytes()

    def extract(
        self,
        image: np.ndarray,
        zone_id: int,
        geometry: ZoneGeometry,
        encode: bool,
    ) -> ZoneImage:
        """
        Extract one zone from a BGR frame.

        Args:
            image: BGR frame (H, W, 3)
            zone_id: Zone identifier
            geometry: Zone geometry in percentages
            encode: True for JPEG bytes (remote path), False for RGB pixels (local path)

        Returns:
            ZoneImage, empty when the mapped rectangle covers no pixels
        """
        frame_height, frame_width = image.shape[:2]
        rect = geometry.to_pixel_rect((frame_width, frame_height))

        crop = self.crop(image, rect)
        if crop is None:
            return ZoneImage(zone_id=zone_id, rect=_empty_rect(rect))

        if encode:
            return ZoneImage(zone_id=zone_id, rect=rect, encoded=self.encode_jpeg(crop))

        pixels = cv2.cvtColor(crop, cv2.COLOR_BGR2RGB)
        return ZoneImage(zone_id=zone_id, rect=rect, pixels=pixels)


def _empty_rect(rect: PixelRect) -> PixelRect:
    return PixelRect(x=rect.x, y=rect.y, width=0, height=0)
