"""
Frame Source - Live video frames on demand.

This module provides the Frame value object, the FrameSource protocol the
cycle scheduler depends on, and VideoCaptureFrameSource, an OpenCV-backed
implementation for cameras, files and stream URLs.

Threading Model:
- cv2.VideoCapture.read() blocks, so every read runs in a worker thread via
  asyncio.to_thread(); the event loop only awaits the result
- Only one read is ever in flight (the scheduler never overlaps cycles)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class CaptureError(RuntimeError):
    """Raised when a frame cannot be captured."""
    pass


@dataclass(frozen=True)
class Frame:
    """
    One captured frame.

    Attributes:
        image: BGR image (H, W, 3)
        pixel_width: Frame width in pixels
        pixel_height: Frame height in pixels
    """

    image: np.ndarray
    pixel_width: int
    pixel_height: int

    @classmethod
    def from_image(cls, image: np.ndarray) -> "Frame":
        height, width = image.shape[:2]
        return cls(image=image, pixel_width=int(width), pixel_height=int(height))

    @property
    def is_empty(self) -> bool:
        """True for zero-dimension frames."""
        return self.pixel_width <= 0 or self.pixel_height <= 0


class FrameSource(Protocol):
    """Protocol for frame sources (interface)."""

    @property
    def is_ready(self) -> bool:
        """True once frames can be captured."""
        ...

    @property
    def is_available(self) -> bool:
        """False once the source is closed or lost."""
        ...

    async def wait_ready(self) -> None:
        """Suspend until the source is ready."""
        ...

    async def get_current_frame(self) -> Optional[Frame]:
        """
        Capture the current frame.

        Returns:
            Frame, or None if the source is not ready

        Raises:
            CaptureError: If the capture fails
        """
        ...


class VideoCaptureFrameSource:
    """
    OpenCV VideoCapture frame source.

    Usage:
        source = VideoCaptureFrameSource(0, frame_resolution_wh=(1280, 720))
        await source.open()
        frame = await source.get_current_frame()
        source.release()
    """

    def __init__(
        self,
        video_source: Union[int, str],
        frame_resolution_wh: Optional[Tuple[int, int]] = None,
    ):
        """
        Args:
            video_source: Camera index, file path or stream URL
            frame_resolution_wh: Requested (width, height); devices may ignore it
        """
        self.video_source = video_source
        self.frame_resolution_wh = frame_resolution_wh

        self._capture: Optional[cv2.VideoCapture] = None
        self._ready = asyncio.Event()
        self._released = False

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set() and not self._released

    @property
    def is_available(self) -> bool:
        return not self._released

    async def wait_ready(self) -> None:
        await self._ready.wait()

    async def open(self) -> None:
        """
        Open the device and wait for the first frame.

        Readiness is signalled only after a successful first read, so the
        scheduler never ticks against a device that delivers no frames.

        Raises:
            CaptureError: If the device cannot be opened or delivers no frame
        """
        self._capture = await asyncio.to_thread(self._open_capture)
        logger.info(f"📷 Video source opened: {self.video_source}")

        frame = await self._read()
        logger.info(
            f"✅ Video source ready ({frame.pixel_width}x{frame.pixel_height})"
        )
        self._ready.set()

    def _open_capture(self) -> cv2.VideoCapture:
        capture = cv2.VideoCapture(self.video_source)
        if not capture.isOpened():
            capture.release()
            raise CaptureError(f"Cannot open video source: {self.video_source}")

        if self.frame_resolution_wh is not None:
            width, height = self.frame_resolution_wh
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

        return capture

    async def _read(self) -> Frame:
        if self._capture is None or self._released:
            raise CaptureError("Video source is not open")

        ok, image = await asyncio.to_thread(self._capture.read)
        if not ok or image is None:
            raise CaptureError(f"Failed to read frame from {self.video_source}")

        return Frame.from_image(image)

    async def get_current_frame(self) -> Optional[Frame]:
        if not self.is_ready:
            return None
        return await self._read()

    def release(self) -> None:
        """Release the device; the source becomes unavailable."""
        if self._released:
            return
        self._released = True
        if self._capture is not None:
            self._capture.release()
        logger.info(f"Video source released: {self.video_source}")
