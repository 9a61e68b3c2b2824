"""
capcolor_processor - Zone Color Monitor Service

This package provides the service that periodically captures a frame,
classifies the dominant color of every configured zone and publishes the
resulting zone snapshot.

Architecture:
- ColorMonitorService: Main orchestrator
- CycleScheduler: Periodic, non-overlapping classification cycles
- VideoCaptureFrameSource: OpenCV frames on demand
- merger: Pure functions applying cycle results to zone snapshots
- ProcessorConfig: Configuration management

Concurrency Model:
- One asyncio event loop owns the registry and the scheduler
- Blocking capture reads run in a worker thread
- MQTT callbacks hop onto the loop with call_soon_threadsafe
"""

from capcolor_processor.config import MQTTConfig, ProcessorConfig, RemoteConfig, ZoneConfig
from capcolor_processor.frame_source import CaptureError, Frame, FrameSource, VideoCaptureFrameSource
from capcolor_processor.scheduler import CycleReport, CycleScheduler
from capcolor_processor.service import ColorMonitorService

__all__ = [
    "ProcessorConfig",
    "ZoneConfig",
    "RemoteConfig",
    "MQTTConfig",
    "CaptureError",
    "Frame",
    "FrameSource",
    "VideoCaptureFrameSource",
    "CycleReport",
    "CycleScheduler",
    "ColorMonitorService",
]
