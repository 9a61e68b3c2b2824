"""
Color Monitor Service - Main orchestrator.

This module provides the ColorMonitorService class which wires the zone
color pipeline together: video capture, zone registry, classifier strategy,
cycle scheduler, MQTT snapshot publishing and the MQTT control plane.

Architecture:
- VideoCaptureFrameSource: frames on demand (OpenCV, worker thread reads)
- ZoneRegistry: sole shared state, immutable zone snapshots
- CycleScheduler: periodic capture -> extract -> classify -> merge
- ZoneSnapshotPublisher: one retained snapshot per cycle (optional)
- MQTTControlPlane: set_mode / list_zones / get_status (optional)

Threading Model:
- asyncio event loop: scheduler, classification, merge, publishing
- Capture worker thread (asyncio.to_thread, one read at a time)
- paho-mqtt network threads (publisher + control plane)
- Command handlers run in the paho thread and hop onto the event loop
  with loop.call_soon_threadsafe before touching the scheduler
"""

import asyncio
import logging
from typing import Callable, Dict, Optional

from capcolor_classifier import (
    CLASSIFICATION_MODES,
    ColorClassifier,
    GeminiBackend,
    InferenceBackend,
    create_classifier,
)
from capcolor_mqtt import (
    LogEvent,
    StructuredLogger,
    Timestamp,
    ZoneColorState,
    ZoneSnapshotMessage,
    ZoneSnapshotPublisher,
    create_logger,
)
from capcolor_processor.config import ProcessorConfig
from capcolor_processor.frame_source import FrameSource, VideoCaptureFrameSource
from capcolor_processor.scheduler import CycleReport, CycleScheduler
from capcolor_zone import ZoneExtractor, ZoneRegistry

logger = logging.getLogger(__name__)

SNAPSHOT_SCHEMA_VERSION = "1.0"


class ColorMonitorService:
    """
    Zone color monitor service.

    Usage:
        config = ProcessorConfig.from_yaml("config.yaml")
        service = ColorMonitorService(config)
        service.setup()
        await service.run()    # until stop() or the source is lost

    The frame source and inference backend are built from config when not
    injected. Publisher and control plane are optional; without them the
    service only logs its cycles.
    """

    def __init__(
        self,
        config: ProcessorConfig,
        frame_source: Optional[FrameSource] = None,
        backend: Optional[InferenceBackend] = None,
        snapshot_publisher: Optional[ZoneSnapshotPublisher] = None,
        control_plane=None,  # MQTTControlPlane
        event_logger: Optional[StructuredLogger] = None,
    ):
        self.config = config
        self.frame_source = frame_source
        self.backend = backend
        self.snapshot_publisher = snapshot_publisher
        self.control_plane = control_plane
        self.event_logger = event_logger or create_logger("color_monitor")

        # Components (built in setup())
        self.registry: Optional[ZoneRegistry] = None
        self.extractor: Optional[ZoneExtractor] = None
        self.scheduler: Optional[CycleScheduler] = None

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stopped = False

        logger.info(f"ColorMonitorService initialized for service_id={config.service_id}")

    # ─────────────────────────────────────────────────────────────────────
    # Setup
    # ─────────────────────────────────────────────────────────────────────

    def setup(self) -> None:
        """
        Build registry, extractor, classifier and scheduler.

        Raises:
            ValueError: If the initial classifier cannot be built
                (e.g. remote mode without an API key)
        """
        self.registry = ZoneRegistry(self.config.build_zones())
        self.extractor = ZoneExtractor(jpeg_quality=self.config.remote_config.jpeg_quality)

        if self.frame_source is None:
            self.frame_source = VideoCaptureFrameSource(
                self.config.video_source,
                frame_resolution_wh=self.config.frame_resolution_wh,
            )

        classifier = self.build_classifier(self.config.classification_mode)

        self.scheduler = CycleScheduler(
            registry=self.registry,
            frame_source=self.frame_source,
            extractor=self.extractor,
            classifier=classifier,
            period_s=self.config.cycle_period_s,
        )
        self.scheduler.add_listener(self._log_cycle)
        if self.snapshot_publisher is not None:
            self.scheduler.add_listener(self._publish_snapshot)

        if self.control_plane is not None:
            self._setup_control_handlers()

        logger.info(
            f"Setup complete: {len(self.registry)} zones, "
            f"mode={classifier.mode}, period={self.config.cycle_period_s:.1f}s"
        )

    def build_classifier(self, mode: str) -> ColorClassifier:
        """
        Build the classifier for a mode.

        The Gemini backend is created on first use, so a service that only
        runs in local mode never needs an API key.

        Raises:
            ValueError: Unknown mode, or remote mode without an API key
        """
        if mode not in CLASSIFICATION_MODES:
            raise ValueError(
                f"Invalid classification mode: {mode}. Must be one of {CLASSIFICATION_MODES}"
            )

        if mode == "remote" and self.backend is None:
            remote = self.config.remote_config
            self.backend = GeminiBackend.from_env(
                api_key_env=remote.api_key_env,
                model=remote.model,
                temperature=remote.temperature,
            )
            logger.info(f"Gemini backend created (model={remote.model})")

        return create_classifier(
            mode,
            palette=self.config.palette,
            thresholds=self.config.thresholds,
            backend=self.backend,
            timeout_s=self.config.remote_config.timeout_s,
        )

    def _setup_control_handlers(self) -> None:
        """Register control commands (handlers run in the paho thread)."""
        registry = self.control_plane.command_registry

        registry.register(
            "set_mode",
            self._handle_set_mode,
            "Switch classification mode (remote | local)"
        )
        registry.register(
            "list_zones",
            self._handle_list_zones,
            "Publish the current zone snapshot"
        )
        registry.register(
            "get_status",
            self._handle_get_status,
            "Publish scheduler statistics"
        )

        logger.info("Control handlers registered")

    # ─────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────

    async def run(self) -> None:
        """
        Start everything and block until the schedule ends.

        Lifecycle:
        1. Connect control plane and publisher (a broker outage only disables them)
        2. Open the video source (first frame)
        3. Start the cycle schedule
        4. Wait until stop() or the source becomes unavailable
        5. Shut down
        """
        if self.scheduler is None:
            raise RuntimeError("Service not initialized. Call setup() first.")

        self._loop = asyncio.get_running_loop()

        if self.control_plane is not None:
            if not await asyncio.to_thread(self.control_plane.connect, 5.0):
                logger.error("❌ Control plane not connected, running without remote commands")
                self.control_plane.disconnect()
                self.control_plane = None

        if self.snapshot_publisher is not None:
            if not await asyncio.to_thread(self.snapshot_publisher.connect):
                logger.warning("⚠️ Snapshot publisher not connected, snapshots will be dropped")

        self.scheduler.start()

        try:
            if isinstance(self.frame_source, VideoCaptureFrameSource):
                await self.frame_source.open()

            if self.control_plane is not None:
                self.control_plane.publish_status("running", self.scheduler.get_stats())

            logger.info("✅ Color monitor service started")
            await self.scheduler.wait()
        finally:
            await self.stop()

    def request_stop(self) -> None:
        """End the schedule; run() then performs the full shutdown."""
        if self.scheduler is not None:
            self.scheduler.stop()

    async def stop(self) -> None:
        """
        Stop the service gracefully. Safe to call more than once.

        Order:
        1. Stop the schedule (no new ticks)
        2. Drain the in-flight cycle (its results are still applied and published)
        3. Release the video source
        4. Disconnect publisher and control plane
        """
        if self._stopped:
            return
        self._stopped = True

        logger.info("Stopping color monitor service")

        if self.scheduler is not None:
            self.scheduler.stop()
            await self.scheduler.drain()

        release = getattr(self.frame_source, "release", None)
        if release is not None:
            try:
                release()
            except Exception as e:
                logger.error(f"❌ Error releasing video source: {e}")

        if self.snapshot_publisher is not None:
            self.snapshot_publisher.disconnect()

        if self.control_plane is not None:
            self.control_plane.publish_status("stopped")
            self.control_plane.disconnect()

        logger.info("✅ Color monitor service stopped")

    # ─────────────────────────────────────────────────────────────────────
    # Snapshot listeners (event loop)
    # ─────────────────────────────────────────────────────────────────────

    def build_snapshot(self, report: CycleReport) -> ZoneSnapshotMessage:
        return ZoneSnapshotMessage(
            schema_version=SNAPSHOT_SCHEMA_VERSION,
            timestamp=Timestamp.now(),
            service_id=self.config.service_id,
            cycle_id=report.cycle_id,
            mode=report.mode,
            status=report.status,
            zones=[ZoneColorState.from_zone(zone) for zone in report.zones],
            error=report.error,
        )

    def _log_cycle(self, report: CycleReport) -> None:
        metadata = {
            'cycle_id': report.cycle_id,
            'mode': report.mode,
            'status': report.status,
        }
        if report.status == "completed":
            metadata['colors'] = {zone.id: zone.color_name for zone in report.zones}
            self.event_logger.info(
                event=LogEvent.CYCLE_COMPLETED,
                message=f"Cycle {report.cycle_id} completed",
                metadata=metadata,
            )
        else:
            metadata['error'] = report.error
            self.event_logger.warning(
                event=LogEvent.CYCLE_FAILED,
                message=f"Cycle {report.cycle_id} {report.status}",
                metadata=metadata,
            )

    def _publish_snapshot(self, report: CycleReport) -> None:
        self.snapshot_publisher.publish_snapshot(self.build_snapshot(report))

    # ─────────────────────────────────────────────────────────────────────
    # Command Handlers (called by Control Plane Thread)
    # ─────────────────────────────────────────────────────────────────────

    def _call_on_loop(self, callback: Callable, *args) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(callback, *args)
        else:
            callback(*args)

    def _handle_set_mode(self, command: Dict) -> None:
        """Handle set_mode command (Control Plane Thread)."""
        mode = str(command.get("mode", "")).lower()
        if mode not in CLASSIFICATION_MODES:
            logger.warning(f"⚠️ set_mode rejected: invalid mode {mode!r}")
            self.control_plane.publish_status(
                "error",
                {"message": f"Invalid mode {mode!r}. Must be one of {list(CLASSIFICATION_MODES)}"},
            )
            return

        self._call_on_loop(self.apply_mode, mode)

    def apply_mode(self, mode: str) -> None:
        """Swap the classifier (event loop); the next cycle uses it."""
        try:
            classifier = self.build_classifier(mode)
        except ValueError as e:
            logger.error(f"❌ Cannot switch to {mode} mode: {e}")
            if self.control_plane is not None:
                self.control_plane.publish_status("error", {"message": str(e)})
            return

        self.scheduler.set_classifier(classifier)
        if self.control_plane is not None:
            self.control_plane.publish_status("mode_changed", {"mode": mode})

    def _handle_list_zones(self, command: Dict) -> None:
        """Handle list_zones command (Control Plane Thread)."""
        self._call_on_loop(self.publish_zones)

    def publish_zones(self) -> None:
        zones = self.registry.list_zones()
        self.control_plane.publish_status("zones", {"zones": zones})
        logger.info(f"Listed zones: {[zone['id'] for zone in zones]}")

    def _handle_get_status(self, command: Dict) -> None:
        """Handle get_status command (Control Plane Thread)."""
        self._call_on_loop(self.publish_stats)

    def publish_stats(self) -> None:
        stats = self.get_stats()
        self.control_plane.publish_status("status", stats)
        logger.info(f"Status: {stats}")

    def get_stats(self) -> Dict:
        stats = {
            "service_id": self.config.service_id,
            "scheduler": self.scheduler.get_stats() if self.scheduler else None,
        }
        if self.snapshot_publisher is not None:
            stats["publisher"] = self.snapshot_publisher.get_stats()
        return stats
