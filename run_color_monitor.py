#!/usr/bin/env python3
"""
Color Monitor Service - Entry Point
===================================

This script starts the Capcolor ColorMonitorService, which:
- Captures a frame from a camera, file or stream every cycle
- Classifies the dominant color of each configured zone
  (remote Gemini model or on-device palette matching)
- Publishes a zone snapshot to MQTT after every cycle
- Responds to control commands via MQTT control plane

Usage:
    python run_color_monitor.py --config config/capcolor_processor/processor_config.yaml

Lifecycle:
    1. Load configuration from YAML
    2. Setup logging (console + file)
    3. Create control plane and snapshot publisher (if mqtt_config is set)
    4. Create ColorMonitorService and set it up
    5. Run until a stop signal (Ctrl+C or SIGTERM) or the source is lost
    6. Graceful shutdown (in-flight cycle finishes first)

Logs:
    - Console: INFO level
    - File: logs/color_monitor.log (INFO level)
"""

import argparse
import asyncio
import logging
import signal
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import cv2

from capcolor_control import MQTTControlPlane
from capcolor_mqtt import ZoneSnapshotPublisher, create_logger
from capcolor_processor import ColorMonitorService, CycleReport, ProcessorConfig
from capcolor_zone import ZoneVisualizer

PREVIEW_WINDOW = "capcolor"


# ─────────────────────────────────────────────────────────────────────────────
# Logging Setup
# ─────────────────────────────────────────────────────────────────────────────

def setup_logging(log_file: Optional[Path] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Setup logging for the color monitor.

    Args:
        log_file: Optional path to log file
        level: Root logging level

    Returns:
        Logger instance for the entry point
    """
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *(
                [logging.FileHandler(log_file)]
                if log_file
                else []
            )
        ]
    )

    return logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Main Service
# ─────────────────────────────────────────────────────────────────────────────

class ColorMonitorApp:
    """
    Main application wrapper for ColorMonitorService.

    Handles:
    - Configuration loading
    - Component initialization (control plane, publisher)
    - Signal handling (SIGTERM, SIGINT)
    - Optional preview window
    """

    def __init__(
        self,
        config_path: Path,
        log_file: Optional[Path] = None,
        preview: bool = False,
        mode: Optional[str] = None,
    ):
        self.config_path = config_path
        self.preview = preview
        self.mode = mode
        self.logger = setup_logging(log_file)

        self.config: Optional[ProcessorConfig] = None
        self.control_plane: Optional[MQTTControlPlane] = None
        self.snapshot_publisher: Optional[ZoneSnapshotPublisher] = None
        self.service: Optional[ColorMonitorService] = None
        self.visualizer: Optional[ZoneVisualizer] = None

    def setup(self):
        """
        Setup all components.

        Steps:
        1. Load configuration from YAML
        2. Create control plane and snapshot publisher (optional)
        3. Create ColorMonitorService and set it up
        """
        self.logger.info("=" * 80)
        self.logger.info("🚀 Capcolor Color Monitor - Starting")
        self.logger.info("=" * 80)

        self.logger.info(f"📄 Loading configuration: {self.config_path}")
        self.config = ProcessorConfig.from_yaml(self.config_path)
        if self.mode:
            self.config = replace(self.config, classification_mode=self.mode)
        self.logger.info(
            f"✅ Configuration loaded (service_id={self.config.service_id}, "
            f"mode={self.config.classification_mode})"
        )

        mqtt_config = self.config.mqtt_config
        if mqtt_config is not None:
            service_id = self.config.service_id

            self.logger.info("🔌 Creating MQTT control plane")
            self.control_plane = MQTTControlPlane(
                broker_host=mqtt_config.broker,
                broker_port=mqtt_config.port,
                command_topic=mqtt_config.command_topic.format(service_id=service_id),
                status_topic=mqtt_config.status_topic.format(service_id=service_id),
                client_id=f"capcolor_{service_id}_control",
                username=mqtt_config.username,
                password=mqtt_config.password,
            )

            snapshot_topic = mqtt_config.snapshot_topic.format(service_id=service_id)
            self.snapshot_publisher = ZoneSnapshotPublisher(
                broker_host=mqtt_config.broker,
                broker_port=mqtt_config.port,
                topic=snapshot_topic,
                logger=create_logger(component="snapshot_publisher"),
                client_id=f"capcolor_{service_id}_snapshots",
                username=mqtt_config.username,
                password=mqtt_config.password,
                qos=mqtt_config.qos,
            )
            self.logger.info(f"  - Snapshot topic: {snapshot_topic}")
        else:
            self.logger.info("ℹ️  No mqtt_config: snapshots are logged only")

        self.service = ColorMonitorService(
            config=self.config,
            snapshot_publisher=self.snapshot_publisher,
            control_plane=self.control_plane,
        )
        self.service.setup()

        if self.preview:
            self.visualizer = ZoneVisualizer()
            self.service.scheduler.add_listener(self._show_preview)
            self.logger.info("🖼️  Preview window enabled")

        self.logger.info("=" * 80)

    def _show_preview(self, report: CycleReport) -> None:
        frame = self.service.scheduler.last_frame
        if frame is None:
            return
        annotated = self.visualizer.draw_zones(frame.image, report.zones)
        cv2.imshow(PREVIEW_WINDOW, annotated)
        cv2.waitKey(1)

    async def run(self):
        """Run the service until a signal arrives or the source is lost."""
        if not self.service:
            raise RuntimeError("Service not initialized. Call setup() first.")

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._request_shutdown, sig)

        self.logger.info("Press Ctrl+C to stop")
        try:
            await self.service.run()
        finally:
            if self.preview:
                cv2.destroyAllWindows()
            self.logger.info("=" * 80)
            self.logger.info("✅ Shutdown complete")
            self.logger.info("=" * 80)

    def _request_shutdown(self, sig: signal.Signals) -> None:
        self.logger.info(f"⚠️  Received signal {sig.name}, shutting down")
        self.service.request_stop()


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Capcolor Color Monitor - zone color classification + MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start with default config
  python run_color_monitor.py --config config/capcolor_processor/processor_config.yaml

  # Force the on-device classifier and show a preview window
  python run_color_monitor.py --config config/capcolor_processor/processor_config.yaml --mode local --preview

  # Start without file logging (console only)
  python run_color_monitor.py --config config/capcolor_processor/processor_config.yaml --no-log-file
        """
    )

    parser.add_argument(
        '--config',
        type=Path,
        required=True,
        help='Path to processor configuration YAML file'
    )
    parser.add_argument(
        '--mode',
        choices=['remote', 'local'],
        default=None,
        help='Override classification_mode from the config'
    )
    parser.add_argument(
        '--preview',
        action='store_true',
        help='Show annotated frames in an OpenCV window after every cycle'
    )
    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path('logs/color_monitor.log'),
        help='Path to log file (default: logs/color_monitor.log)'
    )
    parser.add_argument(
        '--no-log-file',
        action='store_true',
        help='Disable file logging (console only)'
    )

    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    log_file = None if args.no_log_file else args.log_file

    if not args.config.exists():
        print(f"❌ Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    app = ColorMonitorApp(
        config_path=args.config,
        log_file=log_file,
        preview=args.preview,
        mode=args.mode,
    )

    try:
        app.setup()
        asyncio.run(app.run())
    except Exception as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
