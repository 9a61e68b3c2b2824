"""
Configuration schema for the ColorMonitor service.

This module defines the configuration structure for the color monitor,
including the video source, cycle period, zone definitions, classification
mode, local classifier tuning, remote model settings and MQTT publishing.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from capcolor_classifier import CLASSIFICATION_MODES, ClassifierThresholds
from capcolor_classifier.palette import DEFAULT_PALETTE, PaletteEntry, palette_from_list
from capcolor_zone import Zone, ZoneGeometry


@dataclass(frozen=True)
class ZoneConfig:
    """Zone configuration (percentages of the frame)."""

    zone_id: int
    name: str
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        """Validate zone configuration."""
        if not self.name:
            raise ValueError(f"Zone {self.zone_id} name cannot be empty")
        # Geometry validates ranges
        self.to_geometry()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ZoneConfig":
        """
        Deserialize from a config dict. `name` defaults to "Zone <id>".

        Raises:
            ValueError: If required keys are missing or values invalid
        """
        try:
            zone_id = int(data["zone_id"])
            return cls(
                zone_id=zone_id,
                name=data.get("name", f"Zone {zone_id}"),
                x=float(data["x"]),
                y=float(data["y"]),
                width=float(data["width"]),
                height=float(data["height"]),
            )
        except KeyError as e:
            raise ValueError(f"Missing required zone field: {e}")
        except TypeError as e:
            raise ValueError(f"Invalid zone data: {e}")

    def to_geometry(self) -> ZoneGeometry:
        return ZoneGeometry(x=self.x, y=self.y, width=self.width, height=self.height)

    def to_zone(self) -> Zone:
        return Zone(id=self.zone_id, name=self.name, geometry=self.to_geometry())


def default_zones() -> List[ZoneConfig]:
    """Four quadrant zones with a 5% margin."""
    return [
        ZoneConfig(zone_id=1, name="Zone 1", x=5, y=5, width=43, height=43),
        ZoneConfig(zone_id=2, name="Zone 2", x=52, y=5, width=43, height=43),
        ZoneConfig(zone_id=3, name="Zone 3", x=5, y=52, width=43, height=43),
        ZoneConfig(zone_id=4, name="Zone 4", x=52, y=52, width=43, height=43),
    ]


@dataclass(frozen=True)
class RemoteConfig:
    """Remote (Gemini) classification settings."""

    model: str = "gemini-2.5-flash"
    api_key_env: str = "API_KEY"
    temperature: float = 0.1
    timeout_s: float = 10.0
    jpeg_quality: int = 80

    def __post_init__(self):
        """Validate remote configuration."""
        if not self.model:
            raise ValueError("remote.model cannot be empty")
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(
                f"remote.temperature must be in [0.0, 2.0], got {self.temperature}"
            )
        if self.timeout_s <= 0:
            raise ValueError(f"remote.timeout_s must be > 0, got {self.timeout_s}")
        if not 1 <= self.jpeg_quality <= 100:
            raise ValueError(
                f"remote.jpeg_quality must be in [1, 100], got {self.jpeg_quality}"
            )


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration."""

    broker: str
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 0  # Data plane QoS (fire-and-forget)

    snapshot_topic: str = "capcolor/data/zones/{service_id}"
    command_topic: str = "capcolor/control/{service_id}/commands"
    status_topic: str = "capcolor/control/{service_id}/status"

    def __post_init__(self):
        """Validate MQTT configuration."""
        if not self.broker:
            raise ValueError("MQTT broker cannot be empty")

        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )


@dataclass(frozen=True)
class ProcessorConfig:
    """
    Main configuration for the ColorMonitor service.

    This configuration is loaded from YAML and validated at startup.
    Immutable after construction (frozen dataclass).
    """

    # Service identification
    service_id: str

    # Video source: camera index or URL/path
    video_source: Union[int, str] = 0
    frame_resolution_wh: Tuple[int, int] = (1280, 720)  # (width, height)

    # Cycle
    cycle_period_ms: int = 3000
    classification_mode: str = "remote"

    # Zones
    zones: List[ZoneConfig] = field(default_factory=default_zones)

    # Classifiers
    palette: Tuple[PaletteEntry, ...] = DEFAULT_PALETTE
    thresholds: ClassifierThresholds = field(default_factory=ClassifierThresholds)
    remote_config: RemoteConfig = field(default_factory=RemoteConfig)

    # MQTT (optional: no publishing / control plane when absent)
    mqtt_config: Optional[MQTTConfig] = None

    def __post_init__(self):
        """Validate processor configuration."""
        # Validate service_id
        if not self.service_id:
            raise ValueError("service_id cannot be empty")

        # Validate video source
        if isinstance(self.video_source, str) and not self.video_source:
            raise ValueError("video_source cannot be empty")

        # Validate frame_resolution_wh
        width, height = self.frame_resolution_wh
        if width <= 0 or height <= 0:
            raise ValueError(
                f"frame_resolution_wh must have positive dimensions, got {self.frame_resolution_wh}"
            )

        # Validate cycle
        if self.cycle_period_ms <= 0:
            raise ValueError(
                f"cycle_period_ms must be > 0, got {self.cycle_period_ms}"
            )

        if self.classification_mode not in CLASSIFICATION_MODES:
            raise ValueError(
                f"Invalid classification_mode: {self.classification_mode}. "
                f"Must be one of {CLASSIFICATION_MODES}"
            )

        # Validate zones
        if len(self.zones) == 0:
            raise ValueError("At least one zone is required")

        zone_ids = [zone.zone_id for zone in self.zones]
        duplicates = sorted({zone_id for zone_id in zone_ids if zone_ids.count(zone_id) > 1})
        if duplicates:
            raise ValueError(f"Zone ids must be unique, duplicated: {duplicates}")

        if len(self.palette) == 0:
            raise ValueError("palette must have at least one entry")

    @property
    def cycle_period_s(self) -> float:
        return self.cycle_period_ms / 1000.0

    def build_zones(self) -> List[Zone]:
        """Initial Zone snapshots, in configuration order."""
        return [zone_config.to_zone() for zone_config in self.zones]

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "ProcessorConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            service_id: "line_01"
            video_source: 0                    # camera index or URL/path
            frame_resolution_wh: [1280, 720]   # [width, height]
            cycle_period_ms: 3000
            classification_mode: "local"       # "remote" or "local"

            zones:
              - zone_id: 1
                name: "Zone 1"
                x: 5
                y: 5
                width: 43
                height: 43

            thresholds:
              min_saturation: 25
              min_brightness: 40
              max_brightness: 220
              max_distance: 120

            palette:                           # optional, default has 9 colors
              - name: "Red"
                rgb: [200, 0, 0]
                hex: "#FF0000"

            remote_config:
              model: "gemini-2.5-flash"
              api_key_env: "API_KEY"
              timeout_s: 10

            mqtt_config:                       # optional
              broker: "localhost"
              port: 1883
        """
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "ProcessorConfig":
        """Build configuration from a decoded YAML mapping."""
        if "service_id" not in data:
            raise ValueError("Missing required config field: service_id")

        # Parse nested configs
        thresholds = ClassifierThresholds(**data.get("thresholds", {}))
        remote_config = RemoteConfig(**data.get("remote_config", {}))

        mqtt_config_data = data.get("mqtt_config")
        mqtt_config = MQTTConfig(**mqtt_config_data) if mqtt_config_data else None

        zones_data = data.get("zones")
        if zones_data is None:
            zones = default_zones()
        else:
            zones = [ZoneConfig.from_dict(z) for z in zones_data]

        palette_data = data.get("palette")
        palette = palette_from_list(palette_data) if palette_data else DEFAULT_PALETTE

        # Parse frame_resolution_wh
        frame_resolution_data = data.get("frame_resolution_wh", [1280, 720])
        frame_resolution_wh = tuple(frame_resolution_data)

        return cls(
            service_id=data["service_id"],
            video_source=data.get("video_source", 0),
            frame_resolution_wh=frame_resolution_wh,
            cycle_period_ms=int(data.get("cycle_period_ms", 3000)),
            classification_mode=data.get("classification_mode", "remote"),
            zones=zones,
            palette=palette,
            thresholds=thresholds,
            remote_config=remote_config,
            mqtt_config=mqtt_config,
        )
