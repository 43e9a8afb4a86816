"""
Configuration schema for the discovery service.

Defines where boundary datasets live, how the overlay is styled, and
which MQTT topics carry coordinate batches and discovery results.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import yaml

from trailmap_region.dataset.loader import DEFAULT_NAME_PROPERTIES
from trailmap_region.rendering.mask import FillStyle, FullExtent


@dataclass(frozen=True)
class DatasetConfig:
    """Boundary dataset location and parsing options."""

    datasets_dir: Path = Path("./data/boundaries")
    default_dataset: str = "us_states"
    name_properties: Tuple[str, ...] = DEFAULT_NAME_PROPERTIES

    def __post_init__(self):
        """Validate dataset configuration."""
        object.__setattr__(self, 'datasets_dir', Path(self.datasets_dir))
        object.__setattr__(self, 'name_properties', tuple(self.name_properties))

        if not self.default_dataset:
            raise ValueError("default_dataset cannot be empty")

        if not self.name_properties:
            raise ValueError("name_properties must list at least one property")

        if not self.datasets_dir.exists():
            raise FileNotFoundError(
                f"Datasets directory not found: {self.datasets_dir}\n"
                f"Create directory or update 'datasets_dir' in config"
            )

        if not self.datasets_dir.is_dir():
            raise ValueError(
                f"datasets_dir must be a directory, got file: {self.datasets_dir}"
            )


@dataclass(frozen=True)
class OverlayConfig:
    """Fog extent and fill style."""

    extent: Tuple[float, float, float, float] = (-180.0, -90.0, 180.0, 90.0)
    fill_color: str = "#000000"
    fill_opacity: float = 0.75

    def __post_init__(self):
        """Validate by building the geometry objects once."""
        if len(self.extent) != 4:
            raise ValueError(
                f"extent must be [min_lon, min_lat, max_lon, max_lat], got {self.extent}"
            )
        object.__setattr__(self, 'extent', tuple(float(v) for v in self.extent))
        self.full_extent()
        self.fill_style()

    def full_extent(self) -> FullExtent:
        return FullExtent.from_sequence(self.extent)

    def fill_style(self) -> FillStyle:
        return FillStyle(color=self.fill_color, opacity=self.fill_opacity)


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration."""

    broker: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 1

    coordinates_topic: str = "trailmap/{service_id}/coordinates"
    discovery_topic: str = "trailmap/{service_id}/discovery/{owner_id}"

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

    def resolve_topics(self, service_id: str) -> Tuple[str, str]:
        """
        Substitute {service_id}; {owner_id} is left for the publisher.

        Returns:
            (coordinates_topic, discovery_topic)
        """
        return (
            self.coordinates_topic.replace("{service_id}", service_id),
            self.discovery_topic.replace("{service_id}", service_id),
        )


@dataclass(frozen=True)
class ServiceConfig:
    """
    Main configuration for the discovery service.

    Loaded from YAML and validated at startup.
    Immutable after construction (frozen dataclass).
    """

    service_id: str
    dataset: DatasetConfig = field(default_factory=DatasetConfig)
    overlay: OverlayConfig = field(default_factory=OverlayConfig)
    mqtt_config: MQTTConfig = field(default_factory=MQTTConfig)

    def __post_init__(self):
        if not self.service_id:
            raise ValueError("service_id cannot be empty")

    @property
    def coordinates_topic(self) -> str:
        return self.mqtt_config.resolve_topics(self.service_id)[0]

    @property
    def discovery_topic(self) -> str:
        return self.mqtt_config.resolve_topics(self.service_id)[1]

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "ServiceConfig":
        """
        Load configuration from YAML file.

        Relative datasets_dir paths are resolved against the YAML file's
        directory.

        Example YAML:
            service_id: "discovery_01"

            dataset:
              datasets_dir: "../data/boundaries"
              default_dataset: "us_states"
              name_properties: ["name", "NAME"]

            overlay:
              extent: [-180, -90, 180, 90]
              fill_color: "#000000"
              fill_opacity: 0.75

            mqtt_config:
              broker: "localhost"
              port: 1883
              qos: 1
        """
        yaml_path = Path(yaml_path)
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"{yaml_path}: top level must be a mapping")

        dataset_data = dict(data.get("dataset") or {})
        if "datasets_dir" in dataset_data:
            datasets_dir = Path(dataset_data["datasets_dir"])
            if not datasets_dir.is_absolute():
                datasets_dir = yaml_path.parent / datasets_dir
            dataset_data["datasets_dir"] = datasets_dir
        if "name_properties" in dataset_data:
            dataset_data["name_properties"] = tuple(dataset_data["name_properties"])
        dataset = DatasetConfig(**dataset_data)

        overlay_data = dict(data.get("overlay") or {})
        if "extent" in overlay_data:
            overlay_data["extent"] = tuple(overlay_data["extent"])
        overlay = OverlayConfig(**overlay_data)

        mqtt_config = MQTTConfig(**(data.get("mqtt_config") or {}))

        return cls(
            service_id=data["service_id"],
            dataset=dataset,
            overlay=overlay,
            mqtt_config=mqtt_config,
        )
