"""
Configuration schema for the geotify service.

Defines the service identity, registry capacity, persistence location,
simulated device capabilities and MQTT settings. Loaded from YAML and
validated at startup.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import yaml

from geotify_monitor import AuthorizationStatus

MAX_GEOTIFICATIONS = 20


@dataclass(frozen=True)
class DeviceConfig:
    """
    Device region-monitoring capabilities.

    These feed the CapabilityProbe and the SimulatedMonitoringEngine; on a
    real device they come from the location subsystem.
    """

    monitoring_supported: bool = True
    authorization: AuthorizationStatus = AuthorizationStatus.ALWAYS
    maximum_monitoring_distance: float = 2000.0  # meters
    maximum_monitored_region_count: int = 20

    def __post_init__(self):
        """Validate device configuration."""
        try:
            object.__setattr__(self, "authorization", AuthorizationStatus(self.authorization))
        except ValueError:
            valid = {s.value for s in AuthorizationStatus}
            raise ValueError(
                f"Invalid authorization: {self.authorization}. Must be one of {valid}"
            )

        if self.maximum_monitoring_distance <= 0:
            raise ValueError(
                f"maximum_monitoring_distance must be > 0, got {self.maximum_monitoring_distance}"
            )

        if self.maximum_monitored_region_count < 0:
            raise ValueError(
                f"maximum_monitored_region_count must be >= 0, "
                f"got {self.maximum_monitored_region_count}"
            )


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration."""

    broker: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 1

    registry_event_topic: str = "geotify/data/registry/{service_id}"
    location_event_topic: str = "geotify/data/location/{service_id}"
    command_topic: str = "geotify/control/{service_id}/commands"
    status_topic: str = "geotify/control/{service_id}/status"
    reply_topic: str = "geotify/control/{service_id}/replies"

    def __post_init__(self):
        """Validate MQTT configuration."""
        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )


@dataclass(frozen=True)
class GeotifyConfig:
    """
    Main configuration for the geotify service.

    Immutable after construction (frozen dataclass).
    """

    service_id: str

    # Registry
    capacity: int = MAX_GEOTIFICATIONS
    rearm_on_hydrate: bool = False

    # Persistence
    store_path: Path = Path("./data/geotifications.json")
    store_key: str = "savedItems"

    device: DeviceConfig = field(default_factory=DeviceConfig)
    mqtt_config: MQTTConfig = field(default_factory=MQTTConfig)

    def __post_init__(self):
        """Validate geotify configuration."""
        if not self.service_id:
            raise ValueError("service_id cannot be empty")

        if not 1 <= self.capacity <= MAX_GEOTIFICATIONS:
            raise ValueError(
                f"capacity must be in [1, {MAX_GEOTIFICATIONS}], got {self.capacity}"
            )

        if not self.store_key:
            raise ValueError("store_key cannot be empty")

        if self.store_path.exists() and self.store_path.is_dir():
            raise ValueError(
                f"store_path must be a file, got directory: {self.store_path}"
            )

    def topic(self, template: str) -> str:
        """Expand a topic template with this service's id."""
        return template.format(service_id=self.service_id)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "GeotifyConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            service_id: "napper_01"
            capacity: 20
            rearm_on_hydrate: false

            store_path: "./data/geotifications.json"
            store_key: "savedItems"

            device:
              monitoring_supported: true
              authorization: "always"
              maximum_monitoring_distance: 2000
              maximum_monitored_region_count: 20

            mqtt_config:
              broker: "localhost"
              port: 1883
        """
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        device = DeviceConfig(**data.get("device", {}))
        mqtt_config = MQTTConfig(**data.get("mqtt_config", {}))

        return cls(
            service_id=data["service_id"],
            capacity=data.get("capacity", MAX_GEOTIFICATIONS),
            rearm_on_hydrate=bool(data.get("rearm_on_hydrate", False)),
            store_path=Path(data.get("store_path", "./data/geotifications.json")),
            store_key=data.get("store_key", "savedItems"),
            device=device,
            mqtt_config=mqtt_config,
        )
