"""
Monitoring Engine Boundary
==========================

Bounded Context: Device region-monitoring engine (consumed, not owned).

The engine is fire-and-forget: register_region() returns nothing and
failures arrive later as MonitoringFailed events on the EventBus.

SimulatedMonitoringEngine stands in for the device engine during
development and tests. It keeps the same contract:
- maximum_monitored_region_count enforced at registration
- re-registering an identifier replaces the previous region
- update_location() publishes RegionEntered / RegionExited for armed
  regions whose inside/outside state changed
"""

from typing import Dict, FrozenSet, Optional, Protocol

from geotify_region import Coordinate, MonitoringRegion, contains
from geotify_monitor.events import (
    EventBus,
    FailureReason,
    MonitoringFailed,
    RegionEntered,
    RegionExited,
)
from geotify_mqtt.logging import StructuredLogger, LogEvent, create_logger


class MonitoringEngine(Protocol):
    """Protocol for region monitoring engines (interface)."""

    maximum_monitoring_distance: float
    maximum_monitored_region_count: int

    def register_region(self, region: MonitoringRegion) -> None:
        """Submit region; failures delivered asynchronously as events."""
        ...

    def deregister_region(self, identifier: str) -> None:
        ...

    def currently_monitored_regions(self) -> FrozenSet[MonitoringRegion]:
        ...


class SimulatedMonitoringEngine:
    """
    In-process monitoring engine.

    Example:
        >>> bus = EventBus()
        >>> engine = SimulatedMonitoringEngine(bus, maximum_monitored_region_count=2)
        >>> engine.register_region(region)
        >>> engine.update_location(Coordinate(37.33, -122.03))
    """

    def __init__(
        self,
        event_bus: EventBus,
        maximum_monitoring_distance: float = 2000.0,
        maximum_monitored_region_count: int = 20,
        logger: Optional[StructuredLogger] = None,
    ):
        if maximum_monitoring_distance <= 0:
            raise ValueError(
                f"maximum_monitoring_distance must be > 0, got {maximum_monitoring_distance}"
            )
        if maximum_monitored_region_count < 0:
            raise ValueError(
                f"maximum_monitored_region_count must be >= 0, got {maximum_monitored_region_count}"
            )

        self.event_bus = event_bus
        self.maximum_monitoring_distance = maximum_monitoring_distance
        self.maximum_monitored_region_count = maximum_monitored_region_count
        self.logger = logger or create_logger("engine")

        self._regions: Dict[str, MonitoringRegion] = {}
        self._inside: Dict[str, bool] = {}

    def register_region(self, region: MonitoringRegion) -> None:
        replacing = region.identifier in self._regions
        if not replacing and len(self._regions) >= self.maximum_monitored_region_count:
            self.event_bus.publish(MonitoringFailed(
                identifier=region.identifier,
                reason=FailureReason.REGION_LIMIT_EXCEEDED,
                message=(
                    f"Engine already monitors {len(self._regions)} regions "
                    f"(maximum {self.maximum_monitored_region_count})"
                ),
            ))
            return

        self._regions[region.identifier] = region
        self._inside.pop(region.identifier, None)

    def deregister_region(self, identifier: str) -> None:
        self._regions.pop(identifier, None)
        self._inside.pop(identifier, None)

    def currently_monitored_regions(self) -> FrozenSet[MonitoringRegion]:
        return frozenset(self._regions.values())

    def update_location(self, coordinate: Coordinate) -> None:
        """
        Feed a device position and publish boundary crossings.

        The first observation of a region only records the side; a
        transition needs a previous observation.
        """
        for identifier, region in list(self._regions.items()):
            inside = contains(region, coordinate)
            previous = self._inside.get(identifier)
            self._inside[identifier] = inside

            if previous is None or previous == inside:
                continue

            if inside and region.notify_on_entry:
                event = RegionEntered(identifier)
            elif not inside and region.notify_on_exit:
                event = RegionExited(identifier)
            else:
                continue

            self.logger.info(
                event=LogEvent.MONITORING_REGION_TRANSITION,
                message=f"Region {'entered' if inside else 'exited'}",
                metadata={'identifier': identifier}
            )
            self.event_bus.publish(event)
