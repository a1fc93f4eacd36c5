"""
Geotification Service - Add/remove orchestration.

This module provides GeotificationService, the caller that composes the
registry and the monitoring coordinator:

    add:    capacity check -> create (clamped) -> registry.add
            -> coordinator.start_monitoring -> registry.persist_all
    remove: coordinator.stop_monitoring -> registry.remove
            -> registry.persist_all
    load:   registry.hydrate (-> coordinator.rearm if configured)

The steps are not transactional. A monitoring advisory never undoes the
registry mutation; the descriptor stays saved and can be re-armed.

Threading:
    Commands arrive on the MQTT network thread and location events on the
    subscriber thread. A single lock serializes entry so the registry and
    coordinator only ever see one actor.
"""

import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from geotify_region import Coordinate, EventType, RegionDescriptor, create_descriptor
from geotify_monitor import (
    AuthorizationChanged,
    CapacityExceededError,
    EventBus,
    MonitoringCoordinator,
    MonitoringOutcome,
    SimulatedMonitoringEngine,
    StaticCapabilityProbe,
)
from geotify_store import HydrationResult, JSONFileStore, KeyValueStore, PersistenceGateway
from geotify_mqtt.logging import StructuredLogger, LogEvent, create_logger

from geotify_registry.config import GeotifyConfig
from geotify_registry.registry import GeotificationRegistry, PresentationListener


@dataclass(frozen=True)
class AddResult:
    """Descriptor as saved, plus how monitoring start went."""
    descriptor: RegionDescriptor
    outcome: MonitoringOutcome


class GeotificationService:
    """
    Orchestrates registry mutations, monitoring and persistence.

    Usage:
        service = GeotificationService.from_config(config, listener=publisher)
        service.load()

        result = service.add_geotification(
            coordinate=Coordinate(37.33, -122.03),
            radius=150,
            note="Wake me up",
            event_type=EventType.ON_ENTRY,
        )
        service.remove_geotification(result.descriptor.identifier)
    """

    def __init__(
        self,
        registry: GeotificationRegistry,
        coordinator: MonitoringCoordinator,
        maximum_radius: float,
        rearm_on_hydrate: bool = False,
        logger: Optional[StructuredLogger] = None,
    ):
        self.registry = registry
        self.coordinator = coordinator
        self.maximum_radius = maximum_radius
        self.rearm_on_hydrate = rearm_on_hydrate
        self.logger = logger or create_logger("service")

        self._lock = threading.RLock()

    @classmethod
    def from_config(
        cls,
        config: GeotifyConfig,
        listener: Optional[PresentationListener] = None,
        event_bus: Optional[EventBus] = None,
        store: Optional[KeyValueStore] = None,
    ) -> "GeotificationService":
        """
        Wire every component from configuration.

        The simulated engine and static probe stand in for the device
        location subsystem.
        """
        event_bus = event_bus or EventBus()

        probe = StaticCapabilityProbe(
            monitoring_supported=config.device.monitoring_supported,
            authorization=config.device.authorization,
        )
        event_bus.subscribe(AuthorizationChanged, lambda e: probe.record_authorization(e.status))

        engine = SimulatedMonitoringEngine(
            event_bus=event_bus,
            maximum_monitoring_distance=config.device.maximum_monitoring_distance,
            maximum_monitored_region_count=config.device.maximum_monitored_region_count,
        )

        gateway = PersistenceGateway(
            store=store if store is not None else JSONFileStore(config.store_path),
            key=config.store_key,
        )
        registry = GeotificationRegistry(gateway, listener=listener, capacity=config.capacity)
        coordinator = MonitoringCoordinator(
            engine=engine,
            probe=probe,
            event_bus=event_bus,
            advisory_sink=listener.on_advisory if listener is not None else None,
        )

        return cls(
            registry=registry,
            coordinator=coordinator,
            maximum_radius=engine.maximum_monitoring_distance,
            rearm_on_hydrate=config.rearm_on_hydrate,
        )

    def add_geotification(
        self,
        coordinate: Coordinate,
        radius: float,
        note: str = "",
        event_type: EventType = EventType.ON_ENTRY,
        identifier: Optional[str] = None,
    ) -> AddResult:
        """
        Save a new geotification and start monitoring it.

        Raises:
            CapacityExceededError: Registry full; nothing was created
            ValueError: Invalid input or duplicate identifier
            StoreWriteError: Persisting failed (descriptor stays in memory
                and monitored; the next successful persist writes it)
        """
        with self._lock:
            if not self.registry.can_add():
                raise CapacityExceededError(self.registry.capacity)

            descriptor = create_descriptor(
                coordinate=coordinate,
                radius=radius,
                note=note,
                event_type=event_type,
                maximum_radius=self.maximum_radius,
                identifier=identifier,
            )
            self.registry.add(descriptor)
            outcome = self.coordinator.start_monitoring(descriptor)
            self.registry.persist_all()

            return AddResult(descriptor=descriptor, outcome=outcome)

    def remove_geotification(self, identifier: str) -> bool:
        """
        Stop monitoring and delete a geotification.

        Unknown identifiers are a no-op for the registry; any stray engine
        registration under that identifier is still stopped.

        Returns:
            True if a saved geotification was removed
        """
        with self._lock:
            descriptor = self.registry.get(identifier)
            if descriptor is None:
                self.coordinator.stop_monitoring_identifier(identifier)
                return False

            self.coordinator.stop_monitoring(descriptor)
            removed = self.registry.remove(descriptor)
            if removed:
                self.registry.persist_all()
            return removed

    def load(self) -> HydrationResult:
        """
        Cold start: rebuild the collection from storage.

        Monitoring is only re-armed when rearm_on_hydrate is set;
        otherwise call rearm_all() explicitly.
        """
        with self._lock:
            result = self.registry.hydrate()
            if self.rearm_on_hydrate:
                self.coordinator.rearm(result.descriptors)
            return result

    def rearm_all(self) -> List[MonitoringOutcome]:
        with self._lock:
            return self.coordinator.rearm(self.registry.descriptors)

    def list_geotifications(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                {**d.to_dict(), 'armed': self.coordinator.is_armed(d.identifier)}
                for d in self.registry.descriptors
            ]

    def status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'count': self.registry.count,
                'capacity': self.registry.capacity,
                'can_add': self.registry.can_add(),
                'armed': self.coordinator.armed_identifiers(),
                'monitoring_supported': self.coordinator.probe.is_monitoring_supported(),
                'authorization': self.coordinator.probe.current_authorization().value,
            }

    def handle_event(self, event: Any) -> None:
        """Publish a location-service event on the coordinator's bus."""
        with self._lock:
            self.logger.debug(
                event=LogEvent.LOCATION_EVENT_RECEIVED,
                message=f"Dispatching {type(event).__name__}",
            )
            self.coordinator.event_bus.publish(event)
