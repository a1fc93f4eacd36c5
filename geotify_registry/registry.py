"""
Geotification Registry - Canonical in-memory collection.

The registry owns the ordered collection of RegionDescriptors, enforces
the capacity cap before insertion, and mirrors the full collection to the
PersistenceGateway on persist_all().

It never calls the MonitoringCoordinator. Recording the user's intent
(add/remove) and arming the hardware (start/stop monitoring) are separate
steps composed by GeotificationService, so a monitoring failure can never
lose a saved geotification.

Presentation:
    Mutations are announced through a PresentationListener
    (on_descriptor_added / on_descriptor_removed / on_count_changed).
    The map, form and count label subscribe there.
"""

from typing import Iterator, List, Optional, Protocol, Tuple

from geotify_region import RegionDescriptor
from geotify_monitor import Advisory, CapacityExceededError
from geotify_store import PersistenceGateway, HydrationResult
from geotify_mqtt.logging import StructuredLogger, LogEvent, create_logger

from geotify_registry.config import MAX_GEOTIFICATIONS


class PresentationListener(Protocol):
    """Events produced for the (external) presentation layer."""

    def on_descriptor_added(self, descriptor: RegionDescriptor) -> None:
        ...

    def on_descriptor_removed(self, descriptor: RegionDescriptor) -> None:
        ...

    def on_count_changed(self, count: int, can_add: bool) -> None:
        ...

    def on_advisory(self, advisory: Advisory) -> None:
        ...


class NullPresentationListener:
    """Listener that ignores every event."""

    def on_descriptor_added(self, descriptor: RegionDescriptor) -> None:
        pass

    def on_descriptor_removed(self, descriptor: RegionDescriptor) -> None:
        pass

    def on_count_changed(self, count: int, can_add: bool) -> None:
        pass

    def on_advisory(self, advisory: Advisory) -> None:
        pass


class GeotificationRegistry:
    """
    Bounded, insertion-ordered collection of geotifications.

    Usage:
        registry = GeotificationRegistry(PersistenceGateway(InMemoryStore()))
        registry.add(descriptor)
        registry.persist_all()

        # Cold start
        fresh = GeotificationRegistry(same_gateway)
        result = fresh.hydrate()
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        listener: Optional[PresentationListener] = None,
        capacity: int = MAX_GEOTIFICATIONS,
        logger: Optional[StructuredLogger] = None,
    ):
        if not 1 <= capacity <= MAX_GEOTIFICATIONS:
            raise ValueError(f"capacity must be in [1, {MAX_GEOTIFICATIONS}], got {capacity}")

        self.gateway = gateway
        self.listener = listener or NullPresentationListener()
        self.capacity = capacity
        self.logger = logger or create_logger("registry")

        self._descriptors: List[RegionDescriptor] = []

    # ===== Queries =====

    @property
    def count(self) -> int:
        return len(self._descriptors)

    @property
    def descriptors(self) -> Tuple[RegionDescriptor, ...]:
        """Snapshot in insertion order."""
        return tuple(self._descriptors)

    def can_add(self) -> bool:
        """False once at capacity; upstream add entry points disable on this."""
        return self.count < self.capacity

    def get(self, identifier: str) -> Optional[RegionDescriptor]:
        for descriptor in self._descriptors:
            if descriptor.identifier == identifier:
                return descriptor
        return None

    def __contains__(self, item) -> bool:
        identifier = item.identifier if isinstance(item, RegionDescriptor) else item
        return self.get(identifier) is not None

    def __iter__(self) -> Iterator[RegionDescriptor]:
        return iter(self.descriptors)

    def __len__(self) -> int:
        return self.count

    # ===== Mutations =====

    def add(self, descriptor: RegionDescriptor) -> None:
        """
        Append descriptor to the collection.

        Raises:
            CapacityExceededError: If the registry already holds `capacity`
                descriptors (collection unchanged)
            ValueError: If a descriptor with the same identifier exists
        """
        if not self.can_add():
            self.logger.warning(
                event=LogEvent.REGISTRY_CAPACITY_REJECTED,
                message="Registry full, add rejected",
                metadata={'identifier': descriptor.identifier, 'capacity': self.capacity}
            )
            raise CapacityExceededError(self.capacity)

        if descriptor in self:
            raise ValueError(f"Geotification '{descriptor.identifier}' already exists")

        self._descriptors.append(descriptor)

        self.logger.info(
            event=LogEvent.REGISTRY_DESCRIPTOR_ADDED,
            message="Geotification added",
            metadata={'identifier': descriptor.identifier, 'count': self.count}
        )
        self.listener.on_descriptor_added(descriptor)
        self.listener.on_count_changed(self.count, self.can_add())

    def remove(self, descriptor: RegionDescriptor) -> bool:
        """
        Remove the entry equal (by identifier) to descriptor.

        Returns:
            True if removed, False if it was not present (no-op)
        """
        for index, existing in enumerate(self._descriptors):
            if existing == descriptor:
                del self._descriptors[index]
                break
        else:
            return False

        self.logger.info(
            event=LogEvent.REGISTRY_DESCRIPTOR_REMOVED,
            message="Geotification removed",
            metadata={'identifier': existing.identifier, 'count': self.count}
        )
        self.listener.on_descriptor_removed(existing)
        self.listener.on_count_changed(self.count, self.can_add())
        return True

    # ===== Persistence =====

    def persist_all(self) -> int:
        """
        Write the whole collection through the gateway.

        Raises:
            StoreWriteError: If the store rejected the write (previous
                snapshot kept)
        """
        written = self.gateway.save_all(self._descriptors)
        self.logger.debug(
            event=LogEvent.REGISTRY_PERSISTED,
            message="Collection persisted",
            metadata={'count': written}
        )
        return written

    def hydrate(self) -> HydrationResult:
        """
        Replace the collection with the persisted one.

        Unreadable records are skipped and reported in the result. Records
        beyond capacity or with a duplicate identifier are skipped too.
        Monitoring is NOT re-armed here.
        """
        for descriptor in list(self._descriptors):
            self.remove(descriptor)

        result = self.gateway.load_all()
        loaded: List[RegionDescriptor] = []
        for descriptor in result.descriptors:
            try:
                self.add(descriptor)
            except (CapacityExceededError, ValueError) as e:
                self.logger.warning(
                    event=LogEvent.REGISTRY_HYDRATED,
                    message=f"Persisted geotification not restored: {e}",
                    metadata={'identifier': descriptor.identifier}
                )
                continue
            loaded.append(descriptor)

        self.logger.info(
            event=LogEvent.REGISTRY_HYDRATED,
            message=f"Hydrated {len(loaded)} geotifications",
            metadata={'loaded': len(loaded), 'skipped': result.skipped_count}
        )
        return HydrationResult(descriptors=tuple(loaded), skipped=result.skipped)
