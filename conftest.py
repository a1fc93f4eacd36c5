"""
Shared fixtures for the geotify tests.

Everything runs in-process: InMemoryStore, SimulatedMonitoringEngine and
StaticCapabilityProbe. No MQTT broker required.
"""

import pytest

from geotify_region import Coordinate, EventType, RegionDescriptor
from geotify_monitor import (
    AuthorizationStatus,
    EventBus,
    MonitoringCoordinator,
    SimulatedMonitoringEngine,
    StaticCapabilityProbe,
)
from geotify_store import InMemoryStore, PersistenceGateway
from geotify_registry import GeotificationRegistry


class RecordingListener:
    """PresentationListener that keeps every callback it receives."""

    def __init__(self):
        self.added = []
        self.removed = []
        self.counts = []
        self.advisories = []

    def on_descriptor_added(self, descriptor):
        self.added.append(descriptor)

    def on_descriptor_removed(self, descriptor):
        self.removed.append(descriptor)

    def on_count_changed(self, count, can_add):
        self.counts.append((count, can_add))

    def on_advisory(self, advisory):
        self.advisories.append(advisory)


def make_descriptor(identifier, latitude=37.3318, longitude=-122.0312, radius=150.0,
                    event_type=EventType.ON_ENTRY, note=""):
    return RegionDescriptor(
        identifier=identifier,
        coordinate=Coordinate(latitude, longitude),
        radius=radius,
        note=note,
        event_type=event_type,
    )


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def gateway(store):
    return PersistenceGateway(store)


@pytest.fixture
def registry(gateway, listener):
    return GeotificationRegistry(gateway, listener=listener)


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def engine(event_bus):
    return SimulatedMonitoringEngine(event_bus)


@pytest.fixture
def probe():
    return StaticCapabilityProbe(authorization=AuthorizationStatus.ALWAYS)


@pytest.fixture
def coordinator(engine, probe, event_bus, listener):
    return MonitoringCoordinator(engine, probe, event_bus, advisory_sink=listener.on_advisory)
