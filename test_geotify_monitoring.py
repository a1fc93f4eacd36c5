"""
Test MonitoringCoordinator + SimulatedMonitoringEngine
======================================================

Capability checks, advisories, idempotent stop, re-arm and boundary
crossings, all in-process.

Usage:
    pytest test_geotify_monitoring.py -v
"""

from geotify_region import Coordinate, EventType
from geotify_monitor import (
    AdvisoryKind,
    AuthorizationChanged,
    AuthorizationStatus,
    EventBus,
    FailureReason,
    MonitoringCoordinator,
    MonitoringFailed,
    RegionEntered,
    RegionExited,
    SimulatedMonitoringEngine,
    StaticCapabilityProbe,
)
from conftest import RecordingListener, make_descriptor


def test_start_monitoring_submits_region(coordinator, engine, listener):
    outcome = coordinator.start_monitoring(make_descriptor("x"))

    assert outcome.submitted is True
    assert outcome.advisories == ()
    assert [r.identifier for r in engine.currently_monitored_regions()] == ["x"]
    assert coordinator.is_armed("x")
    assert listener.advisories == []


def test_stop_monitoring_never_submitted_is_noop(coordinator, engine):
    coordinator.start_monitoring(make_descriptor("armed"))

    assert coordinator.stop_monitoring(make_descriptor("never")) is False
    assert coordinator.armed_identifiers() == ["armed"]

    assert coordinator.stop_monitoring(make_descriptor("armed")) is True
    assert coordinator.stop_monitoring(make_descriptor("armed")) is False
    assert engine.currently_monitored_regions() == frozenset()


def test_unsupported_device_yields_advisory_and_no_registration(engine, event_bus):
    listener = RecordingListener()
    probe = StaticCapabilityProbe(monitoring_supported=False, authorization=AuthorizationStatus.ALWAYS)
    coordinator = MonitoringCoordinator(engine, probe, event_bus, advisory_sink=listener.on_advisory)

    outcome = coordinator.start_monitoring(make_descriptor("x"))

    assert outcome.submitted is False
    assert [a.kind for a in outcome.advisories] == [AdvisoryKind.UNSUPPORTED_DEVICE]
    assert [a.kind for a in listener.advisories] == [AdvisoryKind.UNSUPPORTED_DEVICE]
    assert engine.currently_monitored_regions() == frozenset()


def test_degraded_permission_still_registers(engine, event_bus):
    listener = RecordingListener()
    probe = StaticCapabilityProbe(authorization=AuthorizationStatus.WHEN_IN_USE)
    coordinator = MonitoringCoordinator(engine, probe, event_bus, advisory_sink=listener.on_advisory)

    outcome = coordinator.start_monitoring(make_descriptor("x"))

    assert outcome.submitted is True
    assert [a.kind for a in outcome.advisories] == [AdvisoryKind.DEGRADED_PERMISSION]
    assert outcome.advisories[0].identifier == "x"
    assert coordinator.is_armed("x")
    assert len(listener.advisories) == 1


def test_engine_limit_becomes_advisory(event_bus, probe):
    listener = RecordingListener()
    engine = SimulatedMonitoringEngine(event_bus, maximum_monitored_region_count=1)
    coordinator = MonitoringCoordinator(engine, probe, event_bus, advisory_sink=listener.on_advisory)

    coordinator.start_monitoring(make_descriptor("first"))
    outcome = coordinator.start_monitoring(make_descriptor("second"))

    # Submission is fire-and-forget; the failure arrives as an event
    assert outcome.submitted is True
    assert coordinator.armed_identifiers() == ["first"]
    assert len(listener.advisories) == 1
    assert listener.advisories[0].kind is AdvisoryKind.MONITORING_LIMIT_EXCEEDED
    assert listener.advisories[0].identifier == "second"


def test_engine_replaces_same_identifier_at_limit(event_bus):
    failures = []
    event_bus.subscribe(MonitoringFailed, failures.append)
    engine = SimulatedMonitoringEngine(event_bus, maximum_monitored_region_count=1)
    probe = StaticCapabilityProbe(authorization=AuthorizationStatus.ALWAYS)
    coordinator = MonitoringCoordinator(engine, probe, event_bus)

    coordinator.start_monitoring(make_descriptor("x", radius=100.0))
    coordinator.start_monitoring(make_descriptor("x", radius=300.0))

    assert failures == []
    (region,) = engine.currently_monitored_regions()
    assert region.radius == 300.0


def test_other_monitoring_failures(coordinator, event_bus, listener):
    event_bus.publish(MonitoringFailed("x", FailureReason.REGION_MONITORING_DENIED, "denied by OS"))

    assert listener.advisories[-1].kind is AdvisoryKind.MONITORING_FAILED
    assert listener.advisories[-1].message == "denied by OS"


def test_authorization_downgrade_with_armed_regions(coordinator, event_bus, listener):
    event_bus.publish(AuthorizationChanged(AuthorizationStatus.DENIED))
    assert listener.advisories == []  # nothing armed yet

    coordinator.start_monitoring(make_descriptor("x"))
    event_bus.publish(AuthorizationChanged(AuthorizationStatus.WHEN_IN_USE))

    assert len(listener.advisories) == 1
    assert listener.advisories[0].kind is AdvisoryKind.DEGRADED_PERMISSION
    assert listener.advisories[0].identifier is None

    event_bus.publish(AuthorizationChanged(AuthorizationStatus.ALWAYS))
    assert len(listener.advisories) == 1


def test_rearm_only_unarmed(coordinator):
    a, b = make_descriptor("a"), make_descriptor("b")
    coordinator.start_monitoring(a)

    outcomes = coordinator.rearm([a, b])

    assert [o.identifier for o in outcomes] == ["b"]
    assert coordinator.armed_identifiers() == ["a", "b"]
    assert coordinator.rearm([a, b]) == []


def test_close_detaches_from_bus(coordinator, event_bus, listener):
    assert event_bus.subscriber_count(MonitoringFailed) == 1
    coordinator.close()
    assert event_bus.subscriber_count(MonitoringFailed) == 0

    event_bus.publish(MonitoringFailed("x", FailureReason.UNKNOWN))
    assert listener.advisories == []


def test_region_transitions():
    print("\n" + "=" * 60)
    print("TEST: Simulated boundary crossings")
    print("=" * 60)

    bus = EventBus()
    received = []
    bus.subscribe(RegionEntered, received.append)
    bus.subscribe(RegionExited, received.append)

    engine = SimulatedMonitoringEngine(bus)
    probe = StaticCapabilityProbe(authorization=AuthorizationStatus.ALWAYS)
    coordinator = MonitoringCoordinator(engine, probe, bus)
    coordinator.start_monitoring(make_descriptor("entry", latitude=0.0, longitude=0.0, radius=1000.0))
    coordinator.start_monitoring(make_descriptor("exit", latitude=0.0, longitude=0.0, radius=1000.0,
                                                 event_type=EventType.ON_EXIT))

    far = Coordinate(0.1, 0.0)
    center = Coordinate(0.0, 0.0)

    engine.update_location(far)       # first observation, no transition
    assert received == []

    engine.update_location(center)
    assert received == [RegionEntered("entry")]

    engine.update_location(center)   # no change
    engine.update_location(far)
    assert received == [RegionEntered("entry"), RegionExited("exit")]
    print(f"✓ Received {len(received)} transitions")


def test_event_bus_dispatch_order_and_unsubscribe():
    bus = EventBus()
    calls = []

    def first(event):
        calls.append(("first", event.identifier))

    def second(event):
        calls.append(("second", event.identifier))

    bus.subscribe(RegionEntered, first)
    bus.subscribe(RegionEntered, second)
    bus.publish(RegionEntered("x"))
    bus.unsubscribe(RegionEntered, first)
    bus.unsubscribe(RegionEntered, first)  # unknown handler ignored
    bus.publish(RegionEntered("y"))
    bus.publish(RegionExited("z"))         # no subscribers

    assert calls == [("first", "x"), ("second", "x"), ("second", "y")]
