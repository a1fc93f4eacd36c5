"""
Test GeotificationRegistry
==========================

Capacity cap, idempotent removal, presentation callbacks and the
persist/hydrate cycle, all against an InMemoryStore.

Usage:
    pytest test_geotify_registry.py -v
"""

import pytest

from geotify_monitor import CapacityExceededError
from geotify_store import InMemoryStore, PersistenceGateway
from geotify_registry import GeotificationRegistry, MAX_GEOTIFICATIONS
from conftest import RecordingListener, make_descriptor


def test_persist_then_hydrate_into_fresh_registry(registry, gateway):
    print("\n" + "=" * 60)
    print("TEST: Persist / hydrate round trip")
    print("=" * 60)

    originals = [make_descriptor(f"geo-{i}", latitude=i, radius=100.0 + i) for i in range(MAX_GEOTIFICATIONS)]
    for d in originals:
        registry.add(d)

    written = registry.persist_all()
    assert written == MAX_GEOTIFICATIONS
    print(f"✓ Persisted {written} geotifications")

    fresh = GeotificationRegistry(gateway)
    result = fresh.hydrate()

    assert result.loaded_count == MAX_GEOTIFICATIONS
    assert result.skipped_count == 0
    assert set(fresh.descriptors) == set(originals)
    # Order survives and fields come back intact
    assert [d.identifier for d in fresh] == [d.identifier for d in originals]
    assert fresh.get("geo-7").radius == 107.0
    assert fresh.get("geo-7").coordinate.latitude == 7
    print("✓ Fresh registry holds the same set")


def test_remove_twice_is_noop(registry, listener):
    d = make_descriptor("x")
    registry.add(d)

    assert registry.remove(d) is True
    events_after_first = (len(listener.removed), len(listener.counts))

    assert registry.remove(d) is False
    assert registry.count == 0
    assert (len(listener.removed), len(listener.counts)) == events_after_first


def test_remove_matches_by_identifier(registry):
    registry.add(make_descriptor("x", latitude=1.0))
    assert registry.remove(make_descriptor("x", latitude=50.0)) is True
    assert "x" not in registry


def test_capacity_cap(registry, listener):
    for i in range(MAX_GEOTIFICATIONS):
        registry.add(make_descriptor(f"geo-{i}"))

    assert registry.count == MAX_GEOTIFICATIONS
    assert registry.can_add() is False
    assert listener.counts[-1] == (MAX_GEOTIFICATIONS, False)

    with pytest.raises(CapacityExceededError) as exc_info:
        registry.add(make_descriptor("one-too-many"))

    assert exc_info.value.capacity == MAX_GEOTIFICATIONS
    assert registry.count == MAX_GEOTIFICATIONS
    assert "one-too-many" not in registry
    assert len(listener.added) == MAX_GEOTIFICATIONS
    print(f"✓ 21st add rejected: {exc_info.value}")


def test_can_add_flips_back_after_remove(gateway, listener):
    registry = GeotificationRegistry(gateway, listener=listener, capacity=2)
    a, b = make_descriptor("a"), make_descriptor("b")
    registry.add(a)
    registry.add(b)
    assert registry.can_add() is False

    registry.remove(a)
    assert registry.can_add() is True
    assert listener.counts == [(1, True), (2, False), (1, True)]


def test_capacity_bounds():
    gateway = PersistenceGateway(InMemoryStore())
    with pytest.raises(ValueError):
        GeotificationRegistry(gateway, capacity=0)
    with pytest.raises(ValueError):
        GeotificationRegistry(gateway, capacity=MAX_GEOTIFICATIONS + 1)


def test_duplicate_identifier_rejected(registry):
    registry.add(make_descriptor("x"))
    with pytest.raises(ValueError):
        registry.add(make_descriptor("x", latitude=3.0))
    assert registry.count == 1


def test_listener_receives_mutations(registry, listener):
    d = make_descriptor("x")
    registry.add(d)
    registry.remove(d)

    assert listener.added == [d]
    assert listener.removed == [d]
    assert listener.counts == [(1, True), (0, True)]


def test_queries(registry):
    a, b = make_descriptor("a"), make_descriptor("b")
    registry.add(a)
    registry.add(b)

    assert len(registry) == 2
    assert registry.descriptors == (a, b)
    assert a in registry
    assert "b" in registry
    assert "c" not in registry
    assert registry.get("c") is None


def test_hydrate_replaces_current_collection(registry, gateway, listener):
    registry.add(make_descriptor("persisted"))
    registry.persist_all()
    registry.add(make_descriptor("unsaved"))

    result = registry.hydrate()

    assert [d.identifier for d in result.descriptors] == ["persisted"]
    assert [d.identifier for d in registry] == ["persisted"]
    assert any(d.identifier == "unsaved" for d in listener.removed)


def test_hydrate_empty_store(registry):
    result = registry.hydrate()
    assert result.loaded_count == 0
    assert registry.count == 0


def test_hydrate_respects_capacity_and_duplicates(store):
    gateway = PersistenceGateway(store)
    gateway.save_all([make_descriptor("a"), make_descriptor("a"), make_descriptor("b"), make_descriptor("c")])

    small = GeotificationRegistry(gateway, listener=RecordingListener(), capacity=2)
    result = small.hydrate()

    assert [d.identifier for d in small] == ["a", "b"]
    assert result.loaded_count == 2
