"""
Test control plane, MQTT adapters and CLI (without a real broker)
=================================================================

Commands go through MQTTControlPlane.handle_command()/_on_message(),
location events through LocationEventSubscriber._on_message(), and
registry events through RegistryEventPublisher with a recording client.

Usage:
    pytest test_geotify_control.py -v
"""

import json
from types import SimpleNamespace

import pytest

from geotify_monitor import AdvisoryKind, Advisory, AuthorizationChanged, AuthorizationStatus
from geotify_store import InMemoryStore
from geotify_registry import GeotifyConfig, GeotificationService
from geotify_control import (
    CommandRegistry,
    CommandNotAvailableError,
    InvalidCommandError,
    MQTTControlPlane,
    parse_add_payload,
    register_geotify_commands,
)
from geotify_mqtt import (
    LocationEventSubscriber,
    RegistryEventKind,
    RegistryEventMessage,
    RegistryEventPublisher,
    Timestamp,
    create_logger,
    location_event_to_dict,
    parse_location_event,
)
from geotify_cli.cli import build_add_command, build_message, build_parser
from conftest import RecordingListener, make_descriptor


class RecordingClient:
    """Stands in for paho's Client.publish()."""

    def __init__(self):
        self.published = []

    def publish(self, topic, payload=None, qos=0, retain=False):
        self.published.append({'topic': topic, 'payload': payload, 'qos': qos, 'retain': retain})
        return SimpleNamespace(rc=0)


@pytest.fixture
def service(tmp_path):
    config = GeotifyConfig(service_id="test_01", capacity=2, store_path=tmp_path / "geo.json")
    return GeotificationService.from_config(config, listener=RecordingListener(), store=InMemoryStore())


@pytest.fixture
def plane(service):
    plane = MQTTControlPlane(
        broker_host="localhost",
        broker_port=1883,
        command_topic="geotify/control/test_01/commands",
        status_topic="geotify/control/test_01/status",
        reply_topic="geotify/control/test_01/replies",
        client_id="control_test_01",
    )
    register_geotify_commands(plane.command_registry, service)
    return plane


def command(**fields):
    return json.dumps(fields)


# ─────────────────────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────────────────────

def test_command_registry():
    registry = CommandRegistry()
    registry.register('ping', lambda data: {'pong': True}, "Liveness")

    assert registry.execute('ping', {}) == {'pong': True}
    assert registry.is_available('ping')
    assert registry.get_help() == {'ping': "Liveness"}

    with pytest.raises(ValueError):
        registry.register('ping', lambda data: {}, "again")
    with pytest.raises(CommandNotAvailableError):
        registry.execute('pong', {})


def test_parse_add_payload():
    kwargs = parse_add_payload({'latitude': "37.3", 'longitude': -122, 'radius': 150, 'event_type': "on_exit"})

    assert kwargs['coordinate'].latitude == 37.3
    assert kwargs['radius'] == 150.0
    assert kwargs['event_type'].value == "on_exit"
    assert kwargs['note'] == ""
    assert kwargs['identifier'] is None

    with pytest.raises(InvalidCommandError):
        parse_add_payload({'latitude': 1, 'longitude': 2})
    with pytest.raises(InvalidCommandError):
        parse_add_payload({'latitude': 100, 'longitude': 2, 'radius': 10})
    with pytest.raises(InvalidCommandError):
        parse_add_payload({'latitude': 1, 'longitude': 2, 'radius': 0})
    with pytest.raises(InvalidCommandError):
        parse_add_payload({'latitude': 1, 'longitude': 2, 'radius': 10, 'event_type': "both"})


def test_add_list_remove_through_plane(plane, service):
    print("\n" + "=" * 60)
    print("TEST: Commands through the control plane")
    print("=" * 60)

    reply = plane.handle_command(command(
        command="add_geotification", latitude=37.33, longitude=-122.03,
        radius=150, note="Office", identifier="office", request_id="r1",
    ))
    assert reply['ok'] is True
    assert reply['request_id'] == "r1"
    assert reply['result']['descriptor']['identifier'] == "office"
    assert reply['result']['submitted'] is True
    print(f"✓ add_geotification -> {reply['result']['descriptor']['identifier']}")

    reply = plane.handle_command(command(command="LIST_GEOTIFICATIONS"))
    assert reply['ok'] is True
    assert [g['identifier'] for g in reply['result']['geotifications']] == ["office"]
    assert reply['result']['geotifications'][0]['armed'] is True

    reply = plane.handle_command(command(command="remove_geotification", identifier="office"))
    assert reply['result'] == {'identifier': "office", 'removed': True}
    assert service.registry.count == 0


def test_capacity_reported_as_failed_reply(plane, service):
    for identifier in ("a", "b"):
        plane.handle_command(command(command="add_geotification", latitude=0, longitude=0,
                                     radius=100, identifier=identifier))

    reply = plane.handle_command(command(command="add_geotification", latitude=0, longitude=0, radius=100))

    assert reply['ok'] is False
    assert reply['error_kind'] == "capacity_exceeded"
    assert service.registry.count == 2


def test_invalid_and_unknown_commands(plane):
    reply = plane.handle_command(command(command="add_geotification", latitude=0, longitude=0))
    assert reply['ok'] is False
    assert reply['error_kind'] == "invalid_command"

    reply = plane.handle_command(command(command="remove_geotification"))
    assert reply['error_kind'] == "invalid_command"

    reply = plane.handle_command(command(command="add_geotification", latitude=0, longitude=0,
                                         radius=100, identifier="dup"))
    assert reply['ok'] is True
    reply = plane.handle_command(command(command="add_geotification", latitude=0, longitude=0,
                                         radius=100, identifier="dup"))
    assert reply['ok'] is False
    assert reply['error_kind'] == "invalid_command"

    reply = plane.handle_command(command(command="self_destruct"))
    assert reply['ok'] is False
    assert "not available" in reply['error']

    assert plane.handle_command("{not json")['ok'] is False
    assert plane.handle_command("[1, 2]")['ok'] is False
    assert plane.handle_command(command(note="no command")) is None


def test_rearm_and_status_commands(plane, service):
    service.add_geotification(**parse_add_payload({'latitude': 0, 'longitude': 0, 'radius': 50,
                                                   'identifier': "a"}))
    service.coordinator.stop_monitoring_identifier("a")

    reply = plane.handle_command(command(command="rearm"))
    assert reply['result']['rearmed'] == ["a"]

    reply = plane.handle_command(command(command="status"))
    assert reply['result']['count'] == 1
    assert reply['result']['armed'] == ["a"]


def test_on_message_publishes_reply(plane):
    client = RecordingClient()
    msg = SimpleNamespace(topic=plane.command_topic, payload=command(command="status").encode('utf-8'))

    plane._on_message(client, None, msg)

    assert len(client.published) == 1
    published = client.published[0]
    assert published['topic'] == "geotify/control/test_01/replies"
    assert json.loads(published['payload'])['ok'] is True


# ─────────────────────────────────────────────────────────────────────────────
# Location events (inbound)
# ─────────────────────────────────────────────────────────────────────────────

def test_parse_location_events():
    event = parse_location_event({'type': "authorization_changed", 'status': "denied"})
    assert event == AuthorizationChanged(AuthorizationStatus.DENIED)
    assert parse_location_event(location_event_to_dict(event)) == event

    failed = parse_location_event({'type': "monitoring_failed", 'identifier': "x", 'reason': "weird"})
    assert failed.reason.value == "unknown"

    with pytest.raises(ValueError):
        parse_location_event({'type': "teleported"})
    with pytest.raises(ValueError):
        parse_location_event({'type': "region_entered"})
    with pytest.raises(ValueError):
        parse_location_event(["authorization_changed"])


def test_subscriber_feeds_service(service):
    listener = service.registry.listener
    service.add_geotification(**parse_add_payload({'latitude': 0, 'longitude': 0, 'radius': 50}))

    subscriber = LocationEventSubscriber(
        broker_host="localhost",
        topic="geotify/data/location/test_01",
        on_event=service.handle_event,
        logger=create_logger("test"),
    )

    def deliver(payload):
        subscriber._on_message(None, None, SimpleNamespace(topic=subscriber.topic, payload=payload))

    deliver(json.dumps({'type': "authorization_changed", 'status': "when_in_use"}).encode('utf-8'))
    deliver(b"\xff\xfe")
    deliver(json.dumps({'type': "unknown"}).encode('utf-8'))

    stats = subscriber.get_stats()
    assert stats['events_received'] == 1
    assert stats['events_rejected'] == 2
    assert service.status()['authorization'] == "when_in_use"
    assert [a.kind for a in listener.advisories] == [AdvisoryKind.DEGRADED_PERMISSION]


# ─────────────────────────────────────────────────────────────────────────────
# Registry events (outbound)
# ─────────────────────────────────────────────────────────────────────────────

def test_registry_event_message_invariants():
    with pytest.raises(ValueError):
        RegistryEventMessage(kind=RegistryEventKind.DESCRIPTOR_ADDED, timestamp=Timestamp.now(),
                             service_id="s")
    with pytest.raises(ValueError):
        RegistryEventMessage(kind=RegistryEventKind.COUNT_CHANGED, timestamp=Timestamp.now(),
                             service_id="s", count=-1)

    msg = RegistryEventMessage(kind=RegistryEventKind.COUNT_CHANGED, timestamp=Timestamp.now(),
                               service_id="s", count=3, can_add=True)
    data = msg.to_dict()
    assert 'descriptor' not in data
    assert RegistryEventMessage.from_dict(data) == msg


def test_publisher_as_presentation_listener():
    publisher = RegistryEventPublisher(
        broker_host="localhost",
        topic="geotify/data/registry/test_01",
        service_id="test_01",
        logger=create_logger("test"),
    )

    # Not connected: events are dropped, never raised
    publisher.on_count_changed(1, True)
    assert publisher.get_stats()['message_count'] == 0
    assert publisher.get_stats()['dropped_count'] == 1

    publisher.client = RecordingClient()
    publisher._connected.set()

    descriptor = make_descriptor("x")
    publisher.on_descriptor_added(descriptor)
    publisher.on_count_changed(1, True)
    publisher.on_advisory(Advisory(AdvisoryKind.UNSUPPORTED_DEVICE, "x", "no monitoring"))

    published = publisher.client.published
    kinds = [json.loads(p['payload'])['kind'] for p in published]
    assert kinds == ["descriptor_added", "count_changed", "advisory"]
    assert [p['retain'] for p in published] == [False, True, False]
    assert json.loads(published[0]['payload'])['descriptor'] == descriptor.to_dict()
    assert publisher.get_stats()['message_count'] == 3


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def test_cli_build_add_command(tmp_path):
    parser = build_parser()

    args = parser.parse_args(["add", "--lat", "37.33", "--lon", "-122.03", "--radius", "150",
                              "--note", "Office", "--event-type", "on_exit"])
    assert build_add_command(args) == {
        'command': "add_geotification",
        'latitude': 37.33,
        'longitude': -122.03,
        'radius': 150.0,
        'note': "Office",
        'event_type': "on_exit",
    }

    with pytest.raises(ValueError):
        build_add_command(parser.parse_args(["add", "--lat", "1"]))

    yaml_path = tmp_path / "add.yaml"
    yaml_path.write_text("latitude: 1.0\nlongitude: 2.0\nradius: 300\n")
    from_yaml = build_add_command(parser.parse_args(["add", "--config", str(yaml_path)]))
    assert from_yaml['command'] == "add_geotification"
    assert from_yaml['radius'] == 300


def test_cli_build_message_topics():
    parser = build_parser()

    topic, message = build_message(parser.parse_args(["--service-id", "s1", "remove", "office"]))
    assert topic == "geotify/control/s1/commands"
    assert message == {'command': "remove_geotification", 'identifier': "office"}

    topic, message = build_message(parser.parse_args(["--service-id", "s1", "authorization", "denied"]))
    assert topic == "geotify/data/location/s1"
    assert parse_location_event(message) == AuthorizationChanged(AuthorizationStatus.DENIED)


def test_oversized_number_gets_failed_reply(plane, service):
    client = RecordingClient()
    payload = ('{"command": "add_geotification", "latitude": 1' + "0" * 400
               + ', "longitude": 0, "radius": 100}')
    msg = SimpleNamespace(topic=plane.command_topic, payload=payload.encode('utf-8'))

    plane._on_message(client, None, msg)

    (published,) = client.published
    reply = json.loads(published['payload'])
    assert reply['ok'] is False
    assert reply['error_kind'] == "invalid_command"
    assert service.registry.count == 0


def test_unexpected_handler_error_is_internal_reply(plane):
    def explode(data):
        raise RuntimeError("engine went away")

    plane.command_registry.register('explode', explode, "Always fails")
    client = RecordingClient()
    msg = SimpleNamespace(topic=plane.command_topic, payload=command(command="explode").encode('utf-8'))

    plane._on_message(client, None, msg)

    reply = json.loads(client.published[0]['payload'])
    assert reply == {'command': "explode", 'ok': False, 'error': "engine went away", 'error_kind': "internal"}

    # The plane keeps serving commands afterwards
    assert plane.handle_command(command(command="status"))['ok'] is True


def test_subscriber_survives_failing_handler():
    seen = []

    def handler(event):
        seen.append(event)
        raise RuntimeError("handler bug")

    subscriber = LocationEventSubscriber(
        broker_host="localhost",
        topic="geotify/data/location/test_01",
        on_event=handler,
        logger=create_logger("test"),
    )
    payload = json.dumps({'type': "authorization_changed", 'status': "denied"}).encode('utf-8')

    for _ in range(2):
        subscriber._on_message(None, None, SimpleNamespace(topic=subscriber.topic, payload=payload))

    assert len(seen) == 2
    assert subscriber.get_stats()['events_received'] == 2
