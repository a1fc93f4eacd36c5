"""
Geotify CLI - Main entry point.

Provides a command-line interface for sending control commands to the
geotify service, and for injecting location-service events while
developing against the simulated engine.
"""

import argparse
import yaml
import sys
from pathlib import Path
from typing import Any, Dict, Tuple

from geotify_monitor import AuthorizationChanged, AuthorizationStatus, FailureReason, MonitoringFailed
from geotify_mqtt.schemas import location_event_to_dict

from .mqtt_client import MQTTCommandClient


def load_yaml_config(config_path: str) -> Dict[str, Any]:
    """
    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If YAML is invalid
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}")

    if not isinstance(config, dict):
        raise ValueError(f"{config_path} must contain a mapping")
    return config


def build_add_command(args: argparse.Namespace) -> Dict[str, Any]:
    """Build an add_geotification command from --config or flags."""
    if args.config:
        command = load_yaml_config(args.config)
    else:
        missing = [name for name in ('lat', 'lon', 'radius') if getattr(args, name) is None]
        if missing:
            raise ValueError(f"Missing required options: {', '.join('--' + m for m in missing)}")
        command = {
            'latitude': args.lat,
            'longitude': args.lon,
            'radius': args.radius,
            'note': args.note,
            'event_type': args.event_type,
        }
        if args.identifier:
            command['identifier'] = args.identifier

    command['command'] = 'add_geotification'
    return command


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Geotify CLI - Send MQTT commands to the geotify service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Add a geotification
  geotify-cli add --lat 37.3318 --lon -122.0312 --radius 150 --note "Office" --event-type on_entry

  # Add from YAML
  geotify-cli add --config config/commands/add_office.yaml

  # Remove by identifier
  geotify-cli remove 3f2b9c...

  # Simple commands
  geotify-cli list
  geotify-cli rearm
  geotify-cli status

  # Simulate location-service events
  geotify-cli authorization when_in_use
  geotify-cli monitoring-failed 3f2b9c... --reason region_limit_exceeded
"""
    )

    parser.add_argument("--service-id", default="napper_01", help="Target service ID (default: napper_01)")
    parser.add_argument("--broker", default="localhost", help="MQTT broker host (default: localhost)")
    parser.add_argument("--port", type=int, default=1883, help="MQTT broker port (default: 1883)")

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    add = subparsers.add_parser('add', help='Add a geotification')
    add.add_argument('--config', help='Path to geotification YAML')
    add.add_argument('--lat', type=float, help='Center latitude')
    add.add_argument('--lon', type=float, help='Center longitude')
    add.add_argument('--radius', type=float, help='Radius in meters (clamped by the device)')
    add.add_argument('--note', default="", help='Label shown with the notification')
    add.add_argument('--event-type', default='on_entry', choices=['on_entry', 'on_exit'])
    add.add_argument('--identifier', help='Explicit identifier (default: generated)')

    remove = subparsers.add_parser('remove', help='Remove a geotification by identifier')
    remove.add_argument('identifier', help='Geotification identifier')

    subparsers.add_parser('list', help='List saved geotifications')
    subparsers.add_parser('rearm', help='Re-arm geotifications that are not monitored')
    subparsers.add_parser('status', help='Registry and monitoring status')

    authorization = subparsers.add_parser('authorization', help='Simulate an authorization change')
    authorization.add_argument('status', choices=[s.value for s in AuthorizationStatus])

    failed = subparsers.add_parser('monitoring-failed', help='Simulate a monitoring failure')
    failed.add_argument('identifier', help='Geotification identifier')
    failed.add_argument('--reason', default=FailureReason.UNKNOWN.value,
                        choices=[r.value for r in FailureReason])

    return parser

def build_message(args: argparse.Namespace) -> Tuple[str, Dict[str, Any]]:
    """Map parsed arguments to (topic, message) for the target service."""
    command_topic = f"geotify/control/{args.service_id}/commands"
    location_topic = f"geotify/data/location/{args.service_id}"

    if args.command == 'add':
        return command_topic, build_add_command(args)
    if args.command == 'remove':
        return command_topic, {'command': 'remove_geotification', 'identifier': args.identifier}
    if args.command == 'list':
        return command_topic, {'command': 'list_geotifications'}
    if args.command in ('rearm', 'status'):
        return command_topic, {'command': args.command}
    if args.command == 'authorization':
        event = AuthorizationChanged(status=AuthorizationStatus(args.status))
        return location_topic, location_event_to_dict(event)
    if args.command == 'monitoring-failed':
        event = MonitoringFailed(identifier=args.identifier, reason=FailureReason(args.reason))
        return location_topic, location_event_to_dict(event)
    raise ValueError(f"Unknown subcommand: {args.command}")


def main():
    parser = build_parser()
    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        topic, message = build_message(args)
        delivered = MQTTCommandClient(broker=args.broker, port=args.port).send(topic, message)
    except (ConnectionError, FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not delivered:
        sys.exit(2)


if __name__ == '__main__':
    main()
