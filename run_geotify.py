#!/usr/bin/env python3
"""
Geotify Service - Entry Point
==============================

Starts the geotify service:
- saved geotifications are hydrated from the JSON store
- add/remove/list/rearm/status commands arrive on the MQTT control plane
- location-service events (authorization, failures, transitions) are fed
  from MQTT into the monitoring coordinator
- registry events (added, removed, count, advisories) go out over MQTT

Usage:
    uv run python run_geotify.py --config config/geotify.example.yaml

Components:
    GeotificationService     registry + monitoring orchestrator (geotify_registry)
    MQTTControlPlane         command handler (geotify_control)
    RegistryEventPublisher   presentation listener over MQTT (geotify_mqtt)
    LocationEventSubscriber  location events into the service (geotify_mqtt)

Startup order: publisher, hydrate, control plane, subscriber. The publisher
connects first so hydrate-time count events reach the retained topic.
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event
from typing import Callable, List, Optional, Tuple

from geotify_registry import GeotifyConfig, GeotificationService
from geotify_control import MQTTControlPlane, register_geotify_commands
from geotify_mqtt import LocationEventSubscriber, RegistryEventPublisher, create_logger

DEFAULT_LOG_FILE = Path('logs/geotify.log')


def setup_logging(log_file: Optional[Path] = None) -> logging.Logger:
    """Console logging, plus a file handler when log_file is given."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )
    return logging.getLogger('geotify.app')


class GeotifyApp:
    """
    Wires the service to MQTT and owns its lifecycle.

    setup() builds every component from the YAML config; run() blocks until
    SIGINT/SIGTERM and then tears the components down in reverse order.
    """

    def __init__(self, config_path: Path, log_file: Optional[Path] = None):
        self.config_path = config_path
        self.logger = setup_logging(log_file)

        self.config: Optional[GeotifyConfig] = None
        self.publisher: Optional[RegistryEventPublisher] = None
        self.service: Optional[GeotificationService] = None
        self.control_plane: Optional[MQTTControlPlane] = None
        self.subscriber: Optional[LocationEventSubscriber] = None

        self._stop_event = Event()
        self._stopped = False

    def _banner(self, title: str) -> None:
        self.logger.info("-" * 72)
        self.logger.info(title)
        self.logger.info("-" * 72)

    def setup(self):
        self._banner("📍 Geotify service starting")

        self.config = GeotifyConfig.from_yaml(self.config_path)
        self.logger.info(f"📄 Config {self.config_path} (service_id={self.config.service_id})")

        mqtt = self.config.mqtt_config
        service_id = self.config.service_id
        auth = {'username': mqtt.username, 'password': mqtt.password}

        # Publisher doubles as the presentation listener
        self.publisher = RegistryEventPublisher(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            topic=self.config.topic(mqtt.registry_event_topic),
            service_id=service_id,
            logger=create_logger(component="mqtt_publisher", service_id=service_id),
            client_id=f"geotify_registry_{service_id}",
            qos=mqtt.qos,
            **auth,
        )
        self.service = GeotificationService.from_config(self.config, listener=self.publisher)

        self.control_plane = MQTTControlPlane(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            command_topic=self.config.topic(mqtt.command_topic),
            status_topic=self.config.topic(mqtt.status_topic),
            reply_topic=self.config.topic(mqtt.reply_topic),
            client_id=f"geotify_control_{service_id}",
            **auth,
        )
        register_geotify_commands(self.control_plane.command_registry, self.service)

        self.subscriber = LocationEventSubscriber(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            topic=self.config.topic(mqtt.location_event_topic),
            on_event=self.service.handle_event,
            logger=create_logger(component="mqtt_subscriber", service_id=service_id),
            client_id=f"geotify_location_{service_id}",
            qos=mqtt.qos,
            **auth,
        )

        self.logger.info(f"   registry events -> {self.publisher.topic}")
        self.logger.info(f"   commands        <- {self.control_plane.command_topic}")
        self.logger.info(f"   location events <- {self.subscriber.topic}")

    def _start(self) -> None:
        if not self.publisher.connect():
            self.logger.warning("⚠️  Registry publisher offline, registry events will be dropped")

        result = self.service.load()
        self.logger.info(
            f"📦 Hydrated {result.loaded_count} geotifications ({result.skipped_count} skipped)"
        )

        if not self.control_plane.connect():
            raise RuntimeError(f"Control plane could not reach broker {self.control_plane.broker_host}")
        if not self.subscriber.connect():
            self.logger.warning("⚠️  Location subscriber offline, retrying in background")

        self.control_plane.publish_status("running", self.service.status())

    def run(self):
        """Blocks until a stop signal arrives."""
        if self.service is None:
            raise RuntimeError("GeotifyApp.setup() must be called before run()")

        signal.signal(signal.SIGTERM, self._on_signal)
        signal.signal(signal.SIGINT, self._on_signal)

        try:
            self._start()
            self._banner("✅ Geotify service running (Ctrl+C to stop)")
            self._stop_event.wait()
        except KeyboardInterrupt:
            self.logger.info("⚠️  Interrupted")
        except Exception as e:
            self.logger.error(f"❌ Geotify service failed: {e}", exc_info=True)
            self.shutdown()
            sys.exit(1)

        self.shutdown()

    def _teardown_steps(self) -> List[Tuple[str, Callable[[], None]]]:
        steps = []
        if self.subscriber:
            steps.append(("location subscriber", self.subscriber.stop))
        if self.control_plane:
            steps.append(("control plane", self.control_plane.disconnect))
        if self.service:
            steps.append(("monitoring", self.service.coordinator.close))
        if self.publisher:
            steps.append(("registry publisher", self.publisher.disconnect))
        return steps

    def shutdown(self):
        """
        Stops inbound traffic first (location events, commands), then
        releases monitoring subscriptions and finally the publisher so the
        last registry events still go out. Idempotent.
        """
        if self._stopped:
            return
        self._stopped = True

        self._banner("🛑 Geotify service stopping")
        for name, step in self._teardown_steps():
            step()
            self.logger.info(f"   {name} stopped")
        self.logger.info("✅ Geotify service stopped")

    def _on_signal(self, signum, frame):
        self.logger.info(f"⚠️  {signal.Signals(signum).name} received")
        self._stop_event.set()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Geotify Service - Region-monitoring registry over MQTT',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  uv run python run_geotify.py --config config/geotify.example.yaml
  uv run python run_geotify.py --config config/geotify.example.yaml --no-log-file
        """
    )
    parser.add_argument('--config', type=Path, required=True,
                        help='Geotify configuration YAML')
    parser.add_argument('--log-file', type=Path, default=DEFAULT_LOG_FILE,
                        help=f'Log file (default: {DEFAULT_LOG_FILE})')
    parser.add_argument('--no-log-file', action='store_true',
                        help='Log to console only')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    if not args.config.exists():
        print(f"❌ Config not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    app = GeotifyApp(config_path=args.config, log_file=None if args.no_log_file else args.log_file)
    try:
        app.setup()
        app.run()
    except Exception as e:
        print(f"❌ Geotify failed to start: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
