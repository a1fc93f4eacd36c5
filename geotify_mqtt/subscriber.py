"""
Location Event Subscriber
=========================

Bounded Context: Location-service event consumption

Receives authorization changes, monitoring failures and region
transitions published by the location service, deserializes them to
typed events and hands them to a callback (GeotificationService.handle_event
in the running service).

Message Flow:
    MQTT JSON → parse_location_event() → typed event → on_event(event)

Undecodable or invalid messages are logged, counted as rejected and
dropped; one bad message never stops the subscription.

Example:
    >>> subscriber = LocationEventSubscriber(
    ...     broker_host="localhost",
    ...     topic="geotify/data/location/napper_01",
    ...     on_event=service.handle_event,
    ...     logger=create_logger("subscriber")
    ... )
    >>> subscriber.connect()
    >>> # ...
    >>> subscriber.stop()
"""

import json
import threading
from typing import Any, Callable, Dict, Optional

import paho.mqtt.client as mqtt

from .connection import BrokerConnection
from .schemas import LocationEvent, parse_location_event
from .logging import StructuredLogger, LogEvent


class LocationEventSubscriber(BrokerConnection):
    """
    MQTT subscriber for location-service events.

    Thread Safety:
        Callbacks run in the paho-mqtt network thread. The service callback
        serializes entry with its own lock.
    """

    def __init__(
        self,
        broker_host: str,
        topic: str,
        on_event: Callable[[LocationEvent], None],
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "geotify_location_subscriber",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1
    ):
        """
        Args:
            broker_host: MQTT broker hostname
            topic: Location event topic
            on_event: Callback for typed events
            logger: Structured logger instance
            broker_port: MQTT broker port (default: 1883)
            client_id: MQTT client ID
            username: MQTT auth username (optional)
            password: MQTT auth password (optional)
            qos: Subscription QoS (default: 1)
        """
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
        )
        self.topic = topic
        self.qos = qos
        self.on_event = on_event

        self.client.on_message = self._on_message

        self._stats_lock = threading.Lock()
        self._received = 0
        self._rejected = 0

    def _on_connected(self, client: mqtt.Client) -> None:
        client.subscribe(self.topic, qos=self.qos)

    def _reject(self, event: LogEvent, message: str, error: Exception, metadata: Dict[str, Any]) -> None:
        with self._stats_lock:
            self._rejected += 1
        self.logger.error(event=event, message=message, exc_info=error, metadata=metadata)

    def _on_message(self, client, userdata, msg: mqtt.MQTTMessage) -> None:
        try:
            data = json.loads(msg.payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            self._reject(LogEvent.DESERIALIZATION_ERROR, "Failed to decode location event", e,
                         {'topic': msg.topic})
            return

        self._handle_location_event(data)

    def _handle_location_event(self, data: Any) -> None:
        try:
            event = parse_location_event(data)
        except ValueError as e:
            self._reject(LogEvent.SCHEMA_VALIDATION_ERROR, "Location event failed schema validation", e,
                         {'data': data})
            return

        with self._stats_lock:
            self._received += 1

        self.logger.info(
            event=LogEvent.LOCATION_EVENT_RECEIVED,
            message=f"Received {type(event).__name__}",
            metadata={'topic': self.topic}
        )
        try:
            self.on_event(event)
        except Exception as e:
            self.logger.error(
                event=LogEvent.LOCATION_EVENT_HANDLER_ERROR,
                message=f"Handler failed for {type(event).__name__}",
                exc_info=e,
                metadata={'topic': self.topic}
            )

    def stop(self) -> None:
        self.disconnect()

    def get_stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            return {
                'events_received': self._received,
                'events_rejected': self._rejected,
                'connected': self.is_connected(),
                'topic': self.topic,
            }
