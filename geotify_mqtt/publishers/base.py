"""
Base MQTT Publisher
==================

Bounded Context: MQTT Infrastructure

BasePublisher (abstract)
    ↓
RegistryEventPublisher (concrete)

A publisher owns one topic. Subclasses build the payload in
format_message(); publish() serializes and sends it. While the broker is
unreachable messages are dropped and counted, never queued: presentation
events describe the current registry, and the retained count_changed
message resynchronizes late subscribers.
"""

import json
import threading
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional

import paho.mqtt.client as mqtt

from ..connection import BrokerConnection
from ..logging import StructuredLogger, LogEvent


class BasePublisher(BrokerConnection, ABC):
    """
    Abstract publisher bound to a single topic.

    Attributes:
        topic: MQTT topic to publish to
        qos: Quality of Service (1 = at-least-once; registry events are low
            volume and must not be lost once accepted by the client)
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        topic: str,
        client_id: str,
        logger: StructuredLogger,
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1
    ):
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

        self._stats_lock = threading.Lock()
        self._published = 0
        self._dropped = 0

    @abstractmethod
    def format_message(self, *args, **kwargs) -> Dict[str, Any]:
        """Build the JSON-compatible payload."""

    def _count(self, published: bool) -> None:
        with self._stats_lock:
            if published:
                self._published += 1
            else:
                self._dropped += 1

    def publish(self, message_data: Dict[str, Any], retain: bool = False) -> bool:
        """
        Returns:
            True if the client accepted the message, False if it was dropped
        """
        if not self.is_connected():
            self._count(False)
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message="Not connected to broker, message dropped",
                metadata={'topic': self.topic}
            )
            return False

        try:
            payload = json.dumps(message_data)
        except (TypeError, ValueError) as e:
            self._count(False)
            self.logger.error(
                event=LogEvent.SERIALIZATION_ERROR,
                message="Message is not JSON serializable",
                exc_info=e,
                metadata={'topic': self.topic}
            )
            return False

        info = self.client.publish(topic=self.topic, payload=payload, qos=self.qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            self._count(False)
            self.logger.error(
                event=LogEvent.MQTT_PUBLISH_ERROR,
                message=f"Client rejected publish (rc={info.rc})",
                metadata={'topic': self.topic}
            )
            return False

        self._count(True)
        self.logger.debug(
            event=LogEvent.MQTT_PUBLISH_SUCCESS,
            message="Published message",
            metadata={'topic': self.topic, 'retain': retain, 'qos': self.qos}
        )
        return True

    def get_stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            return {
                'message_count': self._published,
                'dropped_count': self._dropped,
                'connected': self.is_connected(),
                'topic': self.topic,
                'broker': self.broker,
            }
