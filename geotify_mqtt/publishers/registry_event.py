"""
Registry Event Publisher
========================

Bounded Context: Presentation boundary (produced)

Implements the PresentationListener protocol by turning each registry
callback into a RegistryEventMessage on the registry event topic.

Message Flow:
    GeotificationRegistry → RegistryEventPublisher → MQTT Broker → UI

Example:
    >>> logger = create_logger("publisher")
    >>> publisher = RegistryEventPublisher(
    ...     broker_host="localhost",
    ...     topic="geotify/data/registry/napper_01",
    ...     service_id="napper_01",
    ...     logger=logger
    ... )
    >>> publisher.connect()
    >>> service = GeotificationService.from_config(config, listener=publisher)
"""

from typing import Dict, Any, Optional

from .base import BasePublisher
from ..schemas import RegistryEventKind, RegistryEventMessage, Timestamp
from ..logging import StructuredLogger


class RegistryEventPublisher(BasePublisher):
    """
    Publisher for presentation events.

    The count_changed message is retained so a UI that connects later
    still learns the current count and whether adding is allowed.
    """

    def __init__(
        self,
        broker_host: str,
        topic: str,
        service_id: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "geotify_registry_publisher",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1
    ):
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            topic=topic,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos
        )
        self.service_id = service_id

    def format_message(self, message: RegistryEventMessage) -> Dict[str, Any]:
        return message.to_dict()

    def publish_event(self, message: RegistryEventMessage) -> bool:
        retain = message.kind == RegistryEventKind.COUNT_CHANGED
        return self.publish(self.format_message(message), retain=retain)

    def _message(self, kind: RegistryEventKind, **fields) -> RegistryEventMessage:
        return RegistryEventMessage(
            kind=kind,
            timestamp=Timestamp.now(),
            service_id=self.service_id,
            **fields
        )

    # ===== PresentationListener =====

    def on_descriptor_added(self, descriptor) -> None:
        self.publish_event(self._message(
            RegistryEventKind.DESCRIPTOR_ADDED, descriptor=descriptor.to_dict()
        ))

    def on_descriptor_removed(self, descriptor) -> None:
        self.publish_event(self._message(
            RegistryEventKind.DESCRIPTOR_REMOVED, descriptor=descriptor.to_dict()
        ))

    def on_count_changed(self, count: int, can_add: bool) -> None:
        self.publish_event(self._message(
            RegistryEventKind.COUNT_CHANGED, count=count, can_add=can_add
        ))

    def on_advisory(self, advisory) -> None:
        self.publish_event(self._message(
            RegistryEventKind.ADVISORY, advisory=advisory.to_dict()
        ))
