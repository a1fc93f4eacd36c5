"""
Geotify MQTT Communication Package
==================================

Bounded Context: Messaging and observability for the geotify service

Architecture:
- logging/: Structured JSON logging used by every geotify package
- schemas/: Immutable message structures (registry events, location events)
- publishers/: RegistryEventPublisher (presentation boundary)
- subscriber.py: LocationEventSubscriber (location-service events)

Public API
----------
Logging:
    LogEvent, StructuredLogger, create_logger

Schemas:
    Timestamp, RegistryEventKind, RegistryEventMessage, parse_location_event

Publishers / Subscribers:
    BasePublisher, RegistryEventPublisher, LocationEventSubscriber
"""

# logging first: core packages import geotify_mqtt.logging
from .logging import LogEvent, StructuredLogger, create_logger
from .schemas import (
    Timestamp,
    RegistryEventKind,
    RegistryEventMessage,
    parse_location_event,
    location_event_to_dict,
)
from .publishers import BasePublisher, RegistryEventPublisher
from .subscriber import LocationEventSubscriber

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
    'Timestamp',
    'RegistryEventKind',
    'RegistryEventMessage',
    'parse_location_event',
    'location_event_to_dict',
    'BasePublisher',
    'RegistryEventPublisher',
    'LocationEventSubscriber',
]

__version__ = "1.0.0"
