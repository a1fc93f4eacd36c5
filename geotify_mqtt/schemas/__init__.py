"""
Geotify MQTT Schemas
====================

Bounded Context: Data Structures

Public API
----------
Common Types:
    Timestamp: ISO 8601 timestamp wrapper

Registry Event Types:
    RegistryEventKind: Enum (DESCRIPTOR_ADDED, DESCRIPTOR_REMOVED, COUNT_CHANGED, ADVISORY)
    RegistryEventMessage: Presentation boundary message

Location Event Types:
    parse_location_event: Wire dict -> typed geotify_monitor event
    location_event_to_dict: Typed event -> wire dict
"""

from .common import Timestamp, SCHEMA_VERSION
from .registry_event import RegistryEventKind, RegistryEventMessage
from .location_event import LocationEvent, parse_location_event, location_event_to_dict

__all__ = [
    'Timestamp',
    'SCHEMA_VERSION',
    'RegistryEventKind',
    'RegistryEventMessage',
    'LocationEvent',
    'parse_location_event',
    'location_event_to_dict',
]
