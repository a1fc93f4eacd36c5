"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

Typed event names for structured logging across the geotify packages.

Event Naming Convention:
    <component>.<category>.<action>

    component: registry, monitoring, store, mqtt, error
    category: descriptor, start, stop, hydrate, publish
    action: added, removed, submitted, skipped

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.identifier
    | filter event = "monitoring.advisory"
    | stats count() by metadata.kind
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - registry.*: Collection mutations and hydration
    - monitoring.*: Monitoring engine interactions and advisories
    - store.*: Durable store reads and writes
    - mqtt.*: MQTT broker interactions
    - error.*: Error conditions
    """

    # ========== Registry Events ==========
    REGISTRY_DESCRIPTOR_ADDED = "registry.descriptor.added"
    """Descriptor inserted into the in-memory collection."""

    REGISTRY_DESCRIPTOR_REMOVED = "registry.descriptor.removed"
    """Descriptor removed from the in-memory collection."""

    REGISTRY_CAPACITY_REJECTED = "registry.capacity.rejected"
    """Add rejected because the collection is full."""

    REGISTRY_PERSISTED = "registry.persisted"
    """Full collection written to the persistence gateway."""

    REGISTRY_HYDRATED = "registry.hydrated"
    """Collection rebuilt from persisted records."""

    # ========== Monitoring Events ==========
    MONITORING_START_SUBMITTED = "monitoring.start.submitted"
    """Region submitted to the monitoring engine."""

    MONITORING_START_SKIPPED = "monitoring.start.skipped"
    """Region not submitted (device unsupported)."""

    MONITORING_STOPPED = "monitoring.stopped"
    """Region deregistered from the monitoring engine."""

    MONITORING_STOP_NOOP = "monitoring.stop.noop"
    """Stop requested for a region that was not monitored."""

    MONITORING_ADVISORY = "monitoring.advisory"
    """Advisory surfaced to the presentation layer."""

    MONITORING_AUTHORIZATION_CHANGED = "monitoring.authorization.changed"
    """Location authorization level changed."""

    MONITORING_REGION_TRANSITION = "monitoring.region.transition"
    """Simulated engine observed an entry or exit."""

    # ========== Store Events ==========
    STORE_WRITTEN = "store.written"
    """Snapshot written to the durable store."""

    STORE_LOADED = "store.loaded"
    """Snapshot loaded from the durable store."""

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully published to broker."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication failed."""

    LOCATION_EVENT_RECEIVED = "mqtt.location_event.received"
    """Location-service event received by subscriber."""

    # ========== Error Events ==========
    SERIALIZATION_ERROR = "error.serialization"
    """Failed to serialize message to JSON."""

    DESERIALIZATION_ERROR = "error.deserialization"
    """Failed to deserialize a record or message."""

    SCHEMA_VALIDATION_ERROR = "error.schema_validation"
    """Message failed schema validation."""

    STORE_WRITE_ERROR = "error.store_write"
    """Durable store write failed; previous snapshot kept."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""

    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
    """Error during message publication."""

    LOCATION_EVENT_HANDLER_ERROR = "error.location_event_handler"
    """Service callback raised while handling a location event."""
