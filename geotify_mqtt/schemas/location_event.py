"""
Location Event Message Schema
============================

Bounded Context: Inbound location-service events

Wire format of events the location service publishes about the device:

    {"type": "authorization_changed", "status": "when_in_use"}
    {"type": "monitoring_failed", "identifier": "a1b2",
     "reason": "region_limit_exceeded", "message": "..."}
    {"type": "region_entered", "identifier": "a1b2"}
    {"type": "region_exited", "identifier": "a1b2"}

parse_location_event() maps each onto the typed geotify_monitor events.
"""

from typing import Any, Dict, Union

from geotify_monitor.capability import AuthorizationStatus
from geotify_monitor.events import (
    AuthorizationChanged,
    FailureReason,
    MonitoringFailed,
    RegionEntered,
    RegionExited,
)

LocationEvent = Union[AuthorizationChanged, MonitoringFailed, RegionEntered, RegionExited]


def parse_location_event(data: Dict[str, Any]) -> LocationEvent:
    """
    Deserialize one location-service event.

    Raises:
        ValueError: If the type is unknown or fields are missing/invalid
    """
    if not isinstance(data, dict):
        raise ValueError(f"location event must be a JSON object, got {type(data).__name__}")

    event_type = data.get('type')
    try:
        if event_type == 'authorization_changed':
            return AuthorizationChanged(status=AuthorizationStatus(data['status']))

        if event_type == 'monitoring_failed':
            reason = data.get('reason', FailureReason.UNKNOWN.value)
            try:
                failure_reason = FailureReason(reason)
            except ValueError:
                failure_reason = FailureReason.UNKNOWN
            return MonitoringFailed(
                identifier=str(data['identifier']),
                reason=failure_reason,
                message=str(data.get('message', "")),
            )

        if event_type == 'region_entered':
            return RegionEntered(identifier=str(data['identifier']))

        if event_type == 'region_exited':
            return RegionExited(identifier=str(data['identifier']))

    except KeyError as e:
        raise ValueError(f"Missing required field for {event_type}: {e}")

    raise ValueError(f"Unknown location event type: {event_type!r}")


def location_event_to_dict(event: LocationEvent) -> Dict[str, Any]:
    """Inverse of parse_location_event() (used by geotify-cli)."""
    if isinstance(event, AuthorizationChanged):
        return {'type': 'authorization_changed', 'status': event.status.value}
    if isinstance(event, MonitoringFailed):
        return {
            'type': 'monitoring_failed',
            'identifier': event.identifier,
            'reason': event.reason.value,
            'message': event.message,
        }
    if isinstance(event, RegionEntered):
        return {'type': 'region_entered', 'identifier': event.identifier}
    if isinstance(event, RegionExited):
        return {'type': 'region_exited', 'identifier': event.identifier}
    raise ValueError(f"Not a location event: {event!r}")
