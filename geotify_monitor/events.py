"""
Location Service Events
=======================

Typed events published by the location service (or the simulated engine)
and consumed by the MonitoringCoordinator.

Design:
- Frozen dataclasses, one per event kind
- EventBus dispatches synchronously on the caller's thread, in
  subscription order (single logical actor, no queueing)
"""

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Type, Any

from geotify_monitor.capability import AuthorizationStatus


class FailureReason(str, Enum):
    """Why the engine refused or dropped a region."""
    REGION_LIMIT_EXCEEDED = "region_limit_exceeded"
    REGION_MONITORING_DENIED = "region_monitoring_denied"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class AuthorizationChanged:
    status: AuthorizationStatus


@dataclass(frozen=True)
class MonitoringFailed:
    identifier: str
    reason: FailureReason
    message: str = ""


@dataclass(frozen=True)
class RegionEntered:
    identifier: str


@dataclass(frozen=True)
class RegionExited:
    identifier: str


Handler = Callable[[Any], None]


class EventBus:
    """
    Publish/subscribe channel keyed by event type.

    Example:
        >>> bus = EventBus()
        >>> bus.subscribe(MonitoringFailed, lambda e: print(e.identifier))
        >>> bus.publish(MonitoringFailed("home", FailureReason.UNKNOWN))
        home
    """

    def __init__(self):
        self._handlers: Dict[Type, List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: Type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: Type, handler: Handler) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: Any) -> None:
        # Snapshot so handlers may (un)subscribe while dispatching
        for handler in list(self._handlers.get(type(event), [])):
            handler(event)

    def subscriber_count(self, event_type: Type) -> int:
        return len(self._handlers.get(event_type, []))
