"""
geotify_monitor - Region monitoring core

Bounded Context: Synchronizing saved geotifications with the device's
region-monitoring engine.

Architecture:
  - CapabilityProbe: Device support + authorization (pure read)
  - MonitoringEngine: Engine boundary (SimulatedMonitoringEngine in-process)
  - EventBus: Typed events from the location service
  - MonitoringCoordinator: start/stop/rearm, events -> Advisory records

Design Philosophy:
  - Monitoring failures are advisory, never fatal to saved data
  - Engine calls are fire-and-forget; results come back as events
"""

# Leaf modules first; engine/coordinator pull in geotify_mqtt.logging
from .errors import (
    GeotifyError,
    CapacityExceededError,
    AdvisoryKind,
    Advisory,
    DeserializationFailure,
)
from .capability import AuthorizationStatus, CapabilityProbe, StaticCapabilityProbe
from .events import (
    EventBus,
    FailureReason,
    AuthorizationChanged,
    MonitoringFailed,
    RegionEntered,
    RegionExited,
)
from .engine import MonitoringEngine, SimulatedMonitoringEngine
from .coordinator import MonitoringCoordinator, MonitoringOutcome

__all__ = [
    "GeotifyError",
    "CapacityExceededError",
    "AdvisoryKind",
    "Advisory",
    "DeserializationFailure",
    "AuthorizationStatus",
    "CapabilityProbe",
    "StaticCapabilityProbe",
    "EventBus",
    "FailureReason",
    "AuthorizationChanged",
    "MonitoringFailed",
    "RegionEntered",
    "RegionExited",
    "MonitoringEngine",
    "SimulatedMonitoringEngine",
    "MonitoringCoordinator",
    "MonitoringOutcome",
]
