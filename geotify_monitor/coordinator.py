"""
Monitoring Coordinator
======================

Bounded Context: Keeping the monitoring engine in step with the
geotifications the user saved.

Responsibilities:
- start_monitoring(): capability checks, translation, engine submission
- stop_monitoring(): idempotent deregistration
- rearm(): explicit re-arm of descriptors that are not armed
- Translate engine / location-service events into Advisory records

Failure policy:
- Every problem is an Advisory, returned to the caller and forwarded to
  the advisory sink. The coordinator never retries and never touches the
  registry, so a saved geotification is never lost because monitoring
  could not start.
- Descriptors hydrated from storage are NOT re-armed here; callers do it
  explicitly through rearm().
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from geotify_region import RegionDescriptor, RegionTranslator
from geotify_monitor.capability import AuthorizationStatus, CapabilityProbe
from geotify_monitor.engine import MonitoringEngine
from geotify_monitor.errors import Advisory, AdvisoryKind
from geotify_monitor.events import (
    AuthorizationChanged,
    EventBus,
    FailureReason,
    MonitoringFailed,
)
from geotify_mqtt.logging import StructuredLogger, LogEvent, create_logger


AdvisorySink = Callable[[Advisory], None]


@dataclass(frozen=True)
class MonitoringOutcome:
    """
    Result of one start_monitoring() call.

    Attributes:
        identifier: Descriptor concerned
        submitted: True if the region reached the engine
        advisories: Advisories raised synchronously; engine failures
            arrive later through the advisory sink
    """

    identifier: str
    submitted: bool
    advisories: Tuple[Advisory, ...] = field(default_factory=tuple)


class MonitoringCoordinator:
    """
    Starts and stops monitoring per descriptor.

    Usage:
        bus = EventBus()
        engine = SimulatedMonitoringEngine(bus)
        probe = StaticCapabilityProbe(authorization=AuthorizationStatus.ALWAYS)
        coordinator = MonitoringCoordinator(engine, probe, bus, advisory_sink=print)

        outcome = coordinator.start_monitoring(descriptor)
        coordinator.stop_monitoring(descriptor)
    """

    def __init__(
        self,
        engine: MonitoringEngine,
        probe: CapabilityProbe,
        event_bus: EventBus,
        advisory_sink: Optional[AdvisorySink] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.engine = engine
        self.probe = probe
        self.event_bus = event_bus
        self.advisory_sink = advisory_sink
        self.logger = logger or create_logger("coordinator")

        event_bus.subscribe(MonitoringFailed, self._on_monitoring_failed)
        event_bus.subscribe(AuthorizationChanged, self._on_authorization_changed)

    def start_monitoring(self, descriptor: RegionDescriptor) -> MonitoringOutcome:
        """
        Submit descriptor's region to the engine.

        1. Unsupported device -> UNSUPPORTED_DEVICE advisory, not submitted
        2. Authorization other than ALWAYS -> DEGRADED_PERMISSION advisory,
           still submitted (the engine stays silent until permission is
           upgraded)
        3. Submit translated region; a region-limit failure comes back as a
           MonitoringFailed event
        """
        identifier = descriptor.identifier

        if not self.probe.is_monitoring_supported():
            advisory = Advisory(
                kind=AdvisoryKind.UNSUPPORTED_DEVICE,
                identifier=identifier,
                message="Region monitoring is not available on this device; "
                        "the geotification is saved but will not fire.",
            )
            self._emit(advisory)
            self.logger.warning(
                event=LogEvent.MONITORING_START_SKIPPED,
                message="Monitoring not supported, region not submitted",
                metadata={'identifier': identifier}
            )
            return MonitoringOutcome(identifier=identifier, submitted=False, advisories=(advisory,))

        advisories: List[Advisory] = []
        authorization = self.probe.current_authorization()
        if authorization is not AuthorizationStatus.ALWAYS:
            advisory = Advisory(
                kind=AdvisoryKind.DEGRADED_PERMISSION,
                identifier=identifier,
                message="Your geotification is saved but will only be activated "
                        "once you grant permission to always access the device location.",
            )
            self._emit(advisory)
            advisories.append(advisory)

        region = RegionTranslator.translate(descriptor)
        self.engine.register_region(region)

        self.logger.info(
            event=LogEvent.MONITORING_START_SUBMITTED,
            message="Region submitted to monitoring engine",
            metadata={
                'identifier': identifier,
                'radius': region.radius,
                'notify_on_entry': region.notify_on_entry,
                'authorization': authorization.value,
            }
        )
        return MonitoringOutcome(identifier=identifier, submitted=True, advisories=tuple(advisories))

    def stop_monitoring(self, descriptor: RegionDescriptor) -> bool:
        """
        Deregister descriptor's region if the engine is monitoring it.

        Returns:
            True if a region was deregistered, False if it was not monitored
        """
        return self.stop_monitoring_identifier(descriptor.identifier)

    def stop_monitoring_identifier(self, identifier: str) -> bool:
        stopped = False
        for region in self.engine.currently_monitored_regions():
            if region.identifier != identifier:
                continue
            self.engine.deregister_region(region.identifier)
            stopped = True

        if stopped:
            self.logger.info(
                event=LogEvent.MONITORING_STOPPED,
                message="Region deregistered",
                metadata={'identifier': identifier}
            )
        else:
            self.logger.debug(
                event=LogEvent.MONITORING_STOP_NOOP,
                message="Region was not monitored",
                metadata={'identifier': identifier}
            )
        return stopped

    def is_armed(self, identifier: str) -> bool:
        return any(
            region.identifier == identifier
            for region in self.engine.currently_monitored_regions()
        )

    def armed_identifiers(self) -> List[str]:
        return sorted(region.identifier for region in self.engine.currently_monitored_regions())

    def rearm(self, descriptors: Iterable[RegionDescriptor]) -> List[MonitoringOutcome]:
        """Start monitoring for every descriptor that is not armed yet."""
        armed = set(self.armed_identifiers())
        return [
            self.start_monitoring(descriptor)
            for descriptor in descriptors
            if descriptor.identifier not in armed
        ]

    def close(self) -> None:
        """Detach from the event bus."""
        self.event_bus.unsubscribe(MonitoringFailed, self._on_monitoring_failed)
        self.event_bus.unsubscribe(AuthorizationChanged, self._on_authorization_changed)

    # ===== Event handlers =====

    def _on_monitoring_failed(self, event: MonitoringFailed) -> None:
        if event.reason is FailureReason.REGION_LIMIT_EXCEEDED:
            kind = AdvisoryKind.MONITORING_LIMIT_EXCEEDED
            message = ("Too many regions are monitored; the geotification is saved "
                       "but not armed. Remove one and re-arm to activate it.")
        else:
            kind = AdvisoryKind.MONITORING_FAILED
            message = event.message or f"Monitoring failed ({event.reason.value})"

        self._emit(Advisory(kind=kind, identifier=event.identifier, message=message))

    def _on_authorization_changed(self, event: AuthorizationChanged) -> None:
        armed = self.armed_identifiers()
        self.logger.info(
            event=LogEvent.MONITORING_AUTHORIZATION_CHANGED,
            message=f"Authorization changed to {event.status.value}",
            metadata={'status': event.status.value, 'armed_count': len(armed)}
        )
        if event.status is not AuthorizationStatus.ALWAYS and armed:
            self._emit(Advisory(
                kind=AdvisoryKind.DEGRADED_PERMISSION,
                identifier=None,
                message=f"{len(armed)} geotification(s) will not fire until "
                        "location access is set to 'always'.",
            ))

    def _emit(self, advisory: Advisory) -> None:
        self.logger.warning(
            event=LogEvent.MONITORING_ADVISORY,
            message=advisory.message,
            metadata={'kind': advisory.kind.value, 'identifier': advisory.identifier}
        )
        if self.advisory_sink is not None:
            self.advisory_sink(advisory)
