"""
Capability Probe
================

Read-only view of whether the device can monitor circular regions and
which location authorization the app holds. Called before every
monitoring-start attempt.
"""

from enum import Enum
from typing import Protocol


class AuthorizationStatus(str, Enum):
    NOT_DETERMINED = "not_determined"
    DENIED = "denied"
    RESTRICTED = "restricted"
    WHEN_IN_USE = "when_in_use"
    ALWAYS = "always"


class CapabilityProbe(Protocol):
    """Protocol for capability probes (interface)."""

    def is_monitoring_supported(self) -> bool:
        """True iff the platform can monitor circular regions at all."""
        ...

    def current_authorization(self) -> AuthorizationStatus:
        """Authorization level currently granted."""
        ...


class StaticCapabilityProbe:
    """
    Probe backed by configuration.

    The authorization level is whatever the location service last
    reported; record_authorization() is wired to AuthorizationChanged
    events by the coordinator. Queries never mutate state.
    """

    def __init__(
        self,
        monitoring_supported: bool = True,
        authorization: AuthorizationStatus = AuthorizationStatus.NOT_DETERMINED,
    ):
        self._monitoring_supported = monitoring_supported
        self._authorization = AuthorizationStatus(authorization)

    def is_monitoring_supported(self) -> bool:
        return self._monitoring_supported

    def current_authorization(self) -> AuthorizationStatus:
        return self._authorization

    def record_authorization(self, status: AuthorizationStatus) -> None:
        self._authorization = AuthorizationStatus(status)
