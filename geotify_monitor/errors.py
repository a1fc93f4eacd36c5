"""
Error kinds for the geotification core.

Only CapacityExceededError is raised. Monitoring-layer problems are
Advisory records: reported to the user, never rolling back a saved
geotification. Persisted records that cannot be read become
DeserializationFailure records collected during hydrate.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Optional


class GeotifyError(Exception):
    """Base class for geotify exceptions."""
    pass


class CapacityExceededError(GeotifyError):
    """Raised when adding to a registry that already holds its maximum."""

    def __init__(self, capacity: int):
        self.capacity = capacity
        super().__init__(f"Registry is full ({capacity} geotifications)")


class AdvisoryKind(str, Enum):
    UNSUPPORTED_DEVICE = "unsupported_device"
    DEGRADED_PERMISSION = "degraded_permission"
    MONITORING_LIMIT_EXCEEDED = "monitoring_limit_exceeded"
    MONITORING_FAILED = "monitoring_failed"


@dataclass(frozen=True)
class Advisory:
    """
    Non-fatal monitoring problem surfaced to the presentation layer.

    Attributes:
        kind: What went wrong
        identifier: Descriptor concerned (None for device-wide advisories)
        message: Human-readable text
    """

    kind: AdvisoryKind
    identifier: Optional[str]
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'identifier': self.identifier,
            'message': self.message,
        }


@dataclass(frozen=True)
class DeserializationFailure:
    """
    One persisted record skipped during hydrate.

    Attributes:
        index: Position of the record in the persisted list
        reason: Why it could not be read
        preview: Leading characters of the raw record
    """

    index: int
    reason: str
    preview: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {'index': self.index, 'reason': self.reason, 'preview': self.preview}
