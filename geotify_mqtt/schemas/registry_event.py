"""
Registry Event Message Schema
============================

Bounded Context: Presentation boundary messages

Messages published when the geotification collection changes or an
advisory is raised. The map, form and count label consume these.

Message Flow:
    GeotificationRegistry → PresentationListener → RegistryEventPublisher
        → MQTT → UI
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .common import Timestamp, SCHEMA_VERSION


class RegistryEventKind(str, Enum):
    DESCRIPTOR_ADDED = "descriptor_added"
    DESCRIPTOR_REMOVED = "descriptor_removed"
    COUNT_CHANGED = "count_changed"
    ADVISORY = "advisory"


@dataclass(frozen=True)
class RegistryEventMessage:
    """
    One presentation event.

    Attributes:
        kind: What happened
        timestamp: ISO 8601 creation time
        service_id: Publishing service
        descriptor: Descriptor dict (added/removed events)
        count: Collection size (count_changed)
        can_add: Whether the add entry point is enabled (count_changed)
        advisory: Advisory dict (advisory events)

    Invariants:
        - descriptor set for DESCRIPTOR_ADDED / DESCRIPTOR_REMOVED
        - count set for COUNT_CHANGED
        - advisory set for ADVISORY

    Example:
        >>> msg = RegistryEventMessage(
        ...     kind=RegistryEventKind.COUNT_CHANGED,
        ...     timestamp=Timestamp.now(),
        ...     service_id="napper_01",
        ...     count=3,
        ...     can_add=True
        ... )
    """
    kind: RegistryEventKind
    timestamp: Timestamp
    service_id: str
    descriptor: Optional[Dict[str, Any]] = None
    count: Optional[int] = None
    can_add: Optional[bool] = None
    advisory: Optional[Dict[str, Any]] = None
    schema_version: str = field(default=SCHEMA_VERSION)

    def __post_init__(self):
        """Validate invariants."""
        if self.kind in (RegistryEventKind.DESCRIPTOR_ADDED, RegistryEventKind.DESCRIPTOR_REMOVED):
            if self.descriptor is None:
                raise ValueError(f"{self.kind.value} events must carry a descriptor")
        elif self.kind == RegistryEventKind.COUNT_CHANGED:
            if self.count is None or self.count < 0:
                raise ValueError(f"count_changed events need count >= 0, got {self.count}")
        elif self.kind == RegistryEventKind.ADVISORY:
            if self.advisory is None:
                raise ValueError("advisory events must carry an advisory")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict (unset fields omitted)."""
        result: Dict[str, Any] = {
            'schema_version': self.schema_version,
            'kind': self.kind.value,
            'timestamp': self.timestamp.to_dict(),
            'service_id': self.service_id,
        }
        for key in ('descriptor', 'count', 'can_add', 'advisory'):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RegistryEventMessage':
        """
        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            return cls(
                kind=RegistryEventKind(data['kind']),
                timestamp=Timestamp(value=data['timestamp']),
                service_id=str(data['service_id']),
                descriptor=data.get('descriptor'),
                count=data.get('count'),
                can_add=data.get('can_add'),
                advisory=data.get('advisory'),
                schema_version=str(data.get('schema_version', SCHEMA_VERSION)),
            )
        except KeyError as e:
            raise ValueError(f"Missing required RegistryEventMessage field: {e}")
        except TypeError as e:
            raise ValueError(f"Invalid RegistryEventMessage data: {e}")
