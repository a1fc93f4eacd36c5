"""
Region Descriptor Module
========================

Bounded Context: Geotification definition.

Design:
- Immutable value objects (frozen dataclass pattern)
- Identity is the identifier only; two geotifications may share a center
  and radius and still be distinct
- Radius clamping happens once, at creation, through create_descriptor()
"""

import math
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional


class EventType(str, Enum):
    """Which boundary crossing arms the geotification."""
    ON_ENTRY = "on_entry"
    ON_EXIT = "on_exit"


@dataclass(frozen=True)
class Coordinate:
    """
    WGS-84 coordinate.

    Attributes:
        latitude: Degrees in [-90, 90]
        longitude: Degrees in [-180, 180]
    """

    latitude: float
    longitude: float

    def __post_init__(self):
        """Validate WGS-84 range."""
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude must be in [-90, 90], got {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude must be in [-180, 180], got {self.longitude}")

    def to_dict(self) -> Dict[str, float]:
        return {'latitude': self.latitude, 'longitude': self.longitude}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Coordinate':
        """
        Raises:
            ValueError: If keys missing or values invalid
        """
        try:
            return cls(
                latitude=float(data['latitude']),
                longitude=float(data['longitude'])
            )
        except KeyError as e:
            raise ValueError(f"Missing required Coordinate field: {e}")
        except TypeError as e:
            raise ValueError(f"Invalid Coordinate data: {e}")


@dataclass(frozen=True)
class RegionDescriptor:
    """
    Immutable description of one geotification.

    Attributes:
        identifier: Unique within the collection, immutable
        coordinate: Center of the circular region
        radius: Meters, > 0 (already clamped to the device maximum)
        note: Free-text label, may be empty
        event_type: ON_ENTRY or ON_EXIT, never both

    Invariants:
        - identifier is non-empty
        - radius is finite and > 0
        - equality and hashing use identifier only

    Example:
        >>> d = RegionDescriptor(
        ...     identifier="home",
        ...     coordinate=Coordinate(37.33, -122.03),
        ...     radius=150.0,
        ...     note="Wake me up",
        ...     event_type=EventType.ON_ENTRY
        ... )
    """

    identifier: str
    coordinate: Coordinate = field(compare=False)
    radius: float = field(compare=False)
    note: str = field(default="", compare=False)
    event_type: EventType = field(default=EventType.ON_ENTRY, compare=False)

    def __post_init__(self):
        """Validate invariants."""
        if not isinstance(self.identifier, str) or not self.identifier:
            raise ValueError("identifier must be a non-empty string")
        if not isinstance(self.coordinate, Coordinate):
            raise TypeError(f"coordinate must be Coordinate, got {type(self.coordinate)}")
        if not math.isfinite(self.radius) or self.radius <= 0:
            raise ValueError(f"radius must be a finite value > 0, got {self.radius}")
        if self.note is None:
            object.__setattr__(self, 'note', "")
        # Accept raw strings ("on_entry") from callers and payloads
        object.__setattr__(self, 'event_type', EventType(self.event_type))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'identifier': self.identifier,
            'coordinate': self.coordinate.to_dict(),
            'radius': self.radius,
            'note': self.note,
            'event_type': self.event_type.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RegionDescriptor':
        """
        Deserialize from dict.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            return cls(
                identifier=data['identifier'],
                coordinate=Coordinate.from_dict(data['coordinate']),
                radius=float(data['radius']),
                note=str(data.get('note') or ""),
                event_type=EventType(data['event_type'])
            )
        except KeyError as e:
            raise ValueError(f"Missing required RegionDescriptor field: {e}")
        except (TypeError, AttributeError) as e:
            raise ValueError(f"Invalid RegionDescriptor data: {e}")


def create_descriptor(
    coordinate: Coordinate,
    radius: float,
    note: str,
    event_type: EventType,
    maximum_radius: float,
    identifier: Optional[str] = None,
) -> RegionDescriptor:
    """
    Build a new descriptor for the add-flow.

    The requested radius is clamped to maximum_radius (the monitoring
    engine's maximum supported distance). A fresh identifier is generated
    unless one is supplied.

    Example:
        >>> d = create_descriptor(Coordinate(0, 0), 50000, "", EventType.ON_EXIT,
        ...                       maximum_radius=2000)
        >>> d.radius
        2000
    """
    if maximum_radius <= 0:
        raise ValueError(f"maximum_radius must be > 0, got {maximum_radius}")

    return RegionDescriptor(
        identifier=identifier or uuid.uuid4().hex,
        coordinate=coordinate,
        radius=min(radius, maximum_radius),
        note=note,
        event_type=event_type,
    )
