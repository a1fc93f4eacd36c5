"""
Region Translator
=================

Pure conversion from RegionDescriptor to the monitoring engine's primitive.

Design:
- Stateless, no side effects, no failure modes
- Exactly one of notify_on_entry / notify_on_exit is armed
- Radius passes through unchanged (clamped at descriptor creation)
"""

from dataclasses import dataclass
from typing import Dict, Any

from geotify_region.descriptor import Coordinate, EventType, RegionDescriptor


@dataclass(frozen=True)
class MonitoringRegion:
    """
    Circular region as understood by the monitoring engine.

    Invariants:
        - notify_on_entry != notify_on_exit
    """

    identifier: str
    center: Coordinate
    radius: float
    notify_on_entry: bool
    notify_on_exit: bool

    def __post_init__(self):
        if self.notify_on_entry == self.notify_on_exit:
            raise ValueError(
                "Exactly one of notify_on_entry / notify_on_exit must be set, "
                f"got entry={self.notify_on_entry} exit={self.notify_on_exit}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'identifier': self.identifier,
            'center': self.center.to_dict(),
            'radius': self.radius,
            'notify_on_entry': self.notify_on_entry,
            'notify_on_exit': self.notify_on_exit,
        }


class RegionTranslator:
    """Stateless descriptor -> MonitoringRegion mapping."""

    @staticmethod
    def translate(descriptor: RegionDescriptor) -> MonitoringRegion:
        notify_on_entry = descriptor.event_type is EventType.ON_ENTRY
        return MonitoringRegion(
            identifier=descriptor.identifier,
            center=descriptor.coordinate,
            radius=descriptor.radius,
            notify_on_entry=notify_on_entry,
            notify_on_exit=not notify_on_entry,
        )
