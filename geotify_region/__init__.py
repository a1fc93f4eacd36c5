"""
Geotify Region
==============

Bounded Context: Geotification definition and translation to the
monitoring primitive.

Architecture:

    geotify_region/
    ├── descriptor.py   # Coordinate, EventType, RegionDescriptor, create_descriptor
    ├── translator.py   # MonitoringRegion, RegionTranslator (pure)
    └── geometry.py     # Great-circle distance, point-in-circle

Usage:

    from geotify_region import Coordinate, EventType, create_descriptor, RegionTranslator

    descriptor = create_descriptor(
        coordinate=Coordinate(37.3318, -122.0312),
        radius=50000,
        note="Wake me at the office",
        event_type=EventType.ON_ENTRY,
        maximum_radius=2000,
    )
    region = RegionTranslator.translate(descriptor)
    assert region.notify_on_entry and not region.notify_on_exit
"""

from geotify_region.descriptor import Coordinate, EventType, RegionDescriptor, create_descriptor
from geotify_region.translator import MonitoringRegion, RegionTranslator
from geotify_region.geometry import haversine_distance, contains

__all__ = [
    "Coordinate",
    "EventType",
    "RegionDescriptor",
    "create_descriptor",
    "MonitoringRegion",
    "RegionTranslator",
    "haversine_distance",
    "contains",
]

__version__ = "1.0.0"
