"""
geotify_registry - Geotification collection and orchestration

This package owns the canonical collection of geotifications and the
service that keeps it in step with persistence and region monitoring.

Architecture:
- GeotificationRegistry: Bounded collection (max 20), persistence mirror
- GeotificationService: add/remove/load/rearm orchestration
- GeotifyConfig: Configuration management
"""

from geotify_registry.config import GeotifyConfig, DeviceConfig, MQTTConfig, MAX_GEOTIFICATIONS
from geotify_registry.registry import (
    GeotificationRegistry,
    PresentationListener,
    NullPresentationListener,
)
from geotify_registry.service import GeotificationService, AddResult

__all__ = [
    "GeotifyConfig",
    "DeviceConfig",
    "MQTTConfig",
    "MAX_GEOTIFICATIONS",
    "GeotificationRegistry",
    "PresentationListener",
    "NullPresentationListener",
    "GeotificationService",
    "AddResult",
]
