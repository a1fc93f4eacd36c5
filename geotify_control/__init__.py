"""
geotify_control - Control Plane for the geotify service

Bounded Context: MQTT-based command-and-control
Responsibilities:
  - MQTT connection management (Control Plane)
  - Command registration and payload validation
  - Command execution delegation to GeotificationService

Architecture:
  - CommandRegistry: Explicit registration pattern
  - register_geotify_commands: add/remove/list/rearm/status handlers
  - MQTTControlPlane: MQTT client + command reception + replies
"""

from .commands import (
    CommandRegistry,
    CommandNotAvailableError,
    InvalidCommandError,
    parse_add_payload,
    register_geotify_commands,
)
from .plane import MQTTControlPlane

__all__ = [
    "CommandRegistry",
    "CommandNotAvailableError",
    "InvalidCommandError",
    "parse_add_payload",
    "register_geotify_commands",
    "MQTTControlPlane",
]
