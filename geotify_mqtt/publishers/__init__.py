"""
MQTT Publishers
==============

Bounded Context: Message Production

Public API
----------
    BasePublisher: Abstract publisher (for custom publishers)
    RegistryEventPublisher: Presentation boundary publisher
"""

from .base import BasePublisher
from .registry_event import RegistryEventPublisher

__all__ = [
    'BasePublisher',
    'RegistryEventPublisher',
]
