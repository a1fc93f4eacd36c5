"""
Structured Logging for Geotify
==============================

Bounded Context: Observability

JSON-structured logging shared by every geotify package.

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from geotify_mqtt.logging import create_logger, LogEvent
    >>> logger = create_logger("registry")
    >>> logger.info(
    ...     event=LogEvent.REGISTRY_HYDRATED,
    ...     message="Hydrated 3 descriptors",
    ...     metadata={'loaded': 3, 'skipped': 0}
    ... )
"""

from .events import LogEvent
from .structured import StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
