"""
Structured JSON Logger
=====================

Bounded Context: Observability Infrastructure

One JSON document per record, emitted through the stdlib logger
``geotify.<component>``. Every entry carries the event name, its
category (registry, monitoring, store, mqtt or error) and
any context bound to the logger (typically ``service_id``).

Example:
    >>> logger = create_logger("registry").bind(service_id="napper_01")
    >>> logger.info(
    ...     event=LogEvent.REGISTRY_DESCRIPTOR_ADDED,
    ...     message="Geotification added",
    ...     metadata={'identifier': 'a1b2', 'count': 3}
    ... )

Output:
    {"timestamp": "2026-10-17T15:30:45.123456+00:00", "level": "INFO",
     "component": "registry", "event": "registry.descriptor.added",
     "category": "registry", "service_id": "napper_01",
     "message": "Geotification added",
     "metadata": {"identifier": "a1b2", "count": 3}}
"""

import json
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from .events import LogEvent


class StructuredLogger:
    """
    JSON structured logger for one geotify component.

    Attributes:
        component: Component name ("registry", "coordinator", "store", ...)
        context: Fields merged into every entry (see bind())
        logger: Underlying stdlib logger

    Thread Safety:
        Thread-safe via Python's logging module; context is never mutated
        after construction.
    """

    def __init__(
        self,
        component: str,
        level: int = logging.INFO,
        context: Optional[Dict[str, Any]] = None
    ):
        self.component = component
        self.context: Dict[str, Any] = dict(context or {})
        self.logger = logging.getLogger(f"geotify.{component}")
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(handler)

    def bind(self, **context: Any) -> 'StructuredLogger':
        """Logger for the same component with extra fixed fields."""
        return StructuredLogger(
            component=self.component,
            level=self.logger.level,
            context={**self.context, **context},
        )

    def _log(
        self,
        level: int,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]],
        exc_info: Optional[BaseException] = None
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return

        entry: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': logging.getLevelName(level),
            'component': self.component,
            'event': event.value,
            'category': event.value.split('.', 1)[0],
            **self.context,
            'message': message,
        }
        if metadata:
            entry['metadata'] = metadata
        if exc_info is not None:
            entry['exception'] = {'type': type(exc_info).__name__, 'message': str(exc_info)}

        self.logger.log(level, json.dumps(entry, default=str))

    def debug(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.DEBUG, event, message, metadata)

    def info(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.INFO, event, message, metadata)

    def warning(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """
        Example:
            >>> logger.warning(
            ...     event=LogEvent.MONITORING_ADVISORY,
            ...     message="Authorization is not 'always'",
            ...     metadata={'identifier': 'a1b2'}
            ... )
        """
        self._log(logging.WARNING, event, message, metadata, exc_info)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """
        Args:
            event: Typed log event
            message: Human-readable message
            metadata: Additional context
            exc_info: Exception instance, summarized as {type, message}
        """
        self._log(logging.ERROR, event, message, metadata, exc_info)


def create_logger(
    component: str,
    level: int = logging.INFO,
    **context: Any
) -> StructuredLogger:
    """
    Example:
        >>> logger = create_logger("coordinator", level=logging.DEBUG, service_id="napper_01")
    """
    return StructuredLogger(component=component, level=level, context=context)
