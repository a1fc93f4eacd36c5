"""
Common Schema Types
==================

SCHEMA_VERSION is carried by every outbound message so consumers can
reject formats they do not understand.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

SCHEMA_VERSION = "1.0"


@dataclass(frozen=True)
class Timestamp:
    """
    ISO 8601 timestamp, validated on construction.

    Example:
        >>> Timestamp.now().value
        '2026-10-17T15:30:45.123456+00:00'
    """
    value: str

    def __post_init__(self):
        try:
            datetime.fromisoformat(self.value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid ISO timestamp: {self.value!r}") from e

    @classmethod
    def now(cls) -> 'Timestamp':
        return cls(value=datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> str:
        return self.value
