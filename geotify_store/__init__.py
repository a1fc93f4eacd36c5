"""
geotify_store - Persistence for geotifications

Architecture:
- KeyValueStore: Durable store boundary (InMemoryStore, JSONFileStore)
- PersistenceGateway: Full-collection serialization with tolerant reads
"""

from geotify_store.store import KeyValueStore, InMemoryStore, JSONFileStore, StoreWriteError
from geotify_store.gateway import (
    PersistenceGateway,
    HydrationResult,
    SAVED_ITEMS_KEY,
    SCHEMA_VERSION,
)

__all__ = [
    "KeyValueStore",
    "InMemoryStore",
    "JSONFileStore",
    "StoreWriteError",
    "PersistenceGateway",
    "HydrationResult",
    "SAVED_ITEMS_KEY",
    "SCHEMA_VERSION",
]
