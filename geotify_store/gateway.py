"""
Persistence Gateway
===================

Bounded Context: Serialized mirror of the geotification collection.

Record format:
    The store holds an ordered list under one well-known key. Each element
    is an independent JSON string:

        {"kind": "geotification", "schema_version": "1.0",
         "payload": {<RegionDescriptor.to_dict()>}}

    The kind/schema_version wrapper lets a later format coexist under the
    same key.

Write policy:
    save_all() always rewrites the full collection (no diffing). A failed
    write raises StoreWriteError and the store keeps its previous snapshot.

Read policy:
    load_all() never raises for a bad record. Each unreadable record
    becomes a DeserializationFailure, is logged and counted, and is
    skipped.
"""

import json
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from geotify_region import RegionDescriptor
from geotify_monitor.errors import DeserializationFailure
from geotify_mqtt.logging import StructuredLogger, LogEvent, create_logger
from geotify_store.store import KeyValueStore, StoreWriteError

SAVED_ITEMS_KEY = "savedItems"
RECORD_KIND = "geotification"
SCHEMA_VERSION = "1.0"
SUPPORTED_SCHEMA_VERSIONS = {"1.0"}

_PREVIEW_CHARS = 80


@dataclass(frozen=True)
class HydrationResult:
    """
    Outcome of reading the persisted collection.

    Attributes:
        descriptors: Records that deserialized, in persisted order
        skipped: Records that did not
    """

    descriptors: Tuple[RegionDescriptor, ...] = field(default_factory=tuple)
    skipped: Tuple[DeserializationFailure, ...] = field(default_factory=tuple)

    @property
    def loaded_count(self) -> int:
        return len(self.descriptors)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


class PersistenceGateway:
    """
    Serializes the full descriptor collection to and from a KeyValueStore.

    Usage:
        gateway = PersistenceGateway(JSONFileStore(Path("geotifications.json")))
        gateway.save_all(registry.descriptors)
        result = gateway.load_all()
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = SAVED_ITEMS_KEY,
        logger: Optional[StructuredLogger] = None,
    ):
        self.store = store
        self.key = key
        self.logger = logger or create_logger("store")

    @staticmethod
    def encode(descriptor: RegionDescriptor) -> str:
        return json.dumps({
            'kind': RECORD_KIND,
            'schema_version': SCHEMA_VERSION,
            'payload': descriptor.to_dict(),
        })

    @staticmethod
    def decode(item) -> RegionDescriptor:
        """
        Raises:
            ValueError: If item is not a readable geotification record
        """
        if not isinstance(item, str):
            raise ValueError(f"record must be a JSON string, got {type(item).__name__}")

        try:
            wrapper = json.loads(item)
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid JSON: {e}")

        if not isinstance(wrapper, dict):
            raise ValueError("record is not a JSON object")
        if wrapper.get('kind') != RECORD_KIND:
            raise ValueError(f"unknown record kind: {wrapper.get('kind')!r}")
        if wrapper.get('schema_version') not in SUPPORTED_SCHEMA_VERSIONS:
            raise ValueError(f"unsupported schema_version: {wrapper.get('schema_version')!r}")

        payload = wrapper.get('payload')
        if not isinstance(payload, dict):
            raise ValueError("record payload is not a JSON object")
        return RegionDescriptor.from_dict(payload)

    def save_all(self, descriptors: Iterable[RegionDescriptor]) -> int:
        """
        Rewrite the whole persisted collection.

        Returns:
            Number of records written

        Raises:
            StoreWriteError: If the store rejected the write
        """
        items = [self.encode(d) for d in descriptors]
        try:
            self.store.set(self.key, items)
        except StoreWriteError as e:
            self.logger.error(
                event=LogEvent.STORE_WRITE_ERROR,
                message="Failed to persist geotifications; previous snapshot kept",
                exc_info=e,
                metadata={'key': self.key, 'record_count': len(items)}
            )
            raise

        self.logger.info(
            event=LogEvent.STORE_WRITTEN,
            message=f"Persisted {len(items)} geotifications",
            metadata={'key': self.key, 'record_count': len(items)}
        )
        return len(items)

    def load_all(self) -> HydrationResult:
        try:
            items = self.store.get(self.key)
        except (OSError, ValueError) as e:
            # Unreadable snapshot as a whole; writes will refuse to clobber it
            self.logger.error(
                event=LogEvent.DESERIALIZATION_ERROR,
                message="Persisted snapshot is unreadable",
                exc_info=e,
                metadata={'key': self.key}
            )
            return HydrationResult(skipped=(DeserializationFailure(index=-1, reason=str(e)),))

        if not items:
            return HydrationResult()

        descriptors: List[RegionDescriptor] = []
        skipped: List[DeserializationFailure] = []

        for index, item in enumerate(items):
            try:
                descriptors.append(self.decode(item))
            except ValueError as e:
                failure = DeserializationFailure(
                    index=index,
                    reason=str(e),
                    preview=str(item)[:_PREVIEW_CHARS],
                )
                skipped.append(failure)
                self.logger.warning(
                    event=LogEvent.DESERIALIZATION_ERROR,
                    message="Skipping unreadable geotification record",
                    metadata=failure.to_dict()
                )

        self.logger.info(
            event=LogEvent.STORE_LOADED,
            message=f"Loaded {len(descriptors)} geotifications",
            metadata={'key': self.key, 'loaded': len(descriptors), 'skipped': len(skipped)}
        )
        return HydrationResult(descriptors=tuple(descriptors), skipped=tuple(skipped))
