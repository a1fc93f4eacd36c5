"""
Key-Value Store Boundary
========================

Opaque durable store of lists of serialized records.

Implementations:
- InMemoryStore: dict-backed (tests, ephemeral runs)
- JSONFileStore: one JSON document on disk, replaced atomically so a
  failed write leaves the previous snapshot in place
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Protocol


class StoreWriteError(Exception):
    """Raised when a snapshot could not be written; previous snapshot kept."""
    pass


class KeyValueStore(Protocol):
    """Protocol for durable key-value stores (interface)."""

    def get(self, key: str) -> Optional[List]:
        ...

    def set(self, key: str, value: List) -> None:
        ...


class InMemoryStore:
    """Dict-backed store; values are copied on the way in and out."""

    def __init__(self, initial: Optional[Dict[str, List]] = None):
        self._data: Dict[str, List] = {k: list(v) for k, v in (initial or {}).items()}

    def get(self, key: str) -> Optional[List]:
        value = self._data.get(key)
        return list(value) if value is not None else None

    def set(self, key: str, value: List) -> None:
        self._data[key] = list(value)


class JSONFileStore:
    """
    File-backed store.

    The whole mapping lives in one JSON document. set() writes a temp file
    in the same directory and os.replace()s it over the original.

    Example:
        >>> store = JSONFileStore(Path("./data/geotifications.json"))
        >>> store.set("savedItems", ["...", "..."])
        >>> store.get("savedItems")
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, List]:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Store file {self.path} does not hold a JSON object")
        return data

    def get(self, key: str) -> Optional[List]:
        """
        Raises:
            ValueError: The file or the value under key is not readable as a list
        """
        value = self._read_all().get(key)
        if value is None:
            return None
        if not isinstance(value, list):
            raise ValueError(f"{self.path}: '{key}' holds {type(value).__name__}, expected a list")
        return list(value)

    def set(self, key: str, value: List) -> None:
        try:
            data = self._read_all()
        except (OSError, ValueError) as e:
            raise StoreWriteError(f"Cannot read existing snapshot {self.path}: {e}") from e
        existing = data.get(key)
        if existing is not None and not isinstance(existing, list):
            raise StoreWriteError(
                f"Refusing to replace non-list '{key}' ({type(existing).__name__}) in {self.path}"
            )
        data[key] = list(value)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StoreWriteError(f"Failed to write snapshot {self.path}: {e}") from e
