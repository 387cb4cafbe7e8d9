"""
Caller-owned cache for derived analysis artifacts.

Entries are keyed by a content fingerprint of the analyzed inputs, so two
identical trace/log pairs share one graph and timing while any change to
the input produces a new key.
"""

import hashlib
import json
import threading
from collections import OrderedDict
from typing import Any, Callable, Optional, TypeVar

_V = TypeVar("_V")


def fingerprint(*parts: Any) -> str:
    """SHA-256 of the canonical JSON encoding of parts."""
    payload = json.dumps(parts, sort_keys=True, separators=(',', ':'), default=str)
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


class ArtifactCache:
    """LRU cache of analysis results with explicit invalidation."""

    def __init__(self, maxsize: int = 8):
        if maxsize < 0:
            raise ValueError("maxsize must not be negative")
        self._maxsize = int(maxsize)
        self._data: "OrderedDict[str, Any]" = OrderedDict()
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            value = self._data.get(key)
            if value is not None:
                self._data.move_to_end(key)
            return value

    def get_or_create(self, key: str, factory: Callable[[], _V]) -> _V:
        """Return the cached value for key, computing and storing it on a miss."""
        with self._lock:
            if key in self._data:
                self.hits += 1
                self._data.move_to_end(key)
                return self._data[key]

            self.misses += 1
            value = factory()
            if self._maxsize == 0:
                return value
            self._data[key] = value
            if len(self._data) > self._maxsize:
                self._data.popitem(last=False)
            return value

    def invalidate(self, key: str) -> bool:
        """Drop one entry. Returns True if it was cached."""
        with self._lock:
            return self._data.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
