# ==================================================
# shard_index/cache.py
# ==================================================
from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Hashable, Optional

from .errors import ConfigurationError


class _ConfirmedAbsent:
    """Cached marker: a shard scan ran and found no records for the key."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "CONFIRMED_ABSENT"

    def __bool__(self):
        return False


CONFIRMED_ABSENT = _ConfirmedAbsent()


class RecencyCache:
    """Bounded key -> value map evicting the least-recently-used key.

    ``get`` reorders entries, so every call takes the same exclusive lock;
    interleaved get/put calls are linearizable against both the size bound
    and the recency order.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ConfigurationError("Cache capacity has to be positive")
        self.capacity = capacity
        self._data: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            if key not in self._data:
                return None
            self._data.move_to_end(key)
            return self._data[key]

    def put(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._data.move_to_end(key)
            while len(self._data) > self.capacity:
                self._data.popitem(last=False)

    # ------------------------------------------------------------------
    def keys(self) -> list:
        """Resident keys, least recently used first."""
        with self._lock:
            return list(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
