"""Process-local store with per-key expiry.

Only shared within one process, so limits are per worker when the server
runs with several. Also the fake used throughout the test suite.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from articlecheck_store.base import BaseKVStore


class MemoryKVStore(BaseKVStore):
    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._data: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._data[key]
                return None
            return value

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._data[key] = (value, self._clock() + ttl_seconds)

    def close(self) -> None:
        with self._lock:
            self._data.clear()
