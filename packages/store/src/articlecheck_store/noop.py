"""No-op store that remembers nothing.

With this store every request sees an empty window, so the rate limiter
admits everything. Useful behind an upstream proxy that already enforces
quotas.
"""

from __future__ import annotations

from articlecheck_store.base import BaseKVStore


class NoOpKVStore(BaseKVStore):
    """Discards all writes and reports every key as absent."""

    def get(self, key: str) -> str | None:
        return None

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        pass
