"""Abstract key-value store interface.

The rate limiter depends on BaseKVStore, not on a concrete backend, so the
window state can live in SQLite, in process memory, or nowhere at all without
touching the limiter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseKVStore(ABC):
    """Minimal string key-value store with whole-record expiry.

    Both operations may fail independently. Callers that treat the store as
    best-effort (the rate limiter does) are expected to catch and log.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent or expired."""

    @abstractmethod
    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key``; the record expires after ``ttl_seconds``."""

    def close(self) -> None:
        """Release any resources held by the store.

        Default is a no-op so callers can always call close() safely.
        """
