"""Sliding-window rate limiter backed by a key-value store.

Each client owns one record: a JSON array of epoch-second timestamps inside
the trailing window. Every admit() is a read-modify-write without any
transaction, so concurrent requests from one client can race and under- or
over-count slightly. The limiter is advisory, not a hard quota.

The limiter fails open: store errors, malformed records and unexpected
exceptions all result in the request being allowed.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from articlecheck_store.base import BaseKVStore

logger = logging.getLogger(__name__)

_KEY_PREFIX = "ratelimit:"


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: int = 0


class RateLimiter:
    def __init__(self, store: BaseKVStore, max_requests: int = 100, window_size: int = 3600):
        self.store = store
        self.max_requests = max_requests
        self.window_size = window_size

    def admit(self, client_id: str, now: int | None = None) -> RateLimitDecision:
        """Record this request and decide whether it may proceed.

        The current request counts toward the window, so the max_requests-th
        request is allowed and the one after it is denied. retry_after is
        always the full window size.
        """
        try:
            now = int(time.time()) if now is None else int(now)
            key = _KEY_PREFIX + client_id
            window_start = now - self.window_size

            recent = [t for t in self._read(key) if t > window_start]
            recent.append(now)
            self._write(key, recent)

            if len(recent) > self.max_requests:
                logger.info("Rate limit exceeded for %s (%d requests in window)", client_id, len(recent))
                return RateLimitDecision(allowed=False, retry_after=self.window_size)
            return RateLimitDecision(allowed=True)
        except Exception:
            logger.exception("Rate limiter failed for %s; allowing request", client_id)
            return RateLimitDecision(allowed=True)

    def _read(self, key: str) -> list[int]:
        try:
            raw = self.store.get(key)
        except Exception as e:
            logger.warning("Rate limit store read failed (%s): %s", type(e).__name__, e)
            return []
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding malformed rate limit record for %s", key)
            return []
        if not isinstance(data, list) or not all(
            isinstance(t, (int, float)) and not isinstance(t, bool) for t in data
        ):
            logger.warning("Discarding malformed rate limit record for %s", key)
            return []
        return [int(t) for t in data]

    def _write(self, key: str, timestamps: list[int]) -> None:
        try:
            self.store.put(key, json.dumps(timestamps), ttl_seconds=self.window_size)
        except Exception as e:
            logger.warning("Rate limit store write failed (%s): %s", type(e).__name__, e)
