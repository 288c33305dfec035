"""In-memory token bucket rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Two-level locking: a map lock guards lookup/insert/eviction of buckets,
  and each bucket carries its own lock for refill-and-consume. Requests from
  different keys only contend on the short map critical section.
- Bounded: once more than ``max_keys`` keys are tracked, buckets that have
  refilled to capacity are dropped first (they are identical to a fresh
  bucket), then the least recently used ones.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


class _TokenBucket:
    """Token bucket state for a single key."""

    __slots__ = ("capacity", "refill_rate", "tokens", "last_refill", "lock")

    def __init__(self, *, capacity: int, refill_rate: float, now: float) -> None:
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.tokens = float(capacity)
        self.last_refill = now
        self.lock = threading.Lock()

    def _refill(self, now: float) -> None:
        elapsed = now - self.last_refill
        if elapsed > 0:
            self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
            self.last_refill = now

    def try_consume(self, cost: int, now: float) -> bool:
        with self.lock:
            self._refill(now)
            if self.tokens >= cost:
                self.tokens -= cost
                return True
            return False

    def is_full(self, now: float) -> bool:
        with self.lock:
            self._refill(now)
            return self.tokens >= self.capacity

    def snapshot(self) -> float:
        with self.lock:
            return self.tokens


class InMemoryTokenBucketRateLimiter(AbstractRateLimiter):
    """Rate limiter keeping one token bucket per key.

    ``rate`` tokens are refilled every ``per_seconds`` seconds, up to
    ``burst`` tokens. A first-seen key starts with a full bucket.
    """

    def __init__(
        self,
        *,
        rate: int,
        per_seconds: float,
        burst: int,
        max_keys: int = 10000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            rate: Tokens refilled per ``per_seconds``.
            per_seconds: Refill period in seconds.
            burst: Bucket capacity.
            max_keys: Maximum number of tracked keys before eviction.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If any limit is invalid.
        """
        if rate < 1:
            raise ValueError("rate must be >= 1")
        if per_seconds <= 0:
            raise ValueError("per_seconds must be > 0")
        if burst < 1:
            raise ValueError("burst must be >= 1")
        if max_keys < 1:
            raise ValueError("max_keys must be >= 1")

        self._burst = burst
        self._refill_rate = rate / per_seconds
        self._max_keys = max_keys
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: OrderedDict[str, _TokenBucket] = OrderedDict()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _get_bucket(self, key: str, now: float) -> _TokenBucket:
        """Return the bucket for ``key``, creating (and evicting) as needed."""
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is not None:
                self._buckets.move_to_end(key)
                return bucket

            bucket = _TokenBucket(capacity=self._burst, refill_rate=self._refill_rate, now=now)
            self._buckets[key] = bucket
            if len(self._buckets) > self._max_keys:
                self._evict_locked(now, keep=key)
            return bucket

    def _evict_locked(self, now: float, *, keep: str) -> None:
        idle = [k for k, b in self._buckets.items() if k != keep and b.is_full(now)]
        for k in idle:
            del self._buckets[k]

        evicted_lru = 0
        while len(self._buckets) > self._max_keys:
            oldest = next(iter(self._buckets))
            if oldest == keep:
                break
            del self._buckets[oldest]
            evicted_lru += 1

        logger.debug(
            "rate_limit.evicted",
            extra={
                "evicted_idle": len(idle),
                "evicted_lru": evicted_lru,
                "size": len(self._buckets),
            },
        )

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume ``cost`` tokens from the bucket for ``key``.

        A rejected request leaves the bucket unchanged (apart from refill).

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        bucket = self._get_bucket(key, now)
        allowed = bucket.try_consume(cost, now)
        tokens = bucket.snapshot()

        reset_at = int(math.ceil(now + (self._burst - tokens) / self._refill_rate))
        retry_after: int | None = None
        if not allowed:
            retry_after = max(1, int(math.ceil((cost - tokens) / self._refill_rate)))

        return RateLimitResult(
            allowed=allowed,
            limit=self._burst,
            remaining=int(tokens),
            reset_at=reset_at,
            retry_after_seconds=retry_after,
        )
