from __future__ import annotations

import itertools
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional

from src.logger_config import logger
from src.rate_limit.bucket import MonotonicClock, RateBucket

KeyExtractor = Callable[[Any], Optional[Hashable]]


@dataclass(frozen=True)
class Budget:
    """Burst size plus steady refill rate of a bucket"""

    capacity: int
    refill_per_ms: float

    @classmethod
    def per_interval(cls, capacity: int, interval_ms: int) -> "Budget":
        """One token every ``interval_ms`` milliseconds, bursting to ``capacity``"""
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        return cls(capacity=capacity, refill_per_ms=1.0 / interval_ms)


class AdmissionController:
    """
    Keyed collection of token buckets.

    Role-agnostic: it only knows a budget and how to pull a key out of a
    request. Buckets are created on first use, full. Each key has its own
    bucket lock; distinct keys never contend.

    A bucket that has refilled to capacity carries no state a fresh bucket
    would not, so such buckets are pruned every ``prune_every`` new keys.
    """

    def __init__(
        self,
        budget: Budget,
        key_extractor: Optional[KeyExtractor] = None,
        clock: MonotonicClock = time.monotonic,
        name: str = "default",
        prune_every: int = 1024,
    ):
        if prune_every <= 0:
            raise ValueError("prune_every must be positive")
        self.budget = budget
        self.key_extractor = key_extractor
        self.name = name
        self.prune_every = prune_every
        self._clock = clock
        self._buckets: Dict[Hashable, RateBucket] = {}
        self._created = itertools.count(1)

    def _bucket_for(self, key: Hashable) -> RateBucket:
        bucket = self._buckets.get(key)
        if bucket is None:
            if next(self._created) % self.prune_every == 0:
                self.prune()
            # setdefault is atomic: concurrent first requests share the winner's bucket
            bucket = self._buckets.setdefault(
                key, RateBucket(self.budget.capacity, self.budget.refill_per_ms, self._clock)
            )
        return bucket

    def prune(self) -> int:
        """Drop buckets that are back at full capacity; returns how many were dropped.

        A caller that fetched a bucket just before it was dropped spends its
        token on the orphan, so a key can gain at most one extra admission.
        """
        removed = 0
        for key, bucket in list(self._buckets.items()):
            if bucket.available() >= bucket.capacity and self._buckets.get(key) is bucket:
                self._buckets.pop(key, None)
                removed += 1
        if removed:
            logger.debug(f"Rate limiter '{self.name}' pruned {removed} idle bucket(s)")
        return removed

    def try_acquire(self, key: Hashable) -> bool:
        """Spend one token for ``key``; False means "try again later"."""
        return self._bucket_for(key).try_acquire()

    def admit(self, request: Any) -> bool:
        if self.key_extractor is None:
            raise RuntimeError(f"Admission controller '{self.name}' has no key extractor")
        key = self.key_extractor(request)
        if key is None:
            logger.error(f"Rate limiter '{self.name}' could not extract a key from the request")
            return False
        return self.try_acquire(key)

    def __len__(self) -> int:
        return len(self._buckets)
