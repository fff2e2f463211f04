from __future__ import annotations

import threading
import time
from typing import Callable

MonotonicClock = Callable[[], float]


class RateBucket:
    """
    Single in-memory token bucket.

    Starts full; ``refill_per_ms`` tokens are added for every elapsed
    millisecond, never beyond ``capacity``. Refill and take happen under the
    bucket's own lock so two callers cannot spend the same last token.
    """

    def __init__(self, capacity: float, refill_per_ms: float, clock: MonotonicClock = time.monotonic):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if refill_per_ms < 0:
            raise ValueError("refill_per_ms cannot be negative")
        self.capacity = float(capacity)
        self.refill_per_ms = float(refill_per_ms)
        self._clock = clock
        self.tokens = float(capacity)
        self.last_refill = clock()
        self._lock = threading.Lock()

    def _refill(self, now: float) -> None:
        elapsed_ms = (now - self.last_refill) * 1000.0
        if elapsed_ms <= 0:
            return
        self.tokens = min(self.capacity, self.tokens + elapsed_ms * self.refill_per_ms)
        self.last_refill = now

    def try_acquire(self) -> bool:
        with self._lock:
            self._refill(self._clock())
            if self.tokens >= 1.0:
                self.tokens -= 1.0
                return True
            return False

    def available(self) -> float:
        """Token count as of now, without consuming anything"""
        with self._lock:
            self._refill(self._clock())
            return self.tokens
