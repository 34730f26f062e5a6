"""Blocking rate limiter for embedding API calls."""

from __future__ import annotations

import threading
import time


class RateLimiter:
    """Continuous-refill token bucket sized in requests per minute.

    Tokens accrue fractionally as time passes, up to one minute's worth.
    ``requests_per_minute`` of ``None`` or ``<= 0`` disables limiting.
    """

    def __init__(self, requests_per_minute: int | None) -> None:
        self.capacity = (
            float(requests_per_minute) if requests_per_minute and requests_per_minute > 0 else None
        )
        self.tokens = self.capacity or 0.0
        self.rate_per_second = self.capacity / 60.0 if self.capacity else 0.0
        self.updated_at = time.monotonic()
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.capacity is not None

    def _refill(self, now: float) -> None:
        if self.capacity is None:
            return
        elapsed = now - self.updated_at
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate_per_second)
        self.updated_at = now

    def acquire(self) -> float:
        """Block until one request may proceed.

        Returns:
            Seconds spent waiting.
        """
        if self.capacity is None:
            return 0.0

        waited = 0.0
        while True:
            with self._lock:
                self._refill(time.monotonic())
                if self.tokens >= 1.0:
                    self.tokens -= 1.0
                    return waited
                delay = (1.0 - self.tokens) / self.rate_per_second

            # Sleep outside the lock so other threads can check the bucket
            time.sleep(delay)
            waited += delay
