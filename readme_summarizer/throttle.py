"""
Token-bucket throttle shared by every outbound GitHub request.

One bucket per GitHub client keeps concurrent summarizations from collectively
tripping GitHub's secondary rate limits. With the default settings
(10 tokens/s, burst 1) consecutive requests are spaced ~100 ms apart.
"""

from __future__ import annotations

import asyncio
import time


class TokenBucket:
    """Async-safe token bucket. ``acquire()`` waits until a token is free."""

    def __init__(self, rate: float, capacity: int = 1) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.rate = rate
        self.capacity = capacity
        self._tokens = float(capacity)
        self._updated = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._updated
        self._updated = now
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)

    async def acquire(self) -> None:
        # Waiters queue on the lock, so tokens are handed out in FIFO order.
        async with self._lock:
            self._refill()
            if self._tokens < 1:
                await asyncio.sleep((1 - self._tokens) / self.rate)
                self._refill()
            self._tokens -= 1

    @property
    def available(self) -> float:
        self._refill()
        return self._tokens


class NullThrottle:
    """Throttle that never waits."""

    async def acquire(self) -> None:
        return None
