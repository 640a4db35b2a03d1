"""
Leaky bucket rate limiter shared by every request of one client.
"""

from __future__ import annotations

import asyncio
import math
import time

from ..logging_utils import ContextualLogger
from .models import RateLimitConfig, RateLimitState


class LeakyBucketRateLimiter:
    """
    Leaky bucket rate limiter.

    Permits are refilled in fixed amounts at a fixed interval up to
    ``max_tokens``. Callers wait until enough permits are available; waiters
    are served one at a time in arrival order.
    """

    def __init__(self, config: RateLimitConfig | None = None):
        self.config = config or RateLimitConfig()
        if self.config.max_tokens < 1:
            raise ValueError("max_tokens must be at least 1")
        if self.config.refill < 1:
            raise ValueError("refill must be at least 1")
        if self.config.interval <= 0:
            raise ValueError("interval must be positive")
        if not 0 <= self.config.initial <= self.config.max_tokens:
            raise ValueError("initial must be between 0 and max_tokens")

        self.state = RateLimitState(
            tokens=float(self.config.initial),
            last_refill=time.monotonic(),
        )
        self._lock = asyncio.Lock()
        self._logger = ContextualLogger({"component": "rate_limiter"})

    def _refill(self, now: float) -> None:
        """Add the permits accumulated since the last refill."""
        elapsed = now - self.state.last_refill
        intervals = math.floor(elapsed / self.config.interval)
        if intervals <= 0:
            return

        self.state.tokens = min(
            float(self.config.max_tokens),
            self.state.tokens + intervals * self.config.refill,
        )
        self.state.last_refill += intervals * self.config.interval

    def _wait_time(self, amount: int, now: float) -> float:
        """Seconds until ``amount`` permits will be available."""
        missing = amount - self.state.tokens
        if missing <= 0:
            return 0.0
        intervals = math.ceil(missing / self.config.refill)
        next_refill = self.state.last_refill + self.config.interval
        return max(0.0, next_refill - now) + (intervals - 1) * self.config.interval

    def try_acquire(self, amount: int = 1) -> bool:
        """Take ``amount`` permits if they are available right now."""
        self._refill(time.monotonic())
        if self.state.tokens < amount:
            return False
        self.state.tokens -= amount
        self.state.total_acquired += amount
        return True

    async def acquire(self, amount: int = 1) -> None:
        """
        Wait until ``amount`` permits are available and take them.

        Raises:
            ValueError: If ``amount`` can never be satisfied by this bucket
        """
        if amount < 1 or amount > self.config.max_tokens:
            raise ValueError(
                f"amount must be between 1 and max_tokens ({self.config.max_tokens})"
            )

        async with self._lock:
            while True:
                now = time.monotonic()
                self._refill(now)
                if self.state.tokens >= amount:
                    self.state.tokens -= amount
                    self.state.total_acquired += amount
                    return

                wait_time = self._wait_time(amount, now)
                self.state.total_waits += 1
                self.state.total_wait_time += wait_time
                self._logger.debug(
                    "Waiting for rate limit capacity",
                    wait_time=round(wait_time, 3),
                    available=self.state.tokens,
                )
                await asyncio.sleep(wait_time)

    async def acquire_one(self) -> None:
        await self.acquire(1)

    def get_statistics(self) -> dict[str, int | float]:
        """Get current rate limiting statistics."""
        self._refill(time.monotonic())
        return {
            "available_tokens": self.state.tokens,
            "max_tokens": self.config.max_tokens,
            "total_acquired": self.state.total_acquired,
            "total_waits": self.state.total_waits,
            "total_wait_time": round(self.state.total_wait_time, 3),
            "utilization": 1 - self.state.tokens / self.config.max_tokens,
        }
