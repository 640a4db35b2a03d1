"""
Rate limiting dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitConfig:
    """Configuration for the leaky bucket."""
    max_tokens: int = 60
    refill: int = 1
    interval: float = 1.0  # seconds between refills
    initial: int = 60


@dataclass
class RateLimitState:
    """Current bucket state."""
    tokens: float
    last_refill: float

    # Statistics
    total_acquired: int = 0
    total_waits: int = 0
    total_wait_time: float = 0.0
