"""
Client-side rate limiting for outbound API requests.
"""

from .limiter import LeakyBucketRateLimiter
from .models import RateLimitConfig, RateLimitState

__all__ = ["LeakyBucketRateLimiter", "RateLimitConfig", "RateLimitState"]
