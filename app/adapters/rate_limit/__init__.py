"""Rate limiting adapters.

The HTTP layer talks to AbstractRateLimiter so the in-memory token bucket
can later be replaced by a shared store without touching the routes.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryTokenBucketRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryTokenBucketRateLimiter",
    "RateLimitResult",
]
