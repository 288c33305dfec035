"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: routes depend on a dependency function only.
- Explicit state: the limiter instance is built once by the app factory and
  kept on ``app.state``; nothing here holds process-wide globals.
- Swap-friendly: any AbstractRateLimiter can be plugged in.

Rate limiting strategy:
- Token bucket per client IP (burst N, refill N per window).
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryTokenBucketRateLimiter
from app.core.config import AppSettings, settings
from app.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests. Please try again later."


def build_rate_limiter(app_settings: AppSettings | None = None) -> AbstractRateLimiter:
    """Create the signup rate limiter from configuration.

    Args:
        app_settings: Optional settings group; defaults to global settings.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    cfg = app_settings or settings.app
    return InMemoryTokenBucketRateLimiter(
        rate=cfg.rate_limit_requests,
        per_seconds=cfg.rate_limit_window_seconds,
        burst=cfg.rate_limit_burst,
        max_keys=cfg.rate_limit_max_keys,
    )


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Resolve the limiter attached to the running application."""

    return request.app.state.rate_limiter


def client_ip(request: Request) -> str:
    """Return the client address FastAPI saw for this request."""

    return request.client.host if request.client else "unknown"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client IPs."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency enforcing the per-IP rate limit.

    Consumes one token from the caller's bucket. No persisted state is
    touched when a request is rejected.

    Raises:
        RateLimitAppError: 429 Too Many Requests when the bucket is empty.
    """

    if not settings.app.rate_limit_enabled:
        return

    limiter = get_rate_limiter(request)
    key = f"ip:{client_ip(request)}"
    key_hash = _hash_limiter_key(key)

    result = limiter.consume(key)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "remaining": result.remaining,
            "retry_after_s": retry_after,
            "path": request.url.path,
        },
    )

    headers: dict[str, str] | None = None
    if settings.app.rate_limit_include_headers:
        headers = {
            "Retry-After": str(retry_after),
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
            "X-RateLimit-Reset": str(result.reset_at),
        }

    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message=RATE_LIMIT_MESSAGE,
        headers=headers,
    )
