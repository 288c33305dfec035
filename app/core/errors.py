"""Application-level exception types.

This module defines domain errors raised by services/adapters. Each subclass
maps to one HTTP status in ``app.core.exception_handlers`` so routes never
build error responses by hand.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict


class ErrorDetails(TypedDict, total=False):
    """Client-safe context returned under ``error.details``."""

    field: str


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message (safe to show to clients).
        details: Optional structured details returned with the error.
        headers: Optional extra response headers (e.g. Retry-After).
    """

    code: str
    message: str
    details: ErrorDetails | None = None
    headers: dict[str, str] | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input fails validation.

    ``details["field"]`` names the offending field when it is known.
    """


class AuthenticationAppError(AppError):
    """Raised when credentials are rejected.

    The message must stay identical for every cause to avoid account
    enumeration.
    """


class ConflictAppError(AppError):
    """Raised when a resource already exists."""


class RateLimitAppError(AppError):
    """Raised when a client exceeds its request budget."""


class ConfigurationAppError(AppError):
    """Raised when the server is missing required configuration."""


class StoreAppError(AppError):
    """Raised when the credential store fails or times out."""


class InternalAppError(AppError):
    """Raised for other server-side failures (e.g. password hashing)."""
