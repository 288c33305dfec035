"""Password hashing and bearer token signing.

Design principles:
- Passwords are hashed with bcrypt (salted, adaptive cost factor).
- Tokens are HS256 JWTs with claims ``{id, email, exp}``; ``decode`` uses
  the same algorithm/secret pair so a verifier can be added without changing
  the claim shape.
- Library failures are logged here and surfaced as AppError subclasses with
  generic, client-safe messages.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import bcrypt
from jose import JOSEError, jwt

from app.core.config import AuthSettings, settings
from app.core.errors import ConfigurationAppError, InternalAppError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a password with bcrypt.

    Args:
        password: Plaintext password.
        rounds: Cost factor; defaults to ``AUTH_BCRYPT_ROUNDS``.

    Raises:
        InternalAppError: If the hashing library fails.
    """
    cost = rounds if rounds is not None else settings.auth.bcrypt_rounds
    try:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=cost)).decode()
    except (ValueError, TypeError) as exc:
        logger.error(
            "password.hash_failed",
            extra={"error_type": type(exc).__name__, "rounds": cost},
        )
        raise InternalAppError(
            code="password_hashing_failed",
            message="An unexpected error occurred. Please try again later.",
        ) from exc


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison against a bcrypt hash.

    Malformed hashes and oversized inputs count as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


class TokenIssuer:
    """Signs time-bound bearer tokens with a symmetric secret.

    The secret is fixed at construction. A missing secret does not fail
    construction; every ``issue`` call raises ConfigurationAppError instead.
    """

    def __init__(
        self,
        secret: str | None,
        *,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._secret = secret or None
        self._algorithm = algorithm
        self._ttl = ttl
        self._clock = clock

    @classmethod
    def from_settings(cls, auth_settings: AuthSettings | None = None) -> "TokenIssuer":
        cfg = auth_settings or settings.auth
        if not cfg.jwt_secret:
            logger.warning("token_issuer.secret_missing")
        return cls(
            cfg.jwt_secret,
            algorithm=cfg.jwt_algorithm,
            ttl=timedelta(hours=cfg.token_ttl_hours),
        )

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def configured(self) -> bool:
        return self._secret is not None

    def _require_secret(self) -> str:
        if self._secret is None:
            raise ConfigurationAppError(
                code="configuration_error",
                message="Server configuration error",
            )
        return self._secret

    def issue(self, user_id: str, email: str) -> str:
        """Sign a token for the given user.

        Raises:
            ConfigurationAppError: If no signing secret is configured.
            InternalAppError: If signing fails.
        """
        secret = self._require_secret()
        claims: dict[str, Any] = {
            "id": user_id,
            "email": email,
            "exp": int((self._clock() + self._ttl).timestamp()),
        }
        try:
            return jwt.encode(claims, secret, algorithm=self._algorithm)
        except JOSEError as exc:
            logger.error("token.sign_failed", extra={"error_type": type(exc).__name__})
            raise InternalAppError(
                code="token_signing_failed",
                message="An unexpected error occurred. Please try again later.",
            ) from exc

    def decode(self, token: str) -> dict[str, Any]:
        """Validate signature and expiry, returning the claims.

        Raises:
            ConfigurationAppError: If no signing secret is configured.
            jose.JWTError: If the token is malformed, tampered with or expired.
        """
        secret = self._require_secret()
        return jwt.decode(token, secret, algorithms=[self._algorithm])
