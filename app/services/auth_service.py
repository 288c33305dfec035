"""Authentication service orchestrating the credential store, hasher and issuer.

This is the core business logic behind the signup and login endpoints:
- Duplicate-email detection (lookup first, unique insert as the final word)
- Password hashing/verification off the event loop
- Token issuance for verified credentials
- Translation of adapter failures into AppError subclasses

Inputs arrive already validated by the request schemas.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, TypeVar

from app.adapters.user_store.base import AbstractUserStore, DuplicateUserError, UserStoreError
from app.core.errors import AuthenticationAppError, ConflictAppError, StoreAppError
from app.core.logging import mask_email
from app.core.security import TokenIssuer, hash_password, verify_password
from app.models.user import NewUser
from app.schemas.auth import LoginRequest, SignUpRequest, TokenResponse, UserPublic

logger = logging.getLogger(__name__)

T = TypeVar("T")

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
USER_EXISTS_MESSAGE = "A user with this email already exists"
STORE_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    """Signup/login use cases.

    Attributes:
        store: Credential store adapter.
        token_issuer: Signs tokens for authenticated users.
        operation_timeout: Seconds allowed for each store operation.
    """

    def __init__(
        self,
        *,
        store: AbstractUserStore,
        token_issuer: TokenIssuer,
        operation_timeout: float = 10.0,
        bcrypt_rounds: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.token_issuer = token_issuer
        self.operation_timeout = operation_timeout
        self._bcrypt_rounds = bcrypt_rounds
        self._clock = clock
        # Unknown-email logins are checked against this so they cost a bcrypt round too
        self._dummy_hash = hash_password(secrets.token_urlsafe(16), bcrypt_rounds)

    async def _run_store(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        """Run a store call under the per-operation timeout.

        DuplicateUserError propagates unchanged; every other failure becomes
        a StoreAppError. Nothing is retried.
        """
        try:
            return await asyncio.wait_for(call(), timeout=self.operation_timeout)
        except DuplicateUserError:
            raise
        except asyncio.TimeoutError as exc:
            logger.error(
                "auth.store_timeout",
                extra={"operation": operation, "timeout_seconds": self.operation_timeout},
            )
            raise StoreAppError(code="store_error", message=STORE_ERROR_MESSAGE) from exc
        except UserStoreError as exc:
            logger.error(
                "auth.store_failed",
                extra={"operation": operation, "error_msg": str(exc), "cause": repr(exc.__cause__)},
            )
            raise StoreAppError(code="store_error", message=STORE_ERROR_MESSAGE) from exc

    async def _in_executor(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def signup(self, payload: SignUpRequest) -> UserPublic:
        """Register a new user.

        Raises:
            ConflictAppError: A user with this email already exists.
            StoreAppError: The store failed or timed out.
            InternalAppError: Password hashing failed.
        """
        email = payload.email
        existing = await self._run_store("find_by_email", lambda: self.store.find_by_email(email))
        if existing is not None:
            logger.info("auth.signup.conflict", extra={"email": mask_email(email)})
            raise ConflictAppError(code="user_exists", message=USER_EXISTS_MESSAGE)

        password_hash = await self._in_executor(hash_password, payload.password, self._bcrypt_rounds)

        now = self._clock()
        new_user = NewUser(
            name=payload.name,
            email=email,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        try:
            record = await self._run_store("insert", lambda: self.store.insert(new_user))
        except DuplicateUserError as exc:
            # Lost a race with a concurrent signup for the same email
            logger.info("auth.signup.conflict", extra={"email": mask_email(email), "race": True})
            raise ConflictAppError(code="user_exists", message=USER_EXISTS_MESSAGE) from exc

        logger.info("auth.signup.created", extra={"user_id": record.id, "email": mask_email(email)})
        return UserPublic.from_record(record)

    async def login(self, payload: LoginRequest) -> TokenResponse:
        """Exchange valid credentials for a bearer token.

        Unknown email and wrong password raise the same AuthenticationAppError.

        Raises:
            AuthenticationAppError: Credentials rejected.
            StoreAppError: The store failed or timed out.
            ConfigurationAppError: No signing secret configured.
        """
        email = payload.email
        user = await self._run_store("find_by_email", lambda: self.store.find_by_email(email))

        if user is None:
            await self._in_executor(verify_password, payload.password, self._dummy_hash)
            logger.info("auth.login.rejected", extra={"email": mask_email(email), "reason": "unknown_email"})
            raise AuthenticationAppError(code="invalid_credentials", message=INVALID_CREDENTIALS_MESSAGE)

        matches = await self._in_executor(verify_password, payload.password, user.password_hash)
        if not matches:
            logger.info("auth.login.rejected", extra={"email": mask_email(email), "reason": "bad_password"})
            raise AuthenticationAppError(code="invalid_credentials", message=INVALID_CREDENTIALS_MESSAGE)

        token = self.token_issuer.issue(user.id, user.email)
        logger.info("auth.login.succeeded", extra={"user_id": user.id})
        return TokenResponse(token=token)
