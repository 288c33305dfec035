"""Credential store interface.

Services depend on this abstraction; the concrete backend is chosen by
``create_user_store`` from configuration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from app.models.user import NewUser, UserRecord


class UserStoreError(Exception):
    """Raised when the backend fails to execute an operation."""


class DuplicateUserError(UserStoreError):
    """Raised when an insert violates email uniqueness."""


class AbstractUserStore(ABC):
    """Persistence for user records, unique by email."""

    @abstractmethod
    async def find_by_email(self, email: str) -> UserRecord | None:
        """Return the user with ``email`` or None.

        Raises:
            UserStoreError: If the lookup itself fails.
        """
        ...

    @abstractmethod
    async def insert(self, user: NewUser) -> UserRecord:
        """Persist a new user and return it with its generated id.

        Raises:
            DuplicateUserError: If a user with the same email exists.
            UserStoreError: If the write fails.
        """
        ...

    async def ping(self) -> bool:
        """Return True when the backend is reachable."""
        return True

    async def initialize(self) -> None:
        """Prepare the backend (indexes, connections). Idempotent."""

    async def close(self) -> None:
        """Release backend resources."""
