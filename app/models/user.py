"""User records as seen by services and store adapters.

These types carry the password hash and must never be returned from a
route directly; use ``UserPublic.from_record`` for outward representations.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class NewUser:
    """A user about to be persisted; the store assigns the id."""

    name: str
    email: str
    password_hash: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UserRecord:
    """A persisted user."""

    id: str
    name: str
    email: str
    password_hash: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_new(cls, user_id: str, new_user: NewUser) -> "UserRecord":
        return cls(
            id=user_id,
            name=new_user.name,
            email=new_user.email,
            password_hash=new_user.password_hash,
            created_at=new_user.created_at,
            updated_at=new_user.updated_at,
        )

    def __repr__(self) -> str:
        return f"UserRecord(id={self.id!r}, email={self.email!r})"
