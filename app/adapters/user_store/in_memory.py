"""In-memory credential store for tests and local development.

Per-process only; data is lost on restart.
"""

from __future__ import annotations

import threading

from bson import ObjectId

from app.adapters.user_store.base import AbstractUserStore, DuplicateUserError
from app.models.user import NewUser, UserRecord


class InMemoryUserStore(AbstractUserStore):
    """Dict-backed store with an email index.

    The uniqueness check and the write happen under one lock, so two
    concurrent inserts for the same email cannot both succeed.
    """

    def __init__(self) -> None:
        self._users: dict[str, UserRecord] = {}
        self._ids_by_email: dict[str, str] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._users)

    async def find_by_email(self, email: str) -> UserRecord | None:
        user_id = self._ids_by_email.get(email)
        return self._users.get(user_id) if user_id else None

    async def insert(self, user: NewUser) -> UserRecord:
        with self._lock:
            if user.email in self._ids_by_email:
                raise DuplicateUserError("email already registered")
            record = UserRecord.from_new(str(ObjectId()), user)
            self._users[record.id] = record
            self._ids_by_email[record.email] = record.id
            return record
