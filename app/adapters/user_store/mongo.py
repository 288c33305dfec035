"""MongoDB credential store using the pymongo async client.

Documents live in a single collection with a unique, case-insensitive index
on ``email``; the index is what makes concurrent duplicate signups fail on
insert.
"""

from __future__ import annotations

import logging
from typing import Any

from bson import ObjectId
from pymongo import AsyncMongoClient
from pymongo.collation import Collation, CollationStrength
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.adapters.user_store.base import AbstractUserStore, DuplicateUserError, UserStoreError
from app.models.user import NewUser, UserRecord

logger = logging.getLogger(__name__)

# Case-insensitive match so documents stored with mixed-case emails still
# resolve and conflict with their lower-cased form
EMAIL_COLLATION = Collation(locale="en", strength=CollationStrength.SECONDARY)
EMAIL_INDEX_NAME = "email_ci_unique"


def _to_document(user: NewUser, user_id: ObjectId) -> dict[str, Any]:
    return {
        "_id": user_id,
        "name": user.name,
        "email": user.email,
        "password": user.password_hash,
        "createdAt": user.created_at,
        "updatedAt": user.updated_at,
    }


def _from_document(doc: dict[str, Any]) -> UserRecord:
    return UserRecord(
        id=str(doc["_id"]),
        name=doc["name"],
        email=doc["email"],
        password_hash=doc["password"],
        created_at=doc["createdAt"],
        updated_at=doc["updatedAt"],
    )


class MongoUserStore(AbstractUserStore):
    """User store backed by a MongoDB collection.

    The client is created lazily on first use so it binds to the running
    event loop rather than the one (if any) active at import time.
    """

    def __init__(
        self,
        uri: str,
        *,
        database: str,
        collection: str = "users",
        timeout_seconds: float = 10.0,
        client: Any | None = None,
    ) -> None:
        self._uri = uri
        self._database = database
        self._collection_name = collection
        self._timeout_ms = int(timeout_seconds * 1000)
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = AsyncMongoClient(
                self._uri,
                tz_aware=True,
                serverSelectionTimeoutMS=self._timeout_ms,
            )
        return self._client

    def _collection(self) -> Any:
        return self._get_client()[self._database][self._collection_name]

    async def initialize(self) -> None:
        try:
            await self._collection().create_index(
                "email",
                name=EMAIL_INDEX_NAME,
                unique=True,
                collation=EMAIL_COLLATION,
            )
        except PyMongoError as exc:
            raise UserStoreError("failed to ensure indexes") from exc
        logger.info(
            "user_store.initialized",
            extra={"database": self._database, "collection": self._collection_name},
        )

    async def find_by_email(self, email: str) -> UserRecord | None:
        try:
            doc = await self._collection().find_one({"email": email}, collation=EMAIL_COLLATION)
        except PyMongoError as exc:
            raise UserStoreError("user lookup failed") from exc
        return _from_document(doc) if doc else None

    async def insert(self, user: NewUser) -> UserRecord:
        user_id = ObjectId()
        try:
            await self._collection().insert_one(_to_document(user, user_id))
        except DuplicateKeyError as exc:
            raise DuplicateUserError("email already registered") from exc
        except PyMongoError as exc:
            raise UserStoreError("user insert failed") from exc
        return UserRecord.from_new(str(user_id), user)

    async def ping(self) -> bool:
        try:
            await self._get_client().admin.command("ping")
        except PyMongoError as exc:
            logger.warning("user_store.ping_failed", extra={"error_type": type(exc).__name__})
            return False
        return True

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
