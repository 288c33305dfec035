"""Tests for credential store adapters and the store factory."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from app.adapters.user_store.base import DuplicateUserError, UserStoreError
from app.adapters.user_store.factory import create_user_store
from app.adapters.user_store.in_memory import InMemoryUserStore
from app.adapters.user_store.mongo import EMAIL_COLLATION, MongoUserStore
from app.core.config import DatabaseSettings
from app.core.errors import ConfigurationAppError
from app.models.user import NewUser

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def _new_user(email: str = "ann@x.com") -> NewUser:
    return NewUser(
        name="Ann",
        email=email,
        password_hash="$2b$04$abcdefghijklmnopqrstuu",
        created_at=NOW,
        updated_at=NOW,
    )


class TestInMemoryUserStore:

    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_is_findable(self):
        store = InMemoryUserStore()

        record = await store.insert(_new_user())

        assert ObjectId.is_valid(record.id)
        assert await store.find_by_email("ann@x.com") == record
        assert await store.find_by_email("bob@x.com") is None

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self):
        store = InMemoryUserStore()
        await store.insert(_new_user())

        with pytest.raises(DuplicateUserError):
            await store.insert(_new_user())

        assert len(store) == 1

    def test_repr_hides_password_hash(self):
        from app.models.user import UserRecord

        record = UserRecord.from_new("abc", _new_user())
        assert "$2b$" not in repr(record)


@pytest.fixture
def mongo_collection() -> MagicMock:
    return MagicMock()


@pytest.fixture
def mongo_store(mongo_collection: MagicMock) -> MongoUserStore:
    client = MagicMock()
    client.__getitem__.return_value.__getitem__.return_value = mongo_collection
    return MongoUserStore("mongodb://db", database="auth_db", client=client)


class TestMongoUserStore:

    @pytest.mark.asyncio
    async def test_find_by_email_maps_document(self, mongo_store, mongo_collection):
        oid = ObjectId()
        mongo_collection.find_one = AsyncMock(
            return_value={
                "_id": oid,
                "name": "Ann",
                "email": "ann@x.com",
                "password": "hash",
                "createdAt": NOW,
                "updatedAt": NOW,
            }
        )

        record = await mongo_store.find_by_email("ann@x.com")

        mongo_collection.find_one.assert_awaited_once_with(
            {"email": "ann@x.com"}, collation=EMAIL_COLLATION
        )
        assert record.id == str(oid)
        assert record.password_hash == "hash"
        assert record.created_at == NOW

    @pytest.mark.asyncio
    async def test_find_by_email_missing(self, mongo_store, mongo_collection):
        mongo_collection.find_one = AsyncMock(return_value=None)
        assert await mongo_store.find_by_email("ann@x.com") is None

    @pytest.mark.asyncio
    async def test_insert_writes_document_shape(self, mongo_store, mongo_collection):
        mongo_collection.insert_one = AsyncMock()

        record = await mongo_store.insert(_new_user())

        (doc,), _ = mongo_collection.insert_one.await_args
        assert str(doc["_id"]) == record.id
        assert doc["password"] == "$2b$04$abcdefghijklmnopqrstuu"
        assert doc["createdAt"] == NOW
        assert doc["updatedAt"] == NOW

    @pytest.mark.asyncio
    async def test_insert_duplicate_key(self, mongo_store, mongo_collection):
        mongo_collection.insert_one = AsyncMock(side_effect=DuplicateKeyError("E11000 duplicate key"))

        with pytest.raises(DuplicateUserError):
            await mongo_store.insert(_new_user())

    @pytest.mark.asyncio
    async def test_driver_errors_become_store_errors(self, mongo_store, mongo_collection):
        mongo_collection.find_one = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

        with pytest.raises(UserStoreError) as exc_info:
            await mongo_store.find_by_email("ann@x.com")

        assert not isinstance(exc_info.value, DuplicateUserError)

    @pytest.mark.asyncio
    async def test_initialize_creates_unique_email_index(self, mongo_store, mongo_collection):
        mongo_collection.create_index = AsyncMock()

        await mongo_store.initialize()

        mongo_collection.create_index.assert_awaited_once_with(
            "email", name="email_ci_unique", unique=True, collation=EMAIL_COLLATION
        )

    def test_email_collation_ignores_case(self):
        # Strength 2 compares base letters and accents, not case
        assert EMAIL_COLLATION.document == {"locale": "en", "strength": 2}

    @pytest.mark.asyncio
    async def test_lookup_returns_mixed_case_legacy_document(self, mongo_store, mongo_collection):
        mongo_collection.find_one = AsyncMock(
            return_value={
                "_id": ObjectId(),
                "name": "Ann",
                "email": "Ann@X.com",
                "password": "hash",
                "createdAt": NOW,
                "updatedAt": NOW,
            }
        )

        record = await mongo_store.find_by_email("ann@x.com")

        assert record.email == "Ann@X.com"
        _, kwargs = mongo_collection.find_one.await_args
        assert kwargs["collation"] is EMAIL_COLLATION


class TestCreateUserStore:

    def test_memory_backend(self):
        store = create_user_store(DatabaseSettings(backend="memory"))
        assert isinstance(store, InMemoryUserStore)

    def test_mongo_backend(self):
        store = create_user_store(DatabaseSettings(backend="mongo", uri="mongodb://localhost:27017"))
        assert isinstance(store, MongoUserStore)

    def test_mongo_backend_requires_uri(self):
        with pytest.raises(ConfigurationAppError) as exc_info:
            create_user_store(DatabaseSettings(backend="mongo", uri=None))
        assert exc_info.value.code == "db_missing_uri"

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationAppError) as exc_info:
            create_user_store(DatabaseSettings(backend="postgres"))
        assert exc_info.value.code == "db_unknown_backend"
