"""Credential store adapters - abstracts over the user persistence backend."""

from app.adapters.user_store.base import AbstractUserStore, DuplicateUserError, UserStoreError
from app.adapters.user_store.factory import create_user_store
from app.adapters.user_store.in_memory import InMemoryUserStore
from app.adapters.user_store.mongo import MongoUserStore

__all__ = [
    "AbstractUserStore",
    "DuplicateUserError",
    "InMemoryUserStore",
    "MongoUserStore",
    "UserStoreError",
    "create_user_store",
]
