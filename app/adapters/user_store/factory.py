"""Factory for creating credential store instances."""

from app.adapters.user_store.base import AbstractUserStore
from app.adapters.user_store.in_memory import InMemoryUserStore
from app.adapters.user_store.mongo import MongoUserStore
from app.core.config import DatabaseSettings, settings
from app.core.errors import ConfigurationAppError


def create_user_store(db_settings: DatabaseSettings | None = None) -> AbstractUserStore:
    """Instantiate the user store selected by ``DB_BACKEND``.

    Returns:
        AbstractUserStore: Configured store instance.

    Raises:
        ConfigurationAppError: If backend-specific requirements are not met.
    """
    cfg = db_settings or settings.db
    backend = cfg.backend.lower()

    if backend == "memory":
        return InMemoryUserStore()

    if backend == "mongo":
        if not cfg.uri:
            raise ConfigurationAppError(
                code="db_missing_uri",
                message="Mongo backend requires DB_URI (or MONGO_URI) environment variable",
            )
        return MongoUserStore(
            cfg.uri,
            database=cfg.name,
            collection=cfg.users_collection,
            timeout_seconds=cfg.operation_timeout_seconds,
        )

    raise ConfigurationAppError(
        code="db_unknown_backend",
        message=f"Unknown store backend: '{backend}'. Supported backends: mongo, memory",
    )
