"""Pytest configuration and fixtures shared across all test modules.

This file is loaded by pytest before any test module, so the environment
below is in place before ``app.core.config.settings`` is created.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ["DB_BACKEND"] = "memory"
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret-key")
# Minimum bcrypt cost keeps the suite fast
os.environ.setdefault("AUTH_BCRYPT_ROUNDS", "4")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.adapters.user_store.in_memory import InMemoryUserStore
from app.core.app_factory import create_app
from app.core.security import TokenIssuer

TEST_SECRET = os.environ["AUTH_JWT_SECRET"]


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(TEST_SECRET)


@pytest.fixture
def app(user_store: InMemoryUserStore, token_issuer: TokenIssuer) -> FastAPI:
    """Fresh app per test so rate limiter state never leaks between tests."""
    return create_app(user_store=user_store, token_issuer=token_issuer)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def signup_payload() -> dict[str, str]:
    return {"name": "Ann", "email": "ann@x.com", "password": "secret1"}
