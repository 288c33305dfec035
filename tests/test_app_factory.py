"""Tests for create_app collaborator wiring."""

import pytest

from app.adapters.rate_limit.in_memory import InMemoryTokenBucketRateLimiter
from app.adapters.user_store.in_memory import InMemoryUserStore
from app.core.app_factory import create_app
from app.core.config import settings
from app.core.security import TokenIssuer


def test_injected_empty_collaborators_are_kept():
    store = InMemoryUserStore()
    limiter = InMemoryTokenBucketRateLimiter(rate=1, per_seconds=60, burst=1)
    issuer = TokenIssuer("test-secret")

    # Both are empty, so len() is 0
    assert len(store) == 0
    assert len(limiter) == 0

    app = create_app(user_store=store, token_issuer=issuer, rate_limiter=limiter)

    assert app.state.user_store is store
    assert app.state.rate_limiter is limiter
    assert app.state.token_issuer is issuer
    assert app.state.auth_service.store is store
    assert app.state.auth_service.token_issuer is issuer


def test_injected_store_skips_settings_backend(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings.db, "backend", "mongo")
    monkeypatch.setattr(settings.db, "uri", None)
    store = InMemoryUserStore()

    app = create_app(user_store=store, token_issuer=TokenIssuer("test-secret"))

    assert app.state.user_store is store


def test_store_built_from_settings_when_omitted():
    app = create_app(token_issuer=TokenIssuer("test-secret"))

    assert isinstance(app.state.user_store, InMemoryUserStore)
    assert isinstance(app.state.rate_limiter, InMemoryTokenBucketRateLimiter)
