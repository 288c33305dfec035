"""Unit tests for password hashing and token issuance."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from jose import JWTError, jwt

from app.core.errors import ConfigurationAppError, InternalAppError
from app.core.security import TokenIssuer, hash_password, verify_password


class TestPasswordHashing:
    """bcrypt wrapper behaviour."""

    @pytest.mark.parametrize("password", ["secret1", "correct horse battery", "pässwörd"])
    def test_verify_accepts_own_hash(self, password: str) -> None:
        hashed = hash_password(password, rounds=4)
        assert verify_password(password, hashed) is True

    def test_verify_rejects_other_password(self) -> None:
        hashed = hash_password("secret1", rounds=4)
        assert verify_password("secret2", hashed) is False

    def test_hash_is_salted(self) -> None:
        assert hash_password("secret1", rounds=4) != hash_password("secret1", rounds=4)

    def test_hash_never_contains_plaintext(self) -> None:
        hashed = hash_password("secret1", rounds=4)
        assert "secret1" not in hashed
        assert hashed.startswith("$2")

    def test_malformed_hash_is_a_mismatch(self) -> None:
        assert verify_password("secret1", "not-a-bcrypt-hash") is False

    def test_hashing_failure_raises_internal_error(self) -> None:
        with patch("app.core.security.bcrypt.gensalt", side_effect=ValueError("invalid rounds")):
            with pytest.raises(InternalAppError) as exc_info:
                hash_password("secret1", rounds=4)

        assert exc_info.value.code == "password_hashing_failed"
        assert "rounds" not in exc_info.value.message


class TestTokenIssuer:
    """Token signing and the companion decode path."""

    def test_issue_signs_expected_claims(self) -> None:
        fixed_now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        issuer = TokenIssuer("s3cret", clock=lambda: fixed_now)

        token = issuer.issue("65a1f0c2e4b0a1b2c3d4e5f6", "ann@x.com")
        claims = jwt.decode(
            token,
            "s3cret",
            algorithms=["HS256"],
            options={"verify_exp": False},
        )

        assert claims == {
            "id": "65a1f0c2e4b0a1b2c3d4e5f6",
            "email": "ann@x.com",
            "exp": int((fixed_now + timedelta(hours=24)).timestamp()),
        }
        assert jwt.get_unverified_header(token)["alg"] == "HS256"

    def test_decode_round_trips_fresh_token(self) -> None:
        issuer = TokenIssuer("s3cret")
        claims = issuer.decode(issuer.issue("user-1", "ann@x.com"))
        assert claims["id"] == "user-1"
        assert claims["email"] == "ann@x.com"

    def test_decode_rejects_foreign_secret(self) -> None:
        token = TokenIssuer("other-secret").issue("user-1", "ann@x.com")
        with pytest.raises(JWTError):
            TokenIssuer("s3cret").decode(token)

    def test_decode_rejects_expired_token(self) -> None:
        past = datetime.now(timezone.utc) - timedelta(days=2)
        token = TokenIssuer("s3cret", clock=lambda: past).issue("user-1", "ann@x.com")
        with pytest.raises(JWTError):
            TokenIssuer("s3cret").decode(token)

    @pytest.mark.parametrize("secret", [None, ""])
    def test_missing_secret_fails_every_issue(self, secret) -> None:
        issuer = TokenIssuer(secret)
        assert issuer.configured is False

        for _ in range(2):
            with pytest.raises(ConfigurationAppError) as exc_info:
                issuer.issue("user-1", "ann@x.com")
            assert exc_info.value.code == "configuration_error"

    def test_from_settings_uses_configured_ttl(self) -> None:
        from app.core.config import AuthSettings

        cfg = AuthSettings(jwt_secret="abc", token_ttl_hours=1)
        fixed_now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        issuer = TokenIssuer.from_settings(cfg)
        issuer._clock = lambda: fixed_now

        claims = jwt.decode(
            issuer.issue("u", "e@x.com"),
            "abc",
            algorithms=["HS256"],
            options={"verify_exp": False},
        )
        assert claims["exp"] == int((fixed_now + timedelta(hours=1)).timestamp())
