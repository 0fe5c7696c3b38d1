"""
Tests for credential hashing and login tokens.
"""

import jwt
import pytest

from core.config import Settings
from usuarios import security


@pytest.fixture
def token_settings() -> Settings:
    return Settings(
        database_url="postgresql://test",
        jwt_secret="test-secret-for-login-tokens-0001",
        access_token_expire_minutes=5,
    )


class TestPasswords:
    def test_hash_and_verify(self) -> None:
        hashed = security.hash_password("s3cret")
        assert security.is_hashed(hashed)
        assert security.verify_password("s3cret", hashed)
        assert not security.verify_password("wrong", hashed)
        assert not security.needs_rehash(hashed)

    def test_legacy_plaintext(self) -> None:
        assert security.verify_password("s3cret", "s3cret")
        assert not security.verify_password("s3cret", "other")
        assert security.needs_rehash("s3cret")

    def test_empty_values_never_match(self) -> None:
        assert not security.verify_password("", "")
        assert not security.verify_password("x", "")

    def test_empty_password_cannot_be_hashed(self) -> None:
        with pytest.raises(security.AuthSecurityError):
            security.hash_password("")


class TestLongPasswords:
    def test_byte_limit_counts_utf8_bytes(self) -> None:
        assert security.fits_bcrypt("x" * 72)
        assert not security.fits_bcrypt("x" * 80)
        assert not security.fits_bcrypt("ñ" * 40)

    def test_long_password_is_not_hashed(self) -> None:
        with pytest.raises(security.AuthSecurityError):
            security.hash_password("ñ" * 40)

    def test_long_password_never_matches_a_hash(self) -> None:
        hashed = security.hash_password("x" * 72)
        assert not security.verify_password("x" * 80, hashed)


class TestAccessToken:
    def test_claims(self, token_settings) -> None:
        token = security.build_access_token(token_settings, user_id=7, nombre="ana")
        claims = jwt.decode(token, token_settings.jwt_secret, algorithms=[token_settings.jwt_algorithm])
        assert claims["sub"] == "7"
        assert claims["nombre"] == "ana"
        assert claims["type"] == "access"
        assert claims["exp"] - claims["iat"] == 300

    def test_signed_with_configured_secret(self, token_settings) -> None:
        token = security.build_access_token(token_settings, user_id=7, nombre="ana")
        with pytest.raises(jwt.InvalidSignatureError):
            jwt.decode(token, "another-secret-for-login-tokens-02", algorithms=["HS256"])
