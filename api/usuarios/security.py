"""
Credential and token helpers.
"""

from __future__ import annotations

import hmac
import time

import bcrypt
import jwt

from core.config import Settings

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
# bcrypt only looks at the first 72 bytes and newer releases refuse longer input.
MAX_PASSWORD_BYTES = 72


class AuthSecurityError(RuntimeError):
    pass


def now_epoch_s() -> int:
    return int(time.time())


def is_hashed(stored: str) -> bool:
    return (stored or "").startswith(BCRYPT_PREFIXES)


def fits_bcrypt(plain_password: str) -> bool:
    return len((plain_password or "").encode("utf-8")) <= MAX_PASSWORD_BYTES


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise AuthSecurityError("Password is empty.")
    if len(password) > MAX_PASSWORD_BYTES:
        raise AuthSecurityError(f"Password is longer than {MAX_PASSWORD_BYTES} bytes.")
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, stored: str) -> bool:
    """
    Check a password against the stored credential.

    Rows written before hashing was introduced still hold plaintext; those are
    compared in constant time and should be rehashed by the caller
    (see `needs_rehash`).
    """
    password = (plain_password or "").encode("utf-8")
    stored_bytes = (stored or "").encode("utf-8")
    if not password or not stored_bytes:
        return False
    if not is_hashed(stored):
        return hmac.compare_digest(password, stored_bytes)
    if len(password) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(password, stored_bytes)
    except ValueError:
        return False


def needs_rehash(stored: str) -> bool:
    return not is_hashed(stored)


def build_access_token(settings: Settings, *, user_id: int, nombre: str) -> str:
    issued_at = now_epoch_s()
    expires_at = issued_at + (settings.access_token_expire_minutes * 60)

    claims = {
        "sub": str(user_id),
        "nombre": nombre,
        "type": "access",
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
