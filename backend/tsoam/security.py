# tsoam/security.py
"""
Password hashing and JWT helpers.

Stored password format is ``"<salt hex>:<pbkdf2-sha512 hex>"`` so hashes
written by the previous Node backend keep verifying.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from tsoam.config import get_settings

PBKDF2_ITERATIONS = 100_000
SALT_BYTES = 32
KEY_BYTES = 64


def hash_password(plain: str) -> str:
    salt = secrets.token_hex(SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha512", plain.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS, KEY_BYTES)
    return f"{salt}:{digest.hex()}"


def verify_password(plain: Any, stored: Any) -> bool:
    """False for anything that is not a well-formed ``salt:hash`` pair."""
    if not isinstance(plain, str) or not isinstance(stored, str):
        return False
    parts = stored.split(":")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return False
    salt, expected = parts
    digest = hashlib.pbkdf2_hmac("sha512", plain.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS, KEY_BYTES)
    return hmac.compare_digest(digest.hex(), expected)


def generate_temporary_password(length: int = 12) -> str:
    return secrets.token_urlsafe(length)[:length]


def create_access_token(claims: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    minutes = expires_minutes if expires_minutes is not None else settings.jwt_expires_minutes
    payload = dict(claims)
    payload["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Raises jwt.ExpiredSignatureError / jwt.InvalidTokenError."""
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
