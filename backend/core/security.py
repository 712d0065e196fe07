"""Password hashing and the signed-token codec for access/refresh tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Literal
from uuid import uuid4

import bcrypt
import jwt

from .config import settings

TokenType = Literal["access", "refresh"]

# bcrypt only looks at the first 72 bytes of the password.
BCRYPT_MAX_PASSWORD_BYTES = 72


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage."""
    salt = bcrypt.gensalt(rounds=settings.password_hash_rounds)
    return bcrypt.hashpw(_password_bytes(plain_password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash."""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def needs_rehash(hashed: str) -> bool:
    """Return True when the stored hash was produced with a different cost factor."""
    # bcrypt hashes look like $2b$12$<salt+digest>.
    parts = hashed.split("$")
    if len(parts) < 4:
        return True
    try:
        rounds = int(parts[2])
    except ValueError:
        return True
    return rounds != settings.password_hash_rounds


def _encode(
    claims: dict[str, Any],
    *,
    token_type: TokenType,
    secret: str,
    ttl: timedelta,
) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        **claims,
        "type": token_type,
        "iat": now,
        "exp": now + ttl,
        # Unique per token so two tokens issued within the same second differ.
        "jti": uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def _decode(token: str, *, token_type: TokenType, secret: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "iat", "type"]},
        )
    except jwt.PyJWTError as exc:
        raise ValueError("Invalid or expired token") from exc
    if payload.get("type") != token_type:
        raise ValueError(f"Expected {token_type} token")
    return payload


def create_access_token(
    subject: str,
    *,
    username: str,
    email: str,
    full_name: str,
) -> str:
    """Create a short-lived access token carrying the user's identity claims."""
    return _encode(
        {
            "sub": subject,
            "username": username,
            "email": email,
            "full_name": full_name,
        },
        token_type="access",
        secret=settings.access_token_secret.get_secret_value(),
        ttl=timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(subject: str) -> str:
    """Create a long-lived refresh token carrying only the user id."""
    return _encode(
        {"sub": subject},
        token_type="refresh",
        secret=settings.refresh_token_secret.get_secret_value(),
        ttl=timedelta(minutes=settings.refresh_token_expire_minutes),
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Raises ValueError when the signature, expiry or token type is invalid.
    """
    return _decode(
        token,
        token_type="access",
        secret=settings.access_token_secret.get_secret_value(),
    )


def decode_refresh_token(token: str) -> dict[str, Any]:
    """Decode and validate a refresh token.

    Raises ValueError when the signature, expiry or token type is invalid.
    """
    return _decode(
        token,
        token_type="refresh",
        secret=settings.refresh_token_secret.get_secret_value(),
    )
