"""Tests for password hashing, token signing and settings validation."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from pydantic import ValidationError

from core import (
    Settings,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    needs_rehash,
    verify_password,
)
from core.config import settings


def test_hash_password_round_trip():
    hashed = hash_password("Sup3rSecret!")

    assert hashed != "Sup3rSecret!"
    assert verify_password("Sup3rSecret!", hashed)
    assert not verify_password("sup3rsecret!", hashed)


def test_verify_password_handles_missing_or_garbage_hash():
    assert verify_password("anything", None) is False
    assert verify_password("anything", "not-a-bcrypt-hash") is False


def test_needs_rehash_tracks_cost_factor():
    assert needs_rehash(hash_password("Sup3rSecret!")) is False
    assert needs_rehash("$2b$13$" + "a" * 53) is True
    assert needs_rehash("garbage") is True


def test_access_token_carries_identity_claims():
    token = create_access_token(
        "user-1",
        username="alice",
        email="alice@example.com",
        full_name="Alice Example",
    )

    claims = decode_access_token(token)

    assert claims["sub"] == "user-1"
    assert claims["username"] == "alice"
    assert claims["email"] == "alice@example.com"
    assert claims["full_name"] == "Alice Example"
    assert claims["type"] == "access"


def test_refresh_token_carries_only_subject():
    claims = decode_refresh_token(create_refresh_token("user-1"))

    assert claims["sub"] == "user-1"
    assert claims["type"] == "refresh"
    assert "username" not in claims
    assert "email" not in claims


def test_tokens_issued_back_to_back_differ():
    assert create_refresh_token("user-1") != create_refresh_token("user-1")


def test_token_kinds_are_not_interchangeable():
    access = create_access_token("user-1", username="a", email="a@example.com", full_name="A")
    refresh = create_refresh_token("user-1")

    with pytest.raises(ValueError):
        decode_refresh_token(access)
    with pytest.raises(ValueError):
        decode_access_token(refresh)


def test_refresh_token_signed_with_access_secret_is_rejected():
    now = datetime.now(timezone.utc)
    forged = jwt.encode(
        {"sub": "user-1", "type": "refresh", "iat": now, "exp": now + timedelta(minutes=5)},
        settings.access_token_secret.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(ValueError):
        decode_refresh_token(forged)


def test_expired_access_token_is_rejected():
    issued = datetime.now(timezone.utc) - timedelta(hours=2)
    expired = jwt.encode(
        {
            "sub": "user-1",
            "type": "access",
            "iat": issued,
            "exp": issued + timedelta(minutes=1),
        },
        settings.access_token_secret.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(ValueError):
        decode_access_token(expired)


def test_settings_reject_shared_token_secret():
    with pytest.raises(ValidationError):
        Settings(access_token_secret="same-secret", refresh_token_secret="same-secret")


def test_settings_reject_sync_database_driver():
    with pytest.raises(ValidationError):
        Settings(database_url="postgresql://localhost/videotube")


def test_settings_reject_out_of_range_hash_rounds():
    with pytest.raises(ValidationError):
        Settings(password_hash_rounds=3)


def test_cookies_are_secure_outside_local_environments():
    assert Settings(app_env="production").cookies_secure is True
    assert Settings(app_env="production", allow_insecure_http_cookies=True).cookies_secure is False
    assert Settings(app_env="test").cookies_secure is False
