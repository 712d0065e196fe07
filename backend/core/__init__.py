"""Core configuration, security and error primitives."""

from .config import Settings, get_settings, settings
from .errors import ApiError
from .logging import configure_logging
from .security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    needs_rehash,
    verify_password,
)

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "ApiError",
    "configure_logging",
    "create_access_token",
    "create_refresh_token",
    "decode_access_token",
    "decode_refresh_token",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
