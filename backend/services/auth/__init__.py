"""Authentication domain services."""

from .cookies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    clear_token_cookies,
    set_token_cookies,
)
from .identity_resolution import (
    INVALID_USERNAME_MESSAGE,
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    USERNAME_MAX_LENGTH,
    find_login_user,
    get_user_by_id,
    get_user_by_username,
    normalize_email,
    normalize_username,
    registration_conflict_exists,
    validate_username,
)
from .session_manager import (
    LoginResult,
    TokenPair,
    change_password,
    issue_tokens,
    login,
    logout,
    refresh_tokens,
)
from .token_store import (
    clear_refresh_token,
    refresh_tokens_match,
    rotate_refresh_token,
    store_password_hash,
    store_refresh_token,
)

__all__ = [
    "ACCESS_COOKIE",
    "REFRESH_COOKIE",
    "clear_token_cookies",
    "set_token_cookies",
    "find_login_user",
    "get_user_by_id",
    "get_user_by_username",
    "normalize_email",
    "normalize_username",
    "registration_conflict_exists",
    "validate_username",
    "INVALID_USERNAME_MESSAGE",
    "PASSWORD_MAX_LENGTH",
    "PASSWORD_MIN_LENGTH",
    "USERNAME_MAX_LENGTH",
    "LoginResult",
    "TokenPair",
    "change_password",
    "issue_tokens",
    "login",
    "logout",
    "refresh_tokens",
    "clear_refresh_token",
    "refresh_tokens_match",
    "rotate_refresh_token",
    "store_password_hash",
    "store_refresh_token",
]
