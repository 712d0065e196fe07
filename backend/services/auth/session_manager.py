"""Credential verification and the access/refresh token pair lifecycle.

Each user holds at most one live refresh token. Login and refresh replace it,
logout clears it, and a refresh presenting any other value is rejected. The
rotation write is a compare-and-swap so that two concurrent refreshes with
the same token cannot both succeed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core import (
    ApiError,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    needs_rehash,
    verify_password,
)
from models import User

from .identity_resolution import find_login_user, get_user_by_id
from .token_store import (
    clear_refresh_token,
    refresh_tokens_match,
    rotate_refresh_token,
    store_password_hash,
    store_refresh_token,
)

logger = logging.getLogger(__name__)

TOKEN_ISSUE_FAILED = "Something went wrong while generating tokens"
REFRESH_TOKEN_REUSED = "Refresh token is expired or used"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class LoginResult:
    user: User
    tokens: TokenPair


def _mint_pair(user: User) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(
            user.id,
            username=user.username,
            email=user.email,
            full_name=user.full_name,
        ),
        refresh_token=create_refresh_token(user.id),
    )


async def _require_user(session: AsyncSession, user_id: str) -> User:
    user = await get_user_by_id(session, user_id)
    if user is None:
        raise ApiError.not_found("User not found")
    return user


async def _commit_or_fail(session: AsyncSession, message: str) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception(message)
        raise ApiError.internal(message) from exc


async def issue_tokens(session: AsyncSession, user_id: str) -> TokenPair:
    """Mint a fresh pair for the user and store the refresh token on the record."""
    user = await _require_user(session, user_id)
    try:
        pair = _mint_pair(user)
        stored = await store_refresh_token(session, user.id, pair.refresh_token)
    except (SQLAlchemyError, ValueError, TypeError) as exc:
        await session.rollback()
        logger.exception(TOKEN_ISSUE_FAILED, extra={"user_id": user_id})
        raise ApiError.internal(TOKEN_ISSUE_FAILED) from exc
    if not stored:
        await session.rollback()
        raise ApiError.internal(TOKEN_ISSUE_FAILED)
    await _commit_or_fail(session, TOKEN_ISSUE_FAILED)
    return pair


async def login(
    session: AsyncSession,
    *,
    username: str | None,
    email: str | None,
    password: str,
) -> LoginResult:
    """Authenticate by username or email and issue a new token pair."""
    if not (username and username.strip()) and not (email and email.strip()):
        raise ApiError.bad_request("Username or email is required")

    user = await find_login_user(session, username=username, email=email)
    if user is None:
        raise ApiError.not_found("User not found")

    if not verify_password(password, user.password_hash):
        raise ApiError.unauthorized("Invalid user credentials")

    if needs_rehash(user.password_hash):
        new_hash = hash_password(password)
        await store_password_hash(session, user.id, new_hash)

    tokens = await issue_tokens(session, user.id)
    return LoginResult(user=user, tokens=tokens)


async def refresh_tokens(session: AsyncSession, presented: str | None) -> TokenPair:
    """Exchange a live refresh token for a new pair, invalidating the old one."""
    if not presented:
        raise ApiError.unauthorized("Unauthorized request")

    try:
        payload = decode_refresh_token(presented)
    except ValueError as exc:
        raise ApiError.unauthorized("Invalid or expired refresh token") from exc

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise ApiError.unauthorized("Invalid refresh token")

    user = await get_user_by_id(session, subject)
    if user is None:
        raise ApiError.unauthorized("Invalid refresh token")

    # Rollback expires the instance, so log with the plain id.
    user_id = user.id
    if not refresh_tokens_match(user.refresh_token, presented):
        logger.warning("Rejected stale refresh token", extra={"user_id": user_id})
        raise ApiError.unauthorized(REFRESH_TOKEN_REUSED)

    try:
        pair = _mint_pair(user)
        rotated = await rotate_refresh_token(
            session,
            user_id,
            presented=presented,
            replacement=pair.refresh_token,
        )
    except (SQLAlchemyError, ValueError, TypeError) as exc:
        await session.rollback()
        logger.exception(TOKEN_ISSUE_FAILED, extra={"user_id": user_id})
        raise ApiError.internal(TOKEN_ISSUE_FAILED) from exc

    if not rotated:
        await session.rollback()
        logger.warning("Lost refresh token rotation race", extra={"user_id": user_id})
        raise ApiError.unauthorized(REFRESH_TOKEN_REUSED)

    await _commit_or_fail(session, TOKEN_ISSUE_FAILED)
    return pair


async def logout(session: AsyncSession, user_id: str) -> None:
    """Clear the user's refresh token so no outstanding one can be exchanged."""
    cleared = await clear_refresh_token(session, user_id)
    if not cleared:
        await session.rollback()
        raise ApiError.not_found("User not found")
    await _commit_or_fail(session, "Failed to log out")


async def change_password(
    session: AsyncSession,
    user_id: str,
    *,
    old_password: str,
    new_password: str,
) -> None:
    """Verify the current password and store a hash of the new one."""
    user = await _require_user(session, user_id)
    if not verify_password(old_password, user.password_hash):
        raise ApiError.bad_request("Invalid old password")

    new_hash = hash_password(new_password)
    await store_password_hash(session, user.id, new_hash)
    await _commit_or_fail(session, "Failed to change password")
