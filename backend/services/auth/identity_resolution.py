"""Identity normalization and user lookup helpers."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import ApiError
from models import User

USERNAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
INVALID_USERNAME_MESSAGE = "Username must be non-empty and cannot contain '@'"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _ne(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column != value)


def normalize_email(value: str) -> str:
    return value.strip().lower()


def normalize_username(value: str) -> str:
    return value.strip().lower()


def validate_username(value: str) -> str:
    """Normalize a username for storage; blank values and '@' are rejected."""
    username = normalize_username(value)
    if not username or "@" in username:
        raise ApiError.bad_request(INVALID_USERNAME_MESSAGE)
    return username


async def get_user_by_id(session: AsyncSession, user_id: str) -> User | None:
    result = await session.execute(select(User).where(_eq(User.id, user_id)))
    return result.scalar_one_or_none()


async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(
        select(User).where(_eq(User.username, normalize_username(username)))
    )
    return result.scalar_one_or_none()


async def find_login_user(
    session: AsyncSession,
    *,
    username: str | None,
    email: str | None,
) -> User | None:
    """Look a user up by username or email, whichever the caller supplied."""
    conditions: list[ColumnElement[bool]] = []
    if username and username.strip():
        conditions.append(_eq(User.username, normalize_username(username)))
    if email and email.strip():
        conditions.append(_eq(User.email, normalize_email(email)))
    if not conditions:
        return None

    result = await session.execute(select(User).where(or_(*conditions)).limit(1))
    return result.scalar_one_or_none()


async def registration_conflict_exists(
    session: AsyncSession,
    *,
    username: str | None,
    email: str | None,
    exclude_user_id: str | None = None,
) -> bool:
    """Return True when another account already owns the username or email."""
    conditions: list[ColumnElement[bool]] = []
    if username is not None:
        conditions.append(_eq(User.username, normalize_username(username)))
    if email is not None:
        conditions.append(_eq(User.email, normalize_email(email)))
    if not conditions:
        return False

    stmt = select(User.id).where(or_(*conditions))
    if exclude_user_id is not None:
        stmt = stmt.where(_ne(User.id, exclude_user_id))
    existing = await session.execute(stmt.limit(1))
    return existing.scalar_one_or_none() is not None
