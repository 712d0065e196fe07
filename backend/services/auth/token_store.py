"""Single-column writes for the per-user refresh token and password hash."""

from __future__ import annotations

import hmac
from typing import Any, cast

from sqlalchemy import update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import User


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _rowcount(result: Any) -> int:
    return cast(CursorResult[Any], result).rowcount


def refresh_tokens_match(stored: str | None, presented: str) -> bool:
    """Constant-time, byte-for-byte comparison of a presented token with the stored one."""
    if not stored:
        return False
    return hmac.compare_digest(stored.encode("utf-8"), presented.encode("utf-8"))


async def store_refresh_token(session: AsyncSession, user_id: str, token: str) -> bool:
    """Replace the user's refresh token unconditionally; False if the user is gone."""
    result = await session.execute(
        update(User).where(_eq(User.id, user_id)).values(refresh_token=token)
    )
    return _rowcount(result) == 1


async def rotate_refresh_token(
    session: AsyncSession,
    user_id: str,
    *,
    presented: str,
    replacement: str,
) -> bool:
    """Swap the refresh token only while it still equals ``presented``.

    Returns False when another request rotated or cleared it first.
    """
    result = await session.execute(
        update(User)
        .where(_eq(User.id, user_id), _eq(User.refresh_token, presented))
        .values(refresh_token=replacement)
    )
    return _rowcount(result) == 1


async def clear_refresh_token(session: AsyncSession, user_id: str) -> bool:
    """Drop the user's refresh token; False if the user is gone."""
    result = await session.execute(
        update(User).where(_eq(User.id, user_id)).values(refresh_token=None)
    )
    return _rowcount(result) == 1


async def store_password_hash(session: AsyncSession, user_id: str, password_hash: str) -> bool:
    result = await session.execute(
        update(User).where(_eq(User.id, user_id)).values(password_hash=password_hash)
    )
    return _rowcount(result) == 1
