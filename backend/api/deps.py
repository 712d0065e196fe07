"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core import ApiError, decode_access_token
from db import get_session
from models import User
from services import MediaStorage
from services.auth import ACCESS_COOKIE, get_user_by_id

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def get_media_storage(request: Request) -> MediaStorage:
    """Return the media store built at application startup."""
    return request.app.state.media_storage


def _extract_access_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    cookie_token = request.cookies.get(ACCESS_COOKIE)
    if cookie_token:
        return cookie_token
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return None


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the user behind the access token in the cookie or Authorization header."""
    token = _extract_access_token(request, credentials)
    if not token:
        raise ApiError.unauthorized("Unauthorized request")

    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise ApiError.unauthorized("Invalid access token") from exc

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise ApiError.unauthorized("Invalid access token")

    user = await get_user_by_id(session, subject)
    if user is None:
        raise ApiError.unauthorized("Invalid access token")
    return user
