"""Registration, login, logout and token refresh endpoints."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, File, Form, Request, Response, UploadFile, status
from pydantic import EmailStr
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, get_media_storage
from api.envelope import ApiResponse
from core import ApiError, hash_password
from db.errors import is_unique_violation
from models import User
from services import MediaStorage, UploadFailure, has_file
from services.auth import (
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    REFRESH_COOKIE,
    USERNAME_MAX_LENGTH,
    change_password,
    clear_token_cookies,
    login,
    logout,
    normalize_email,
    refresh_tokens,
    registration_conflict_exists,
    set_token_cookies,
    validate_username,
)

from .schemas import (
    ChangePasswordRequest,
    LoginData,
    LoginRequest,
    RefreshRequest,
    TokenData,
    UserPublic,
)
from .uploads import discard_media, host_required_image, host_upload

router = APIRouter(prefix="/users", tags=["auth"])
logger = logging.getLogger(__name__)

DUPLICATE_USER_MESSAGE = "User with email or username already exists"


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[UserPublic],
)
async def register(
    username: Annotated[str, Form(max_length=USERNAME_MAX_LENGTH)],
    email: Annotated[EmailStr, Form()],
    full_name: Annotated[str, Form(alias="fullName", max_length=80)],
    password: Annotated[
        str,
        Form(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH),
    ],
    avatar: Annotated[UploadFile | None, File()] = None,
    cover_image: Annotated[UploadFile | None, File(alias="coverImage")] = None,
    session: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
) -> ApiResponse[UserPublic]:
    """Create an account; the avatar is required and hosted before the user is stored."""
    if any(not field.strip() for field in (username, str(email), full_name, password)):
        raise ApiError.bad_request("All fields are required")

    normalized_username = validate_username(username)
    normalized_email = normalize_email(str(email))
    if await registration_conflict_exists(
        session,
        username=normalized_username,
        email=normalized_email,
    ):
        raise ApiError.conflict(DUPLICATE_USER_MESSAGE)

    if avatar is None or not has_file(avatar):
        raise ApiError.bad_request("Avatar file is required")

    hosted_avatar = await host_required_image(
        avatar,
        storage,
        folder="avatars",
        label="Avatar",
    )

    cover_image_url: str | None = None
    try:
        if cover_image is not None and has_file(cover_image):
            hosted_cover = await host_upload(cover_image, storage, folder="covers")
            if isinstance(hosted_cover, UploadFailure):
                logger.warning(
                    "Cover image upload failed during registration",
                    extra={"kind": hosted_cover.kind},
                )
            else:
                cover_image_url = hosted_cover.url

        user = User(
            username=normalized_username,
            email=normalized_email,
            full_name=full_name.strip(),
            password_hash=hash_password(password),
            avatar_url=hosted_avatar.url,
            cover_image_url=cover_image_url,
        )
        session.add(user)
        await session.commit()
    except Exception as exc:
        await session.rollback()
        await discard_media(storage, hosted_avatar.url)
        await discard_media(storage, cover_image_url)
        if isinstance(exc, IntegrityError):
            if is_unique_violation(exc):
                raise ApiError.conflict(DUPLICATE_USER_MESSAGE) from exc
            raise ApiError.internal("Something went wrong while registering the user") from exc
        raise
    await session.refresh(user)

    return ApiResponse[UserPublic].ok(
        UserPublic.from_user(user),
        "User registered successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/login", response_model=ApiResponse[LoginData])
async def login_user(
    payload: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> ApiResponse[LoginData]:
    result = await login(
        session,
        username=payload.username,
        email=payload.email,
        password=payload.password,
    )
    await session.refresh(result.user)

    set_token_cookies(response, result.tokens.access_token, result.tokens.refresh_token)
    return ApiResponse[LoginData].ok(
        LoginData(
            user=UserPublic.from_user(result.user),
            access_token=result.tokens.access_token,
            refresh_token=result.tokens.refresh_token,
        ),
        "User logged in successfully",
    )


@router.post("/logout", response_model=ApiResponse[dict[str, Any]])
async def logout_user(
    response: Response,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[dict[str, Any]]:
    await logout(session, current_user.id)
    clear_token_cookies(response)
    return ApiResponse[dict[str, Any]].ok({}, "User logged out")


@router.post("/refresh-token", response_model=ApiResponse[TokenData])
async def refresh_access_token(
    request: Request,
    response: Response,
    payload: Annotated[RefreshRequest | None, Body()] = None,
    session: AsyncSession = Depends(get_db),
) -> ApiResponse[TokenData]:
    """Rotate the token pair using the refresh token from the cookie or the body."""
    presented = request.cookies.get(REFRESH_COOKIE)
    if not presented and payload is not None:
        presented = payload.refresh_token

    tokens = await refresh_tokens(session, presented)

    set_token_cookies(response, tokens.access_token, tokens.refresh_token)
    return ApiResponse[TokenData].ok(
        TokenData(access_token=tokens.access_token, refresh_token=tokens.refresh_token),
        "Access token refreshed",
    )


@router.post("/change-password", response_model=ApiResponse[dict[str, Any]])
async def change_current_password(
    payload: ChangePasswordRequest,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[dict[str, Any]]:
    await change_password(
        session,
        current_user.id,
        old_password=payload.old_password,
        new_password=payload.new_password,
    )
    return ApiResponse[dict[str, Any]].ok({}, "Password changed successfully")
