"""Current-user profile, channel and watch history endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, get_media_storage
from api.envelope import ApiResponse
from core import ApiError
from db.errors import is_unique_violation
from models import User
from services import MediaStorage, has_file
from services.auth import normalize_email, registration_conflict_exists, validate_username
from services.channels import get_channel_profile, get_watch_history

from .schemas import AccountUpdateRequest, ChannelProfileOut, UserPublic, WatchedVideoOut
from .uploads import discard_media, host_required_image

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/current-user", response_model=ApiResponse[UserPublic])
async def get_current_user_profile(
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserPublic]:
    """Return the authenticated user's profile."""
    return ApiResponse[UserPublic].ok(
        UserPublic.from_user(current_user),
        "Current user fetched successfully",
    )


@router.patch("/update-account", response_model=ApiResponse[UserPublic])
async def update_account_details(
    payload: AccountUpdateRequest,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserPublic]:
    full_name = payload.full_name.strip() if payload.full_name is not None else None
    email = normalize_email(str(payload.email)) if payload.email is not None else None
    if not full_name and not email and payload.username is None:
        raise ApiError.bad_request("At least one of fullName, email or username is required")
    username = validate_username(payload.username) if payload.username is not None else None

    changed_username = username if username and username != current_user.username else None
    changed_email = email if email and email != current_user.email else None
    if await registration_conflict_exists(
        session,
        username=changed_username,
        email=changed_email,
        exclude_user_id=current_user.id,
    ):
        raise ApiError.conflict("Username or email is already in use")

    if full_name:
        current_user.full_name = full_name
    if changed_email:
        current_user.email = changed_email
    if changed_username:
        current_user.username = changed_username

    session.add(current_user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            raise ApiError.conflict("Username or email is already in use") from exc
        raise ApiError.internal("Failed to update account details") from exc
    await session.refresh(current_user)

    return ApiResponse[UserPublic].ok(
        UserPublic.from_user(current_user),
        "Account details updated successfully",
    )


async def _replace_image(
    *,
    upload: UploadFile | None,
    attribute: str,
    folder: str,
    label: str,
    session: AsyncSession,
    storage: MediaStorage,
    user: User,
) -> User:
    if upload is None or not has_file(upload):
        raise ApiError.bad_request(f"{label} file is required")

    hosted = await host_required_image(upload, storage, folder=folder, label=label)
    previous_url: str | None = getattr(user, attribute)

    setattr(user, attribute, hosted.url)
    session.add(user)
    try:
        await session.commit()
    except Exception as exc:
        await session.rollback()
        await discard_media(storage, hosted.url)
        raise ApiError.internal(f"Failed to update {label.lower()}") from exc
    await session.refresh(user)

    if previous_url and previous_url != hosted.url:
        await discard_media(storage, previous_url)
    return user


@router.patch("/avatar", response_model=ApiResponse[UserPublic])
async def update_user_avatar(
    avatar: Annotated[UploadFile | None, File()] = None,
    session: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserPublic]:
    user = await _replace_image(
        upload=avatar,
        attribute="avatar_url",
        folder="avatars",
        label="Avatar",
        session=session,
        storage=storage,
        user=current_user,
    )
    return ApiResponse[UserPublic].ok(UserPublic.from_user(user), "Avatar updated successfully")


@router.patch("/cover-image", response_model=ApiResponse[UserPublic])
async def update_user_cover_image(
    cover_image: Annotated[UploadFile | None, File(alias="coverImage")] = None,
    session: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserPublic]:
    user = await _replace_image(
        upload=cover_image,
        attribute="cover_image_url",
        folder="covers",
        label="Cover image",
        session=session,
        storage=storage,
        user=current_user,
    )
    return ApiResponse[UserPublic].ok(
        UserPublic.from_user(user),
        "Cover image updated successfully",
    )


@router.get("/c/{username}", response_model=ApiResponse[ChannelProfileOut])
async def get_user_channel_profile(
    username: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[ChannelProfileOut]:
    profile = await get_channel_profile(session, username=username, viewer_id=current_user.id)
    return ApiResponse[ChannelProfileOut].ok(
        ChannelProfileOut.from_profile(profile),
        "User channel fetched successfully",
    )


@router.get("/history", response_model=ApiResponse[list[WatchedVideoOut]])
async def get_user_watch_history(
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[list[WatchedVideoOut]]:
    history = await get_watch_history(session, current_user.id)
    return ApiResponse[list[WatchedVideoOut]].ok(
        [WatchedVideoOut.from_watched(entry) for entry in history],
        "Watch history fetched successfully",
    )
