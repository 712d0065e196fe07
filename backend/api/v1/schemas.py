"""Wire models shared by the v1 routers."""

from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field

from api.envelope import CamelModel
from models import User
from services.auth import PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH, USERNAME_MAX_LENGTH
from services.channels import ChannelProfile, WatchedVideo


class UserPublic(CamelModel):
    """User projection returned to clients; never carries the password or refresh token."""

    id: str
    username: str
    email: str
    full_name: str
    avatar_url: str
    cover_image_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> UserPublic:
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            full_name=user.full_name,
            avatar_url=user.avatar_url,
            cover_image_url=user.cover_image_url,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class LoginRequest(CamelModel):
    username: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class LoginData(CamelModel):
    user: UserPublic
    access_token: str
    refresh_token: str


class TokenData(CamelModel):
    access_token: str
    refresh_token: str


class RefreshRequest(CamelModel):
    refresh_token: str | None = None


class ChangePasswordRequest(CamelModel):
    old_password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)
    new_password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


class AccountUpdateRequest(CamelModel):
    full_name: str | None = Field(default=None, max_length=80)
    email: EmailStr | None = None
    username: str | None = Field(default=None, max_length=USERNAME_MAX_LENGTH)


class ChannelProfileOut(CamelModel):
    id: str
    username: str
    full_name: str
    email: str
    avatar_url: str
    cover_image_url: str | None = None
    subscribers_count: int
    channels_subscribed_to_count: int
    is_subscribed: bool

    @classmethod
    def from_profile(cls, profile: ChannelProfile) -> ChannelProfileOut:
        return cls(
            id=profile.id,
            username=profile.username,
            full_name=profile.full_name,
            email=profile.email,
            avatar_url=profile.avatar_url,
            cover_image_url=profile.cover_image_url,
            subscribers_count=profile.subscribers_count,
            channels_subscribed_to_count=profile.channels_subscribed_to_count,
            is_subscribed=profile.is_subscribed,
        )


class VideoOwnerOut(CamelModel):
    id: str
    username: str
    full_name: str
    avatar_url: str


class WatchedVideoOut(CamelModel):
    id: int
    title: str
    description: str | None = None
    video_url: str
    thumbnail_url: str
    duration_seconds: int
    views: int
    created_at: datetime
    owner: VideoOwnerOut

    @classmethod
    def from_watched(cls, video: WatchedVideo) -> WatchedVideoOut:
        return cls(
            id=video.id,
            title=video.title,
            description=video.description,
            video_url=video.video_url,
            thumbnail_url=video.thumbnail_url,
            duration_seconds=video.duration_seconds,
            views=video.views,
            created_at=video.created_at,
            owner=VideoOwnerOut(
                id=video.owner.id,
                username=video.owner.username,
                full_name=video.owner.full_name,
                avatar_url=video.owner.avatar_url,
            ),
        )
