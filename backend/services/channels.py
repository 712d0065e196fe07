"""Channel profile and watch history read models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, cast

from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import ApiError
from models import Subscription, User, Video, WatchHistoryEntry

from .auth.identity_resolution import normalize_username


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _asc(column: Any) -> Any:
    return cast(Any, column).asc()


@dataclass(frozen=True)
class ChannelProfile:
    id: str
    username: str
    full_name: str
    email: str
    avatar_url: str
    cover_image_url: str | None
    subscribers_count: int
    channels_subscribed_to_count: int
    is_subscribed: bool


@dataclass(frozen=True)
class VideoOwnerSummary:
    id: str
    username: str
    full_name: str
    avatar_url: str


@dataclass(frozen=True)
class WatchedVideo:
    id: int
    title: str
    description: str | None
    video_url: str
    thumbnail_url: str
    duration_seconds: int
    views: int
    created_at: datetime
    owner: VideoOwnerSummary


async def get_channel_profile(
    session: AsyncSession,
    *,
    username: str | None,
    viewer_id: str,
) -> ChannelProfile:
    """Resolve a channel by username with its subscription counts for the viewer."""
    if not username or not username.strip():
        raise ApiError.bad_request("Username is missing")

    subscribers_count = (
        select(func.count())
        .select_from(Subscription)
        .where(_eq(Subscription.channel_id, User.id))
        .correlate(User)
        .scalar_subquery()
    )
    subscribed_to_count = (
        select(func.count())
        .select_from(Subscription)
        .where(_eq(Subscription.subscriber_id, User.id))
        .correlate(User)
        .scalar_subquery()
    )
    is_subscribed = (
        exists()
        .where(
            _eq(Subscription.channel_id, User.id),
            _eq(Subscription.subscriber_id, viewer_id),
        )
        .correlate(User)
    )

    result = await session.execute(
        select(
            User,
            subscribers_count.label("subscribers_count"),
            subscribed_to_count.label("channels_subscribed_to_count"),
            is_subscribed.label("is_subscribed"),
        ).where(_eq(User.username, normalize_username(username)))
    )
    row = result.one_or_none()
    if row is None:
        raise ApiError.not_found("Channel does not exist")

    channel, subscribers, subscribed_to, viewer_subscribed = row
    return ChannelProfile(
        id=channel.id,
        username=channel.username,
        full_name=channel.full_name,
        email=channel.email,
        avatar_url=channel.avatar_url,
        cover_image_url=channel.cover_image_url,
        subscribers_count=int(subscribers or 0),
        channels_subscribed_to_count=int(subscribed_to or 0),
        is_subscribed=bool(viewer_subscribed),
    )


async def get_watch_history(session: AsyncSession, user_id: str) -> list[WatchedVideo]:
    """Return the user's watched videos, oldest entry first, with owner summaries."""
    result = await session.execute(
        select(Video, User)
        .select_from(WatchHistoryEntry)
        .join(Video, _eq(Video.id, WatchHistoryEntry.video_id))
        .join(User, _eq(User.id, Video.owner_id))
        .where(_eq(WatchHistoryEntry.user_id, user_id))
        .order_by(_asc(WatchHistoryEntry.id))
    )

    history: list[WatchedVideo] = []
    for video, owner in result.all():
        history.append(
            WatchedVideo(
                id=cast(int, video.id),
                title=video.title,
                description=video.description,
                video_url=video.video_url,
                thumbnail_url=video.thumbnail_url,
                duration_seconds=video.duration_seconds,
                views=video.views,
                created_at=video.created_at,
                owner=VideoOwnerSummary(
                    id=owner.id,
                    username=owner.username,
                    full_name=owner.full_name,
                    avatar_url=owner.avatar_url,
                ),
            )
        )
    return history
