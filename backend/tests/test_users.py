"""Tests for profile updates, image replacement, channel profiles and watch history."""

from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from models import Subscription, Video, WatchHistoryEntry

PASSWORD = "Sup3rSecret!"


async def create_account(
    client: AsyncClient,
    png_bytes: bytes,
    *,
    prefix: str = "user",
    with_cover: bool = False,
) -> dict:
    suffix = uuid4().hex[:8]
    files = {"avatar": ("avatar.png", png_bytes, "image/png")}
    if with_cover:
        files["coverImage"] = ("cover.png", png_bytes, "image/png")
    response = await client.post(
        "/api/v1/users/register",
        data={
            "username": f"{prefix}_{suffix}",
            "email": f"{prefix}_{suffix}@example.com",
            "fullName": f"{prefix.title()} Example",
            "password": PASSWORD,
        },
        files=files,
    )
    assert response.status_code == 201
    return response.json()["data"]


async def sign_in(client: AsyncClient, username: str) -> None:
    client.cookies.clear()
    response = await client.post(
        "/api/v1/users/login",
        json={"username": username, "password": PASSWORD},
    )
    assert response.status_code == 200


def object_key(url: str) -> str:
    return url.removeprefix("https://media.test/videotube/")


@pytest.mark.asyncio
async def test_update_account_changes_details(async_client, png_bytes):
    account = await create_account(async_client, png_bytes)
    await sign_in(async_client, account["username"])

    response = await async_client.patch(
        "/api/v1/users/update-account",
        json={"fullName": "  Renamed Person ", "email": "Renamed@Example.com"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["fullName"] == "Renamed Person"
    assert data["email"] == "renamed@example.com"
    assert data["username"] == account["username"]

    current = await async_client.get("/api/v1/users/current-user")
    assert current.json()["data"]["email"] == "renamed@example.com"


@pytest.mark.asyncio
async def test_update_account_requires_a_field(async_client, png_bytes):
    account = await create_account(async_client, png_bytes)
    await sign_in(async_client, account["username"])

    response = await async_client.patch("/api/v1/users/update-account", json={})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_account_rejects_taken_username(async_client, png_bytes):
    taken = await create_account(async_client, png_bytes, prefix="taken")
    account = await create_account(async_client, png_bytes)
    await sign_in(async_client, account["username"])

    response = await async_client.patch(
        "/api/v1/users/update-account",
        json={"username": taken["username"].upper()},
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_update_account_rejects_username_with_at_sign(async_client, png_bytes):
    account = await create_account(async_client, png_bytes)
    await sign_in(async_client, account["username"])

    response = await async_client.patch(
        "/api/v1/users/update-account",
        json={"username": "someone@else"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Username must be non-empty and cannot contain '@'"


@pytest.mark.asyncio
async def test_change_password_requires_minimum_length(async_client, png_bytes):
    account = await create_account(async_client, png_bytes)
    await sign_in(async_client, account["username"])

    response = await async_client.post(
        "/api/v1/users/change-password",
        json={"oldPassword": PASSWORD, "newPassword": "short"},
    )

    assert response.status_code == 400
    assert any(error["field"] == "newPassword" for error in response.json()["errors"])


@pytest.mark.asyncio
async def test_update_account_requires_authentication(async_client):
    response = await async_client.patch(
        "/api/v1/users/update-account",
        json={"fullName": "Nobody"},
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Unauthorized request"


@pytest.mark.asyncio
async def test_avatar_replacement_removes_previous_object(async_client, png_bytes, minio_client):
    account = await create_account(async_client, png_bytes)
    await sign_in(async_client, account["username"])
    previous_key = object_key(account["avatarUrl"])

    response = await async_client.patch(
        "/api/v1/users/avatar",
        files={"avatar": ("new-avatar.png", png_bytes, "image/png")},
    )

    assert response.status_code == 200
    new_url = response.json()["data"]["avatarUrl"]
    assert new_url != account["avatarUrl"]
    assert object_key(new_url) in minio_client.objects
    assert previous_key in minio_client.removed
    assert previous_key not in minio_client.objects


@pytest.mark.asyncio
async def test_avatar_update_requires_file(async_client, png_bytes):
    account = await create_account(async_client, png_bytes)
    await sign_in(async_client, account["username"])

    response = await async_client.patch("/api/v1/users/avatar")

    assert response.status_code == 400
    assert response.json()["message"] == "Avatar file is required"


@pytest.mark.asyncio
async def test_avatar_update_failure_keeps_previous_url(async_client, png_bytes, minio_client):
    account = await create_account(async_client, png_bytes)
    await sign_in(async_client, account["username"])
    minio_client.fail_uploads = True

    response = await async_client.patch(
        "/api/v1/users/avatar",
        files={"avatar": ("new-avatar.png", png_bytes, "image/png")},
    )

    assert response.status_code == 500
    assert minio_client.removed == []
    current = await async_client.get("/api/v1/users/current-user")
    assert current.json()["data"]["avatarUrl"] == account["avatarUrl"]


@pytest.mark.asyncio
async def test_cover_image_replacement(async_client, png_bytes, minio_client):
    account = await create_account(async_client, png_bytes, with_cover=True)
    await sign_in(async_client, account["username"])
    previous_key = object_key(account["coverImageUrl"])

    response = await async_client.patch(
        "/api/v1/users/cover-image",
        files={"coverImage": ("cover.png", png_bytes, "image/png")},
    )

    assert response.status_code == 200
    new_url = response.json()["data"]["coverImageUrl"]
    assert new_url.startswith("https://media.test/videotube/covers/")
    assert new_url != account["coverImageUrl"]
    assert previous_key in minio_client.removed


@pytest.mark.asyncio
async def test_cover_image_set_for_first_time(async_client, png_bytes, minio_client):
    account = await create_account(async_client, png_bytes)
    await sign_in(async_client, account["username"])

    response = await async_client.patch(
        "/api/v1/users/cover-image",
        files={"coverImage": ("cover.png", png_bytes, "image/png")},
    )

    assert response.status_code == 200
    assert response.json()["data"]["coverImageUrl"]
    assert minio_client.removed == []


@pytest.mark.asyncio
async def test_channel_profile_counts_subscriptions(
    async_client, db_session: AsyncSession, png_bytes
):
    channel = await create_account(async_client, png_bytes, prefix="channel")
    viewer = await create_account(async_client, png_bytes, prefix="viewer")
    other = await create_account(async_client, png_bytes, prefix="other")

    db_session.add_all(
        [
            Subscription(subscriber_id=viewer["id"], channel_id=channel["id"]),
            Subscription(subscriber_id=other["id"], channel_id=channel["id"]),
            Subscription(subscriber_id=channel["id"], channel_id=viewer["id"]),
        ]
    )
    await db_session.commit()

    await sign_in(async_client, viewer["username"])
    response = await async_client.get(f"/api/v1/users/c/{channel['username'].upper()}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["username"] == channel["username"]
    assert data["subscribersCount"] == 2
    assert data["channelsSubscribedToCount"] == 1
    assert data["isSubscribed"] is True

    response = await async_client.get(f"/api/v1/users/c/{other['username']}")
    data = response.json()["data"]
    assert data["subscribersCount"] == 0
    assert data["channelsSubscribedToCount"] == 1
    assert data["isSubscribed"] is False


@pytest.mark.asyncio
async def test_channel_profile_unknown_channel(async_client, png_bytes):
    account = await create_account(async_client, png_bytes)
    await sign_in(async_client, account["username"])

    response = await async_client.get("/api/v1/users/c/nobody_here")

    assert response.status_code == 404
    assert response.json()["message"] == "Channel does not exist"


@pytest.mark.asyncio
async def test_channel_profile_blank_username(async_client, png_bytes):
    account = await create_account(async_client, png_bytes)
    await sign_in(async_client, account["username"])

    response = await async_client.get("/api/v1/users/c/%20")

    assert response.status_code == 400
    assert response.json()["message"] == "Username is missing"


@pytest.mark.asyncio
async def test_watch_history_preserves_order(async_client, db_session: AsyncSession, png_bytes):
    creator = await create_account(async_client, png_bytes, prefix="creator")
    viewer = await create_account(async_client, png_bytes, prefix="viewer")

    first = Video(
        owner_id=creator["id"],
        title="First upload",
        video_url="https://media.test/videotube/videos/first.mp4",
        thumbnail_url="https://media.test/videotube/thumbnails/first.png",
        duration_seconds=120,
    )
    second = Video(
        owner_id=creator["id"],
        title="Second upload",
        description="Sequel",
        video_url="https://media.test/videotube/videos/second.mp4",
        thumbnail_url="https://media.test/videotube/thumbnails/second.png",
        duration_seconds=90,
    )
    db_session.add_all([first, second])
    await db_session.commit()

    for video in (second, first):
        db_session.add(WatchHistoryEntry(user_id=viewer["id"], video_id=video.id))
        await db_session.commit()

    await sign_in(async_client, viewer["username"])
    response = await async_client.get("/api/v1/users/history")

    assert response.status_code == 200
    history = response.json()["data"]
    assert [entry["title"] for entry in history] == ["Second upload", "First upload"]
    assert history[0]["description"] == "Sequel"
    assert history[0]["durationSeconds"] == 90
    assert history[0]["owner"] == {
        "id": creator["id"],
        "username": creator["username"],
        "fullName": creator["fullName"],
        "avatarUrl": creator["avatarUrl"],
    }


@pytest.mark.asyncio
async def test_watch_history_empty(async_client, png_bytes):
    account = await create_account(async_client, png_bytes)
    await sign_in(async_client, account["username"])

    response = await async_client.get("/api/v1/users/history")

    assert response.status_code == 200
    assert response.json()["data"] == []
