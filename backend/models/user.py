"""User domain model."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, String, Text, func
from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """Registered application user; also the owner of a channel."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("username = lower(username)", name="ck_users_username_lowercase"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    # Stored lowercased.
    username: str = Field(
        sa_column=Column(String(30), unique=True, nullable=False, index=True)
    )
    email: str = Field(
        sa_column=Column(String(255), unique=True, nullable=False, index=True)
    )
    full_name: str = Field(
        sa_column=Column(String(80), nullable=False)
    )
    password_hash: str = Field(
        sa_column=Column(String(255), nullable=False)
    )
    avatar_url: str = Field(
        sa_column=Column(String(1024), nullable=False)
    )
    cover_image_url: str | None = Field(
        default=None, sa_column=Column(String(1024), nullable=True)
    )
    # At most one live refresh token per user; replaced on login/refresh, cleared on logout.
    refresh_token: str | None = Field(
        default=None, sa_column=Column(Text, nullable=True)
    )
    created_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )
    )
    updated_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )
    )
